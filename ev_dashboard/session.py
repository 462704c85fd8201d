from __future__ import annotations

from typing import Callable, Optional, Tuple

from ev_dashboard import query as q
from ev_dashboard.debounce import Debouncer
from ev_dashboard.records import RecordSet
from ev_dashboard.settings import DashboardSettings


class TableSession:
    """Table state for one mounted table over one record set.

    Typing into the search box is debounced; every other action updates the
    query immediately. ``on_change`` receives the recomputed page after each
    committed change. Page sizes and the debounce interval come from
    ``settings``.
    """

    def __init__(
        self,
        records: RecordSet,
        settings: Optional[DashboardSettings] = None,
        *,
        on_change: Optional[Callable[[q.TablePage], None]] = None,
    ):
        self.records = records
        self.settings = settings or DashboardSettings()
        self.query = q.set_page_size(q.TableQuery(), self.settings.default_page_size, self.settings.page_sizes)
        self.search_text = ""
        self.on_change = on_change
        self._debouncer = Debouncer(self._commit_search, self.settings.debounce_seconds)

    def view(self) -> q.TablePage:
        return q.apply_query(self.records, self.query)

    def filter_options(self, column: str) -> Tuple[str, ...]:
        return q.unique_values(self.records, column)

    def _update(self, query: q.TableQuery) -> q.TablePage:
        self.query = query
        page = self.view()
        if self.on_change is not None:
            self.on_change(page)
        return page

    # -- search --
    def type_search(self, text: str) -> None:
        self.search_text = text
        self._debouncer.trigger(text)

    def flush_search(self) -> None:
        self._debouncer.flush()

    def _commit_search(self, text: str) -> None:
        self._update(q.set_search(self.query, text))

    # -- filters / sort / pagination --
    def sort_by(self, column: str) -> q.TablePage:
        return self._update(q.toggle_sort(self.query, column))

    def filter_by(self, column: str, value: str) -> q.TablePage:
        return self._update(q.set_filter(self.query, column, value))

    def clear_filter(self, column: str) -> q.TablePage:
        return self._update(q.clear_filter(self.query, column))

    def set_page_size(self, page_size: int) -> q.TablePage:
        return self._update(q.set_page_size(self.query, page_size, self.settings.page_sizes))

    def next_page(self) -> q.TablePage:
        return self._update(q.next_page(self.query, self.view().total_pages))

    def previous_page(self) -> q.TablePage:
        return self._update(q.previous_page(self.query, self.view().total_pages))

    def go_to_page(self, page: int) -> q.TablePage:
        return self._update(q.go_to_page(self.query, page, self.view().total_pages))

    def close(self) -> None:
        self._debouncer.cancel()
