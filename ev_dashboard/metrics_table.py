from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

from ev_dashboard.query import TableQuery, apply_query
from ev_dashboard.records import RecordSet
from ev_dashboard.settings import DashboardSettings


def compute_table(
    records: RecordSet,
    query: TableQuery,
    settings: Optional[DashboardSettings] = None,
) -> Dict[str, Any]:
    settings = settings or DashboardSettings()
    page = apply_query(records, query)
    payload = page.to_dict()
    payload.update(
        {
            "query": asdict(query),
            "columns": records.columns,
            "display_rows": page.display_rows(),
            "summary": f"Showing {page.filtered_count} of {page.total_count} entries",
            "page_sizes": list(settings.page_sizes),
        }
    )
    return payload
