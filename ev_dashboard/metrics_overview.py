from __future__ import annotations

from typing import Any, Dict, Optional

from ev_dashboard.aggregations import (
    as_series,
    distinct_count,
    format_currency_0,
    full_distribution,
    mean_of,
    model_year_distribution,
    most_common,
    numeric_histogram,
    postal_code_distribution,
    round_half_up,
    top_n_distribution,
    total_count,
)
from ev_dashboard.charts import (
    bar_chart,
    model_year_chart,
    pie_chart,
    postal_code_chart,
    range_histogram_chart,
    to_vega_spec,
)
from ev_dashboard.records import RecordSet
from ev_dashboard.settings import DashboardSettings


def _rounded(value: Optional[float]) -> Optional[int]:
    out = round_half_up(value)
    return int(out) if out is not None else None


def compute_overview(records: RecordSet, settings: Optional[DashboardSettings] = None) -> Dict[str, Any]:
    settings = settings or DashboardSettings()

    avg_range = _rounded(mean_of(records, "ElectricRange"))
    avg_msrp = _rounded(mean_of(records, "MSRP"))
    kpis = {
        "total_vehicles": total_count(records),
        "average_range": avg_range,
        "average_range_display": f"{avg_range} miles" if avg_range is not None else "N/A",
        "average_msrp": avg_msrp,
        "average_msrp_display": format_currency_0(avg_msrp),
        "most_common_city": most_common(records, "City"),
        "total_cities": distinct_count(records, "City"),
    }

    distributions = {
        "make": as_series(top_n_distribution(records, "Make", settings.make_top_n)),
        "vehicle_types": as_series(full_distribution(records, "ElectricVehicleType")),
        "postal_codes": as_series(postal_code_distribution(records, settings.postal_code_top_n)),
        "electric_range": as_series(numeric_histogram(records, "ElectricRange", settings.bin_width)),
        "model_years": as_series(
            model_year_distribution(
                records,
                min_year=settings.model_year_min,
                max_year=settings.model_year_max,
            )
        ),
    }

    charts = {
        "make_distribution": to_vega_spec(bar_chart(distributions["make"], x_title="Manufacturer")),
        "vehicle_types": to_vega_spec(pie_chart(distributions["vehicle_types"], title="Vehicle Type")),
        "postal_codes": to_vega_spec(postal_code_chart(distributions["postal_codes"])),
        "electric_range": to_vega_spec(range_histogram_chart(distributions["electric_range"])),
        "model_years": to_vega_spec(model_year_chart(distributions["model_years"])),
    }

    return {
        "token": records.token,
        "kpis": kpis,
        "distributions": distributions,
        "charts": charts,
    }
