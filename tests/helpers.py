"""Helpers for building small record sets in tests."""

import pandas as pd

from ev_dashboard.records import RecordSet


def numbered_records(count, make="TESLA"):
    """Record set of ``count`` rows with VINs V00, V01, ..."""
    return RecordSet.from_frame(
        pd.DataFrame(
            {
                "VIN": [f"V{i:02d}" for i in range(count)],
                "Make": [make] * count,
                "ElectricRange": list(range(count)),
            }
        )
    )
