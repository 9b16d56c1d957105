from __future__ import annotations

from dataclasses import fields
import math
from pathlib import Path
from typing import Any, Iterable

import numpy as np
import pandas as pd

from edfonda.core import ConversionError, PlanRow, plan_row_from_mapping

PLAN_COLUMNS: list[str] = [f.name for f in fields(PlanRow)]

_INT_COLUMNS = ("samples_per_record", "edf_signal_index", "onda_signal_index")


def plan_to_frame(rows: Iterable[PlanRow]) -> pd.DataFrame:
    """Tabulate plan rows (current generation); errors become text."""
    records = []
    for row in rows:
        record = row.to_dict()
        if record["error"] is not None:
            record["error"] = str(record["error"])
        records.append(record)
    frame = pd.DataFrame.from_records(records, columns=PLAN_COLUMNS)
    for name in _INT_COLUMNS:
        frame[name] = frame[name].astype("Int64")
    return frame


def _clean(value: Any) -> Any:
    if value is None or value is pd.NA:
        return None
    if isinstance(value, (float, np.floating)) and math.isnan(value):
        return None
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    return value


def plan_from_frame(frame: pd.DataFrame) -> list[PlanRow]:
    """Read plan rows from a table of either plan generation (V1 or V2)."""
    rows = []
    for record in frame.to_dict(orient="records"):
        columns = {name: _clean(value) for name, value in record.items()}
        for name in _INT_COLUMNS:
            if columns.get(name) is not None:
                columns[name] = int(columns[name])
        if columns.get("error") is not None:
            columns["error"] = ConversionError.parse(str(columns["error"]))
        rows.append(plan_row_from_mapping(columns))
    return rows


def write_plan(path: str | Path, rows: Iterable[PlanRow]) -> Path:
    """Write a plan table as an Arrow (Feather) file."""
    path = Path(path)
    plan_to_frame(rows).to_feather(path)
    return path


def read_plan(path: str | Path) -> list[PlanRow]:
    return plan_from_frame(pd.read_feather(Path(path)))
