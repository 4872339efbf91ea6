# src/vacancies/io/export.py
from __future__ import annotations
from pathlib import Path
from typing import List, Union

import pandas as pd

# Column order for exported search results; extra keys are appended after these.
COLUMNS = ["id", "title", "company", "city", "postal_code", "job_domain", "published", "url", "expired"]


def rows_to_frame(rows: List[dict]) -> pd.DataFrame:
    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=COLUMNS)
    ordered = [c for c in COLUMNS if c in df.columns]
    extra = [c for c in df.columns if c not in ordered]
    return df[ordered + extra]


def write_rows(rows: List[dict], path: Union[str, Path]) -> int:
    """
    Write flattened vacancy rows to `path`: .json gives a list of records,
    anything else is written as CSV. Returns the number of rows written.
    """
    path = Path(path)
    df = rows_to_frame(rows)
    if path.suffix.lower() == ".json":
        df.to_json(path, orient="records", force_ascii=False, indent=2)
    else:
        df.to_csv(path, index=False)
    return len(df)
