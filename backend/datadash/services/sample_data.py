# datadash/services/sample_data.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import pandas as pd
import structlog

from datadash.config import get_settings
from datadash.models.data_entry import DataEntry
from datadash.services.validation import validate_entry

logger = structlog.get_logger(__name__)

BUNDLED_SAMPLE = Path(__file__).resolve().parent.parent / "data" / "sample-data.csv"


def sample_path() -> Path:
    override = get_settings().SAMPLE_DATA_PATH
    return Path(override) if override else BUNDLED_SAMPLE


def read_sample_entries(path: Path) -> List[DataEntry]:
    """
    Read a timestamp,value,category,source CSV into detached DataEntry objects.
    Ids are assigned 1..n in file order; rows failing validation are skipped.
    """
    df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
    df.columns = [str(c).strip().lower() for c in df.columns]

    entries: List[DataEntry] = []
    skipped = 0
    for idx, row in enumerate(df.to_dict(orient="records"), start=1):
        result = validate_entry(row)
        if not result.is_valid:
            skipped += 1
            continue
        c = result.candidate
        entries.append(
            DataEntry(id=idx, timestamp=c.timestamp, value=c.value, category=c.category, source=c.source)
        )
    if skipped:
        logger.warning("sample_data.rows_skipped", path=str(path), skipped=skipped)
    return entries


@lru_cache(maxsize=4)
def _load_cached(path_str: str) -> tuple:
    return tuple(read_sample_entries(Path(path_str)))


def load_sample_entries(path: Optional[Path] = None) -> List[DataEntry]:
    return list(_load_cached(str(path or sample_path())))
