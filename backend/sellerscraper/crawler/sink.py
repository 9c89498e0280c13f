"""CSV output for crawled seller records."""

import csv
import json
from pathlib import Path
from typing import Any, Union

from sellerscraper.scrapers.base import RECORD_COLUMNS, SellerRecord


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


class CsvRecordSink:
    """Appends one row per found seller to a CSV file.

    The header is written when the file is new. Each append opens and
    closes the file so completed rows survive a crash.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _ensure_header(self) -> None:
        if self.path.exists() and self.path.stat().st_size > 0:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8", newline="") as f:
            csv.writer(f).writerow(RECORD_COLUMNS)

    def append(self, record: SellerRecord) -> None:
        self._ensure_header()
        row = record.to_dict()
        with self.path.open("a", encoding="utf-8", newline="") as f:
            csv.writer(f).writerow([_cell(row[column]) for column in RECORD_COLUMNS])
