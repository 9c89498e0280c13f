"""Progress ledger: which seller IDs a crawl has already handled.

The ledger lives in memory during a run and is flushed as a whole to a
JSON file. Each flush writes a temporary file and atomically replaces
the previous one, so the file on disk is always a complete snapshot.
"""

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

import structlog


logger = structlog.get_logger(__name__)

STATUS_OK = "ok"
STATUS_EMPTY = "empty"
STATUS_ERROR = "error"
LEDGER_STATUSES = (STATUS_OK, STATUS_EMPTY, STATUS_ERROR)


@dataclass(frozen=True)
class LedgerEntry:
    """Terminal outcome recorded for one seller ID."""

    status: str
    error: Optional[str] = None

    def __post_init__(self):
        if self.status not in LEDGER_STATUSES:
            raise ValueError(f"Invalid ledger status: {self.status}")

    def to_dict(self) -> Dict[str, str]:
        data = {"status": self.status}
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "LedgerEntry":
        return cls(status=data["status"], error=data.get("error"))


class JsonLedgerStore:
    """Durable load-all / save-all storage for ledger entries.

    File format: {"<seller id>": {"status": "ok|empty|error", "error": "..."}}
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load_all(self) -> Dict[int, LedgerEntry]:
        """Read every entry; a missing file is an empty ledger."""
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        return {int(seller_id): LedgerEntry.from_dict(entry) for seller_id, entry in raw.items()}

    def save_all(self, entries: Dict[int, LedgerEntry]) -> None:
        """Replace the stored ledger with a full snapshot."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {str(seller_id): entry.to_dict() for seller_id, entry in sorted(entries.items())}

        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class ProgressLedger:
    """In-memory ledger owned by one crawl run.

    Grows monotonically: once a seller ID is recorded it is never
    recorded again or removed.
    """

    def __init__(self, store: JsonLedgerStore, entries: Optional[Dict[int, LedgerEntry]] = None):
        self.store = store
        self._entries: Dict[int, LedgerEntry] = dict(entries or {})
        self._dirty = False

    @classmethod
    def load(cls, store: JsonLedgerStore) -> "ProgressLedger":
        entries = store.load_all()
        logger.info("ledger_loaded", path=str(store.path), entries=len(entries))
        return cls(store, entries)

    def __contains__(self, seller_id: int) -> bool:
        return seller_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def get(self, seller_id: int) -> Optional[LedgerEntry]:
        return self._entries.get(seller_id)

    def record(self, seller_id: int, status: str, error: Optional[str] = None) -> LedgerEntry:
        """Record the terminal outcome for a seller ID.

        Raises:
            ValueError: If the ID is already recorded or the status is unknown
        """
        if seller_id in self._entries:
            raise ValueError(f"Seller {seller_id} is already recorded in the ledger")
        entry = LedgerEntry(status=status, error=error)
        self._entries[seller_id] = entry
        self._dirty = True
        return entry

    def count_in_range(self, start_id: int, end_id: int) -> int:
        return sum(1 for seller_id in self._entries if start_id <= seller_id <= end_id)

    def flush(self, force: bool = False) -> None:
        """Write a full snapshot if anything changed since the last flush."""
        if not self._dirty and not force:
            return
        self.store.save_all(self._entries)
        self._dirty = False
        logger.debug("ledger_flushed", path=str(self.store.path), entries=len(self._entries))
