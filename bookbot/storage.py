"""
Storage layer for borrowing records.

All records live in a single JSON document that is read and rewritten as a
whole on every mutation.
"""

import os
import json
import logging
import tempfile
import threading
from pathlib import Path
from contextlib import contextmanager, suppress
from typing import Iterable, Iterator

from .models import BorrowRecord

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_STORE_PATH = DATA_DIR / "borrowings.json"


class BorrowingStore:
    """
    JSON-file-backed list of borrow records.

    Persistence failures never propagate: a document that cannot be read is
    treated as empty and a failed write is logged and dropped. Mutations are
    serialized with a re-entrant lock, since Slack listeners and the
    scheduler run on different threads.
    """

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path is not None else DEFAULT_STORE_PATH
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator["BorrowingStore"]:
        """Hold the store lock for a caller-managed load/modify/save cycle."""
        with self._lock:
            yield self

    def load(self) -> list[BorrowRecord]:
        """Return all records in file order, or [] if none can be read."""
        if not self.path.exists():
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.exception(f"Error loading borrowings from {self.path}")
            return []

        if not isinstance(data, list):
            logger.error(
                f"Error loading borrowings: expected a JSON array in {self.path}, "
                f"got {type(data).__name__}"
            )
            return []

        try:
            return [BorrowRecord.from_dict(item) for item in data]
        except (KeyError, TypeError, AttributeError):
            logger.exception(f"Error loading borrowings: malformed record in {self.path}")
            return []

    def save(self, records: Iterable[BorrowRecord]) -> None:
        """Replace the document with `records`. Errors are logged, not raised."""
        payload = [record.to_dict() for record in records]

        with self._lock:
            tmp_path = None
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(
                    dir=self.path.parent, prefix=".borrowings_", suffix=".tmp"
                )
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
                tmp_path = None
            except (OSError, TypeError, ValueError):
                logger.exception(f"Error saving borrowings to {self.path}")
            finally:
                if tmp_path is not None:
                    with suppress(OSError):
                        os.remove(tmp_path)

    def append(self, record: BorrowRecord) -> None:
        """Add a record at the end of the list."""
        with self._lock:
            records = self.load()
            records.append(record)
            self.save(records)
        logger.info(
            f"Recorded borrowing of '{record.book_title}' by {record.username} "
            f"(due {record.due_date})"
        )
