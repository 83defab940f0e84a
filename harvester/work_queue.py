"""
Work queue module using SQLite for durable, ordered tracking of pending page URLs.
The stored queue is the single source of truth for what remains, so a run can be
interrupted and resumed without losing completed work.
"""

import json
import sqlite3
import logging
from pathlib import Path
from typing import List, Tuple, Iterable

from harvester.exceptions import InitializationError

logger = logging.getLogger(__name__)


class WorkQueueStore:
    """
    SQLite-backed ordered queue of page URLs.
    Duplicates are allowed; removal always drops every entry equal to the finished URL.
    """

    def __init__(self, db_path: str):
        """
        Initialize the queue store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path), timeout=30.0)

    def _init_db(self):
        """Initialize database and create table if it doesn't exist."""
        conn = self._connect()
        try:
            conn.execute("PRAGMA journal_mode=WAL")  # Write-Ahead Logging, readers never block the writer
            conn.execute("""
                CREATE TABLE IF NOT EXISTS queue (
                    position INTEGER PRIMARY KEY AUTOINCREMENT,
                    url TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_queue_url ON queue(url)")
            conn.commit()
        finally:
            conn.close()
        logger.debug(f"Initialized work queue database: {self.db_path}")

    def load(self) -> List[str]:
        """
        Return the persisted queue in order.

        Returns:
            List of pending URLs, empty if nothing is stored yet
        """
        conn = self._connect()
        try:
            cursor = conn.execute("SELECT url FROM queue ORDER BY position")
            return [row[0] for row in cursor.fetchall()]
        finally:
            conn.close()

    def pending_count(self) -> int:
        """Number of queued entries."""
        conn = self._connect()
        try:
            return conn.execute("SELECT COUNT(*) FROM queue").fetchone()[0]
        finally:
            conn.close()

    def save(self, items: Iterable[str]) -> None:
        """
        Atomically replace the persisted queue.

        Args:
            items: URLs in processing order
        """
        items = list(items)
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")  # Take the write lock before reading anything
            conn.execute("DELETE FROM queue")
            conn.executemany("INSERT INTO queue (url) VALUES (?)", [(url,) for url in items])
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.debug(f"Saved work queue with {len(items)} entries")

    def remove_one(self, item: str) -> int:
        """
        Remove the URL that was just processed.

        Every entry equal to ``item`` is dropped; other entries keep their order.
        Calling this for a URL that is no longer queued is a no-op.

        Args:
            item: URL to remove

        Returns:
            Number of entries removed
        """
        conn = self._connect()
        try:
            cursor = conn.execute("DELETE FROM queue WHERE url = ?", (item,))
            removed = cursor.rowcount
            conn.commit()
        finally:
            conn.close()

        if removed:
            logger.debug(f"Removed {removed} queue entr{'y' if removed == 1 else 'ies'} for {item}")
        else:
            logger.debug(f"{item} was not queued, nothing removed")
        return removed

    def clear(self) -> None:
        """Drop every queued entry."""
        self.save([])

    def seed(self, source_path: str) -> List[str]:
        """
        Fill the queue from the static seed file.

        The file must hold a JSON array of strings. Blank entries are dropped.
        Nothing is persisted unless the whole file is valid.

        Args:
            source_path: Path to the JSON seed file

        Returns:
            The seeded URL list

        Raises:
            InitializationError: If the file is unreadable or malformed
        """
        items = read_seed_file(source_path)
        self.save(items)
        logger.info(f"Seeded work queue with {len(items)} URLs from {source_path}")
        return items

    def ensure_seeded(self, source_path: str) -> Tuple[List[str], bool]:
        """
        Load the stored queue, seeding it first when nothing is stored.

        Args:
            source_path: Seed file used only when the stored queue is empty

        Returns:
            Tuple of (queue, resumed) where resumed is True for an existing queue

        Raises:
            InitializationError: If the queue cannot be read or seeded
        """
        try:
            items = self.load()
        except sqlite3.Error as e:
            raise InitializationError(f"Could not read work queue {self.db_path}: {e}") from e

        if items:
            logger.info(f"Resuming with {len(items)} stored URLs")
            return items, True

        try:
            return self.seed(source_path), False
        except sqlite3.Error as e:
            raise InitializationError(f"Could not store seeded work queue: {e}") from e


def read_seed_file(source_path: str) -> List[str]:
    """
    Read and validate a JSON array of URLs.

    Raises:
        InitializationError: If the file is missing, unreadable or not an array of strings
    """
    path = Path(source_path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise InitializationError(f"Seed file not found: {source_path}")
    except (OSError, UnicodeDecodeError) as e:
        raise InitializationError(f"Could not read seed file {source_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise InitializationError(f"Seed file {source_path} is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise InitializationError(f"Seed file {source_path} must contain a JSON array")

    items = []
    for index, entry in enumerate(data):
        if entry is None:
            continue
        if not isinstance(entry, str):
            raise InitializationError(
                f"Seed file {source_path}: entry {index} is {type(entry).__name__}, expected a string"
            )
        entry = entry.strip()
        if entry:
            items.append(entry)
    return items
