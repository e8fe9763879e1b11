"""SQLite store for saved bookmark queries."""
import aiosqlite
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, List, Dict, Any


# Default database location
DEFAULT_DB_PATH = Path.home() / ".bookmarks-mcp" / "saved_searches.db"


class SavedSearchStore:
    """Async SQLite store for saved queries and the flags they ran with."""

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the saved search store.

        Args:
            db_path: Path to SQLite database. Defaults to ~/.bookmarks-mcp/saved_searches.db
        """
        self.db_path = db_path or DEFAULT_DB_PATH
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        """Initialize the database, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row

        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS saved_searches (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                query TEXT NOT NULL,
                tags_only INTEGER NOT NULL DEFAULT 0,
                use_regex INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                UNIQUE (query, tags_only, use_regex)
            )
        """)

        await self._connection.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if not self._connection:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._connection

    async def save_search(self, query: str, tags_only: bool = False, use_regex: bool = False) -> Optional[int]:
        """Save a query unless the same query and flags are already saved.

        Args:
            query: Query string as typed
            tags_only: Whether the search was restricted to tags
            use_regex: Whether every term was treated as a regex

        Returns:
            ID of the new saved search, or None if it was a duplicate
        """
        connection = self._require_connection()

        now = datetime.now(timezone.utc).isoformat()
        cursor = await connection.execute(
            "INSERT OR IGNORE INTO saved_searches (query, tags_only, use_regex, created_at) VALUES (?, ?, ?, ?)",
            (query, int(tags_only), int(use_regex), now),
        )
        await connection.commit()

        if cursor.rowcount == 0:
            return None
        return cursor.lastrowid

    async def list_searches(self) -> List[Dict[str, Any]]:
        """List saved searches, newest first."""
        connection = self._require_connection()

        cursor = await connection.execute("SELECT * FROM saved_searches ORDER BY id DESC")
        rows = await cursor.fetchall()

        return [self._row_to_dict(row) for row in rows]

    async def get_search(self, search_id: int) -> Optional[Dict[str, Any]]:
        """Get a saved search by ID.

        Args:
            search_id: Saved search ID

        Returns:
            Saved search dict or None if not found
        """
        connection = self._require_connection()

        cursor = await connection.execute(
            "SELECT * FROM saved_searches WHERE id = ?",
            (search_id,)
        )
        row = await cursor.fetchone()

        if row is None:
            return None

        return self._row_to_dict(row)

    async def delete_search(self, search_id: int) -> bool:
        """Delete a saved search.

        Args:
            search_id: Saved search ID

        Returns:
            True if deleted, False if not found
        """
        connection = self._require_connection()

        cursor = await connection.execute(
            "DELETE FROM saved_searches WHERE id = ?",
            (search_id,)
        )
        await connection.commit()

        return cursor.rowcount > 0

    def _row_to_dict(self, row: aiosqlite.Row) -> Dict[str, Any]:
        result = dict(row)
        result["tags_only"] = bool(result["tags_only"])
        result["use_regex"] = bool(result["use_regex"])
        return result


# Global store instance
_saved_search_store: Optional[SavedSearchStore] = None


async def get_saved_search_store() -> SavedSearchStore:
    """Get or create the global saved search store instance.

    Returns:
        Initialized SavedSearchStore
    """
    global _saved_search_store

    if _saved_search_store is None:
        from src.config import get_config
        _saved_search_store = SavedSearchStore(get_config().saved_searches_db_path)
        await _saved_search_store.initialize()

    return _saved_search_store
