"""Configuration for the bookmarks query MCP server."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from src.query import DEFAULT_MAX_DEPTH


@dataclass
class SearchConfig:
    """Configuration for query evaluation and result rendering."""
    max_query_depth: int = DEFAULT_MAX_DEPTH  # Parenthesis / NOT nesting limit
    max_results: int = 50  # Results rendered per search

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Create config from environment variables."""
        return cls(
            max_query_depth=int(os.environ.get("BOOKMARKS_MAX_QUERY_DEPTH", str(DEFAULT_MAX_DEPTH))),
            max_results=int(os.environ.get("BOOKMARKS_MAX_RESULTS", "50")),
        )


@dataclass
class Config:
    """Main configuration for the bookmarks query MCP server."""
    search: SearchConfig = field(default_factory=SearchConfig.from_env)
    bookmarks_path: Optional[Path] = None  # None = Chrome profile default
    saved_searches_db_path: Optional[Path] = None  # None = use default
    chrome_profile: str = "Default"

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        bookmarks_str = os.environ.get("BOOKMARKS_FILE")
        db_path_str = os.environ.get("BOOKMARKS_SAVED_SEARCHES_DB")

        return cls(
            search=SearchConfig.from_env(),
            bookmarks_path=Path(bookmarks_str) if bookmarks_str else None,
            saved_searches_db_path=Path(db_path_str) if db_path_str else None,
            chrome_profile=os.environ.get("BOOKMARKS_CHROME_PROFILE", "Default"),
        )


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance.

    Returns:
        Config loaded from environment
    """
    global _config

    if _config is None:
        _config = Config.from_env()

    return _config
