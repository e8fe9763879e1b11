"""Shared fixtures for tests."""
import json
import pytest
from pathlib import Path


SAMPLE_BOOKMARKS = {
    "checksum": "test",
    "roots": {
        "bookmark_bar": {
            "children": [
                {
                    "id": "1",
                    "name": "Rust Book",
                    "type": "url",
                    "url": "https://rust-lang.org",
                    "meta_info": {"description": "tag:rust tag:lang"}
                },
                {
                    "id": "2",
                    "name": "Work",
                    "type": "folder",
                    "children": [
                        {
                            "id": "3",
                            "name": "Go Tour",
                            "type": "url",
                            "url": "https://go.dev",
                            "meta_info": {"description": "tag:go"}
                        },
                        {
                            "id": "4",
                            "name": "Café Crème Recipes",
                            "type": "url",
                            "url": "http://recipes.example.com/cafe",
                            "meta_info": {"description": "Coffee notes; tag:Café, tag:food"}
                        }
                    ]
                }
            ],
            "id": "0",
            "name": "Bookmarks Bar",
            "type": "folder"
        },
        "other": {
            "children": [
                {
                    "id": "7",
                    "name": "Python Docs",
                    "type": "url",
                    "url": "https://docs.python.org"
                }
            ],
            "id": "100",
            "name": "Other Bookmarks",
            "type": "folder"
        },
        "synced": {
            "children": [],
            "id": "200",
            "name": "Mobile Bookmarks",
            "type": "folder"
        }
    },
    "version": 1
}


@pytest.fixture
def sample_bookmarks_path(tmp_path):
    """Create a temporary bookmarks file with sample data."""
    bookmarks_file = tmp_path / "Bookmarks"
    bookmarks_file.write_text(json.dumps(SAMPLE_BOOKMARKS, indent=3), encoding="utf-8")
    return bookmarks_file


@pytest.fixture
def sample_bookmarks():
    """Return sample bookmarks as a list (as read_chrome_bookmarks returns)."""
    return [
        {"id": "1", "title": "Rust Book", "url": "https://rust-lang.org", "description": "tag:rust tag:lang", "folder": "bookmark_bar"},
        {"id": "3", "title": "Go Tour", "url": "https://go.dev", "description": "tag:go", "folder": "bookmark_bar/Work"},
        {"id": "4", "title": "Café Crème Recipes", "url": "http://recipes.example.com/cafe", "description": "Coffee notes; tag:Café, tag:food", "folder": "bookmark_bar/Work"},
        {"id": "7", "title": "Python Docs", "url": "https://docs.python.org", "description": "", "folder": "other"},
    ]


@pytest.fixture
def saved_searches_db_path(tmp_path):
    """Return path for a temporary saved searches database."""
    return tmp_path / "test_saved_searches.db"
