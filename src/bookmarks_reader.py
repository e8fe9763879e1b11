"""Chrome bookmarks reader module."""
import json
import os
import sys
from pathlib import Path
from typing import List, Dict, Any, Optional


ROOT_NAMES = ["bookmark_bar", "other", "synced"]


def chrome_user_data_dirs() -> List[Path]:
    """Chrome/Chromium user data directories for this platform, most likely first.

    Raises:
        OSError: On a platform Chrome does not run on
    """
    home = Path.home()
    if os.name == "nt":
        return [home / "AppData" / "Local" / "Google" / "Chrome" / "User Data"]
    if sys.platform == "darwin":
        return [home / "Library" / "Application Support" / "Google" / "Chrome"]
    if os.name == "posix":
        return [home / ".config" / "google-chrome", home / ".config" / "chromium"]
    raise OSError(f"Unsupported operating system: {os.name}")


def get_chrome_bookmarks_path(profile: str = "Default") -> Path:
    """Locate the Bookmarks file of a Chrome profile.

    The first user data directory holding the profile's file wins. When none
    does, the most likely location is returned so the caller can report it.
    """
    candidates = [data_dir / profile / "Bookmarks" for data_dir in chrome_user_data_dirs()]
    return next((candidate for candidate in candidates if candidate.exists()), candidates[0])


def _load_json(bookmarks_path: Path) -> Dict[str, Any]:
    if not bookmarks_path.is_file():
        raise FileNotFoundError(f"Bookmarks file not found at {bookmarks_path}")
    return json.loads(bookmarks_path.read_text(encoding="utf-8"))


def _description(node: Dict[str, Any]) -> str:
    """Free-text description of a bookmark node ("" when absent).

    Chrome keeps extension-provided notes in the node's ``meta_info`` map;
    that is where ``tag:`` markers live.
    """
    meta_info = node.get("meta_info") or {}
    return meta_info.get("description") or node.get("description") or ""


def extract_bookmarks(node: Dict[str, Any], bookmarks: List[Dict[str, str]], path: str = "") -> None:
    """Recursively extract bookmarks from Chrome bookmarks structure.

    Args:
        node: Current node in the bookmarks tree
        bookmarks: List to accumulate bookmarks
        path: Current folder path
    """
    if node.get("type") == "url":
        bookmarks.append({
            "id": node.get("id", ""),
            "title": node.get("name", ""),
            "url": node.get("url", ""),
            "description": _description(node),
            "folder": path,
        })
    elif node.get("type") == "folder":
        folder_name = node.get("name", "")
        new_path = f"{path}/{folder_name}" if path else folder_name
        for child in node.get("children", []):
            extract_bookmarks(child, bookmarks, new_path)


def read_chrome_bookmarks(bookmarks_path: Optional[Path] = None) -> List[Dict[str, str]]:
    """Read all bookmarks from Chrome bookmarks file, in file order.

    Args:
        bookmarks_path: Optional path to bookmarks file. If None, uses default Chrome location.

    Returns:
        List of bookmarks, each with 'id', 'title', 'url', 'description' and 'folder' keys.
        Folder paths use the root key as prefix (e.g., 'bookmark_bar/Subfolder').

    Raises:
        FileNotFoundError: If bookmarks file doesn't exist
        json.JSONDecodeError: If bookmarks file is malformed
    """
    bookmarks_data = _load_json(bookmarks_path or get_chrome_bookmarks_path())

    all_bookmarks = []
    roots = bookmarks_data.get("roots", {})

    for root_name in ROOT_NAMES:
        if root_name in roots:
            for child in roots[root_name].get("children", []):
                extract_bookmarks(child, all_bookmarks, root_name)

    return all_bookmarks
