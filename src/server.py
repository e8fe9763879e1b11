"""MCP server for boolean bookmark search."""
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from src.bookmarks_reader import read_chrome_bookmarks, get_chrome_bookmarks_path
from src.config import get_config
from src.normalize import normalize_text
from src.query import QueryTooDeepError
from src.saved_searches import get_saved_search_store
from src.search import BooleanSearchEngine, SearchResult, build_context


EMPTY_QUERY_MESSAGE = "Please enter a search query."
NO_MATCHES_MESSAGE = "No matches found."


def load_bookmarks(bookmarks_path: Optional[Path] = None) -> list:
    """Read bookmarks fresh from disk.

    Bookmarks can change between searches, so nothing is cached.

    Args:
        bookmarks_path: Optional path to bookmarks file

    Returns:
        List of bookmarks (empty if the file can't be read)
    """
    config = get_config()
    if bookmarks_path is None:
        bookmarks_path = config.bookmarks_path or get_chrome_bookmarks_path(config.chrome_profile)

    try:
        return read_chrome_bookmarks(bookmarks_path)
    except FileNotFoundError as e:
        print(f"Warning: Could not find bookmarks file: {e}", file=sys.stderr)
        return []
    except Exception as e:
        print(f"Error loading bookmarks: {e}", file=sys.stderr)
        return []


def _text(text: str) -> List[TextContent]:
    return [TextContent(type="text", text=text)]


def _format_result(result: SearchResult, terms: list) -> Dict[str, Any]:
    """Render one match with every query term flagged as matched or not."""
    bookmark = result.document
    matched = {term.raw for term in result.matched_terms}

    return {
        "title": bookmark.get("title", ""),
        "url": bookmark.get("url", ""),
        "folder": bookmark.get("folder", ""),
        "description": bookmark.get("description", ""),
        "terms": [
            {
                "term": term.raw,
                "matched": term.raw in matched,
                "negated": term.negated,
                "regex": term.is_regex,
            }
            for term in terms
        ],
    }


async def search_bookmarks_tool(query: str, tags_only: bool = False, use_regex: bool = False) -> List[TextContent]:
    """Tool handler for search_bookmarks.

    Args:
        query: Boolean query string
        tags_only: Match only against tag: markers in descriptions
        use_regex: Treat every term as a regular expression

    Returns:
        List of TextContent with JSON results or a status message
    """
    if not query or not query.strip():
        return _text(EMPTY_QUERY_MESSAGE)

    config = get_config()
    bookmarks = load_bookmarks()

    if not bookmarks:
        return _text("No bookmarks available. Please ensure Chrome bookmarks file exists.")

    engine = BooleanSearchEngine(max_depth=config.search.max_query_depth)
    try:
        outcome = engine.search(query, bookmarks, tags_only=tags_only, use_regex_all=use_regex)
    except QueryTooDeepError as e:
        return _text(f"Error: {e}")

    if not outcome.results:
        lines = [NO_MATCHES_MESSAGE] + [f"Warning: {w}" for w in outcome.warnings]
        return _text("\n".join(lines))

    shown = outcome.results[:config.search.max_results]
    payload = {
        "query": query,
        "tags_only": tags_only,
        "use_regex": use_regex,
        "count": len(outcome.results),
        "shown": len(shown),
        "results": [_format_result(r, outcome.terms) for r in shown],
    }
    if outcome.warnings:
        payload["warnings"] = outcome.warnings

    return _text(json.dumps(payload, indent=2))


async def list_tags_tool(prefix: str = "") -> List[TextContent]:
    """Tool handler for list_tags.

    Args:
        prefix: Only list tags starting with this text

    Returns:
        List of TextContent with a JSON map of tag -> bookmark count
    """
    bookmarks = load_bookmarks()
    wanted = normalize_text(prefix)

    counts: Dict[str, int] = {}
    for bookmark in bookmarks:
        for tag in build_context(bookmark).tag_set:
            if tag.startswith(wanted):
                counts[tag] = counts.get(tag, 0) + 1

    if not counts:
        return _text("No tags found.")

    return _text(json.dumps(dict(sorted(counts.items())), indent=2))


async def save_search_tool(query: str, tags_only: bool = False, use_regex: bool = False) -> List[TextContent]:
    """Tool handler for save_search."""
    if not query or not query.strip():
        return _text(EMPTY_QUERY_MESSAGE)

    query = query.strip()
    store = await get_saved_search_store()
    search_id = await store.save_search(query, tags_only=tags_only, use_regex=use_regex)

    if search_id is None:
        return _text(f"Search already saved: {query}")

    return _text(json.dumps({"status": "saved", "id": search_id, "query": query}, indent=2))


async def list_saved_searches_tool() -> List[TextContent]:
    """Tool handler for list_saved_searches."""
    store = await get_saved_search_store()
    saved = await store.list_searches()

    if not saved:
        return _text("No saved searches yet.")

    return _text(json.dumps(saved, indent=2))


async def run_saved_search_tool(search_id: int) -> List[TextContent]:
    """Tool handler for run_saved_search: re-runs a saved query with its flags."""
    store = await get_saved_search_store()
    saved = await store.get_search(search_id)

    if saved is None:
        return _text(f"Saved search not found: {search_id}")

    return await search_bookmarks_tool(
        saved["query"],
        tags_only=saved["tags_only"],
        use_regex=saved["use_regex"],
    )


async def delete_saved_search_tool(search_id: int) -> List[TextContent]:
    """Tool handler for delete_saved_search."""
    store = await get_saved_search_store()

    if not await store.delete_search(search_id):
        return _text(f"Saved search not found: {search_id}")

    return _text(f"Deleted saved search {search_id}")


_QUERY_FLAGS = {
    "tags_only": {
        "type": "boolean",
        "description": "Match only against tag:xxx markers in bookmark descriptions",
        "default": False,
    },
    "use_regex": {
        "type": "boolean",
        "description": "Treat every term as a regular expression",
        "default": False,
    },
}

_SEARCH_ID = {
    "search_id": {
        "type": "integer",
        "description": "ID of the saved search (see list_saved_searches)",
    },
}


def create_server() -> Server:
    """Create and configure the MCP server.

    Returns:
        Configured Server instance
    """
    server = Server("bookmarks-query-mcp")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return [
            Tool(
                name="search_bookmarks",
                description=(
                    "Search bookmarks with a boolean query. Supports AND, OR, NOT "
                    "(adjacent terms are ANDed), parentheses, \"quoted phrases\", and "
                    "regex terms written as re:pattern or /pattern/. Returns each match "
                    "with the query terms it contains."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Boolean query, e.g. 'python AND (tutorial OR docs) NOT video'"
                        },
                        **_QUERY_FLAGS,
                    },
                    "required": ["query"]
                }
            ),
            Tool(
                name="list_tags",
                description="List tags found in bookmark descriptions (tag:xxx) with bookmark counts.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "prefix": {
                            "type": "string",
                            "description": "Only return tags starting with this prefix"
                        }
                    }
                }
            ),
            Tool(
                name="save_search",
                description="Save a query and its flags for later reuse. Duplicates are ignored.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {"type": "string", "description": "Query to save"},
                        **_QUERY_FLAGS,
                    },
                    "required": ["query"]
                }
            ),
            Tool(
                name="list_saved_searches",
                description="List saved searches, newest first.",
                inputSchema={"type": "object", "properties": {}}
            ),
            Tool(
                name="run_saved_search",
                description="Run a saved search with the flags it was saved with.",
                inputSchema={
                    "type": "object",
                    "properties": dict(_SEARCH_ID),
                    "required": ["search_id"]
                }
            ),
            Tool(
                name="delete_saved_search",
                description="Delete a saved search.",
                inputSchema={
                    "type": "object",
                    "properties": dict(_SEARCH_ID),
                    "required": ["search_id"]
                }
            ),
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> list[TextContent]:
        """Handle tool calls."""
        arguments = arguments or {}

        if name == "search_bookmarks":
            return await search_bookmarks_tool(
                arguments.get("query", ""),
                tags_only=bool(arguments.get("tags_only", False)),
                use_regex=bool(arguments.get("use_regex", False)),
            )
        elif name == "list_tags":
            return await list_tags_tool(arguments.get("prefix", ""))
        elif name == "save_search":
            return await save_search_tool(
                arguments.get("query", ""),
                tags_only=bool(arguments.get("tags_only", False)),
                use_regex=bool(arguments.get("use_regex", False)),
            )
        elif name == "list_saved_searches":
            return await list_saved_searches_tool()
        elif name == "run_saved_search":
            return await run_saved_search_tool(int(arguments["search_id"]))
        elif name == "delete_saved_search":
            return await delete_saved_search_tool(int(arguments["search_id"]))
        else:
            raise ValueError(f"Unknown tool: {name}")

    return server


async def main():
    """Main entry point for the MCP server."""
    server = create_server()

    async with stdio_server() as (read_stream, write_stream):
        initialization_options = server.create_initialization_options()
        await server.run(read_stream, write_stream, initialization_options)
