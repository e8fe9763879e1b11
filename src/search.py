"""Boolean search engine for bookmarks.

A query is parsed once into an expression tree (see src.query) and then
evaluated against a MatchContext derived from each bookmark. Every
evaluation is a full linear scan; nothing is ranked, indexed or cached
between searches.
"""
import re
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Protocol, Sequence, Tuple

from src.normalize import normalize_text, normalize_term
from src.query import DEFAULT_MAX_DEPTH, And, Expression, Not, Term, left_spine, parse, tokenize


Document = Dict[str, Any]

_DESCRIPTION_SPLIT = re.compile(r"[\s,;]+")
_TAG_PREFIX = "tag:"
_REGEX_PREFIX = "re:"


class EmptyQueryError(ValueError):
    """Raised when a search is attempted without a query."""


@dataclass(frozen=True)
class MatchContext:
    """Searchable view of one document for one search."""

    combined_text: str
    tag_set: FrozenSet[str]
    tags_text: str
    field_lines: str
    use_regex_all: bool = False
    tags_only: bool = False


@dataclass(frozen=True)
class CollectedTerm:
    """A query term annotated for display."""

    raw: str
    is_regex: bool
    negated: bool


@dataclass
class SearchResult:
    document: Document
    matched_terms: List[CollectedTerm] = field(default_factory=list)


@dataclass
class SearchOutcome:
    """Everything a caller needs to render one search."""

    results: List[SearchResult] = field(default_factory=list)
    terms: List[CollectedTerm] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


# --------------------------------------------------------------------------
# Context building
# --------------------------------------------------------------------------

def build_context(document: Document, use_regex_all: bool = False, tags_only: bool = False) -> MatchContext:
    """Derive the searchable context of a document.

    Args:
        document: Bookmark with 'title', 'url' and 'description' keys
            (missing or None values are treated as empty)
        use_regex_all: Treat every term as a regular expression
        tags_only: Restrict matching to ``tag:`` markers

    Returns:
        MatchContext for this document
    """
    title = document.get("title") or ""
    url = document.get("url") or ""
    description = document.get("description") or ""

    tags: List[str] = []
    for word in _DESCRIPTION_SPLIT.split(description):
        if word[:len(_TAG_PREFIX)].lower() != _TAG_PREFIX:
            continue
        tag = normalize_text(word[len(_TAG_PREFIX):])
        if tag and tag not in tags:
            tags.append(tag)

    return MatchContext(
        combined_text=normalize_text(f"{title} {url} {description}"),
        tag_set=frozenset(tags),
        tags_text=" ".join(tags),
        # Regexes see one field per line so ^ and $ anchor at each field
        field_lines=normalize_text(f"{title}\n{url}\n{description}"),
        use_regex_all=use_regex_all,
        tags_only=tags_only,
    )


# --------------------------------------------------------------------------
# Term matching
# --------------------------------------------------------------------------

def regex_pattern(raw: str) -> Optional[str]:
    """Return the pattern of a term written in regex syntax.

    A term is a regex when it starts with ``re:`` or is wrapped in slashes
    (``/pattern/``). The matcher and the term collector both rely on this
    so that display and matching always agree.

    Args:
        raw: Raw term text

    Returns:
        The pattern with prefix/delimiters removed, or None for a literal term
    """
    if raw.startswith(_REGEX_PREFIX):
        return raw[len(_REGEX_PREFIX):]
    if len(raw) >= 2 and raw.startswith("/") and raw.endswith("/"):
        return raw[1:-1]
    return None


def _resolve_pattern(raw: str, use_regex_all: bool) -> Optional[str]:
    pattern = regex_pattern(raw)
    if pattern is None and use_regex_all:
        pattern = raw
    return pattern


def _compile(pattern: str) -> "re.Pattern[str]":
    return re.compile(pattern, re.IGNORECASE | re.MULTILINE)


def matches(term: str, ctx: MatchContext) -> bool:
    """Check whether a single query term matches a context.

    Regex terms search the tag text (tags-only) or the fields one per line.
    Literal terms are normalized and checked for tag membership (tags-only)
    or as a substring of the combined text. Empty terms and patterns that
    fail to compile match nothing.
    """
    pattern = _resolve_pattern(term, ctx.use_regex_all)

    if pattern is not None:
        if not pattern:
            return False
        try:
            compiled = _compile(pattern)
        except re.error:
            return False
        haystack = ctx.tags_text if ctx.tags_only else ctx.field_lines
        return compiled.search(haystack) is not None

    needle = normalize_term(term)
    if ctx.tags_only and needle.startswith(_TAG_PREFIX):
        needle = normalize_term(needle[len(_TAG_PREFIX):])
    if not needle:
        return False

    if ctx.tags_only:
        return needle in ctx.tag_set
    return needle in ctx.combined_text


def invalid_patterns(terms: Sequence[CollectedTerm], use_regex_all: bool = False) -> List[Tuple[str, str]]:
    """Find regex-mode terms whose pattern does not compile.

    Args:
        terms: Collected query terms
        use_regex_all: Whether every term is evaluated as a regex

    Returns:
        List of (raw term, error message) pairs, one per distinct term
    """
    failures: List[Tuple[str, str]] = []
    seen = set()

    for term in terms:
        if term.raw in seen:
            continue
        seen.add(term.raw)

        pattern = _resolve_pattern(term.raw, use_regex_all)
        if not pattern:
            continue
        try:
            _compile(pattern)
        except re.error as e:
            failures.append((term.raw, str(e)))

    return failures


# --------------------------------------------------------------------------
# Evaluation and term collection
# --------------------------------------------------------------------------

def evaluate(expr: Optional[Expression], ctx: MatchContext) -> bool:
    """Evaluate an expression tree against a context.

    Both sides of AND/OR are always evaluated. An empty expression is false.
    AND/OR chains are walked iteratively, so only '(' / NOT nesting recurses.
    """
    if expr is None:
        return False

    spine, leftmost = left_spine(expr)
    if isinstance(leftmost, Term):
        result = matches(leftmost.raw, ctx)
    elif isinstance(leftmost, Not):
        result = not evaluate(leftmost.inner, ctx)
    else:
        raise TypeError(f"Unknown expression node: {leftmost!r}")

    for node in reversed(spine):
        right = evaluate(node.right, ctx)
        if isinstance(node, And):
            result = result and right
        else:
            result = result or right

    return result


def collect_terms(expr: Optional[Expression], negated: bool = False) -> List[CollectedTerm]:
    """Flatten the terms of an expression tree in query order.

    Each term is marked negated when an odd number of NOT nodes lie on its
    path from the root. This is display annotation only: it says nothing
    about whether the term decided the match.

    Args:
        expr: Root of the expression tree (None yields no terms)
        negated: Negation state inherited from the caller

    Returns:
        One CollectedTerm per Term leaf, left to right
    """
    if expr is None:
        return []

    spine, leftmost = left_spine(expr)
    if isinstance(leftmost, Term):
        collected = [CollectedTerm(
            raw=leftmost.raw,
            is_regex=regex_pattern(leftmost.raw) is not None,
            negated=negated,
        )]
    elif isinstance(leftmost, Not):
        collected = collect_terms(leftmost.inner, not negated)
    else:
        raise TypeError(f"Unknown expression node: {leftmost!r}")

    for node in reversed(spine):
        collected.extend(collect_terms(node.right, negated))

    return collected


# --------------------------------------------------------------------------
# Engines
# --------------------------------------------------------------------------

class SearchEngine(Protocol):
    """Protocol for search engines to allow extensibility."""

    def search(
        self,
        query: str,
        bookmarks: Sequence[Document],
        tags_only: bool = False,
        use_regex_all: bool = False,
    ) -> SearchOutcome:
        """Search bookmarks based on query.

        Args:
            query: Search query string
            bookmarks: Bookmarks to search
            tags_only: Restrict matching to tag: markers
            use_regex_all: Treat every term as a regular expression

        Returns:
            SearchOutcome with matches in bookmark order
        """
        ...


class BooleanSearchEngine:
    """Search engine for AND/OR/NOT queries with regex and tag scoping."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth

    def search(
        self,
        query: str,
        bookmarks: Sequence[Document],
        tags_only: bool = False,
        use_regex_all: bool = False,
    ) -> SearchOutcome:
        """Search bookmarks with a boolean query.

        Args:
            query: Search query string
            bookmarks: Bookmarks to search
            tags_only: Restrict matching to tag: markers
            use_regex_all: Treat every term as a regular expression

        Returns:
            SearchOutcome; each result lists the collected terms that matched it

        Raises:
            EmptyQueryError: If the query is empty or whitespace
            QueryTooDeepError: If the query nests beyond max_depth
        """
        if not query or not query.strip():
            raise EmptyQueryError("No query supplied")

        ast = parse(tokenize(query), max_depth=self.max_depth)
        terms = collect_terms(ast)

        warnings = []
        for raw, message in invalid_patterns(terms, use_regex_all):
            print(f"[search] Invalid regex in term {raw!r}: {message}", file=sys.stderr)
            warnings.append(f"Invalid regular expression {raw!r} ({message}); it matches nothing.")

        results = []
        for bookmark in bookmarks:
            ctx = build_context(bookmark, use_regex_all=use_regex_all, tags_only=tags_only)
            if evaluate(ast, ctx):
                matched = [term for term in terms if matches(term.raw, ctx)]
                results.append(SearchResult(document=bookmark, matched_terms=matched))

        return SearchOutcome(results=results, terms=terms, warnings=warnings)


def search(
    query: str,
    documents: Sequence[Document],
    tags_only: bool = False,
    use_regex_all: bool = False,
) -> List[SearchResult]:
    """Run a boolean search and return just the matching documents."""
    return BooleanSearchEngine().search(
        query, documents, tags_only=tags_only, use_regex_all=use_regex_all
    ).results
