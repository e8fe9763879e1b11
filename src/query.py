"""Boolean query language: tokenizer, AST and recursive-descent parser.

Grammar (precedence low to high):
    or_expr  -> and_expr (OR and_expr)*
    and_expr -> not_expr ((AND)? not_expr)*     adjacency is an implicit AND
    not_expr -> NOT not_expr | primary
    primary  -> '(' or_expr ')' | TERM

The parser never fails on malformed syntax. Stray operators are dropped,
an unclosed '(' is closed at end of input and an unmatched ')' is skipped.
The only error it raises is QueryTooDeepError for pathologically nested
queries.
"""
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Sequence, Union


DEFAULT_MAX_DEPTH = 100


class QueryTooDeepError(ValueError):
    """Raised when a query nests deeper than the configured limit."""


class TokenType(Enum):
    LPAREN = auto()
    RPAREN = auto()
    AND = auto()
    OR = auto()
    NOT = auto()
    TERM = auto()


@dataclass(frozen=True)
class Token:
    """A single lexical token."""

    type: TokenType
    value: str = ""


# --------------------------------------------------------------------------
# AST
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class Term:
    """Leaf node. ``raw`` is the term text exactly as typed."""

    raw: str


@dataclass(frozen=True)
class Not:
    inner: "Expression"


@dataclass(frozen=True)
class And:
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class Or:
    left: "Expression"
    right: "Expression"


Expression = Union[Term, Not, And, Or]


def left_spine(expr: Expression):
    """Split off the chain of AND/OR nodes down the left edge of a tree.

    Operator chains such as ``a OR b OR c ...`` parse into left-leaning
    trees as tall as the chain is long. Walking the spine in a loop keeps
    recursion bounded by parenthesis/NOT nesting instead.

    Returns:
        (spine, leftmost) where spine lists the AND/OR nodes from the root
        down and leftmost is the first node that is not AND/OR
    """
    spine = []
    while isinstance(expr, (And, Or)):
        spine.append(expr)
        expr = expr.left
    return spine, expr


# --------------------------------------------------------------------------
# Tokenizer
# --------------------------------------------------------------------------

_TOKEN_RE = re.compile(
    r"""
    \s*
    (?:
        (\()            |   # 1: left paren
        (\))            |   # 2: right paren
        "([^"]+)"       |   # 3: quoted term
        ([^\s()]+)          # 4: bare term or keyword
    )
    """,
    re.VERBOSE,
)

_KEYWORDS = {
    "AND": TokenType.AND,
    "OR": TokenType.OR,
    "NOT": TokenType.NOT,
}


def tokenize(query: Optional[str]) -> List[Token]:
    """Split a raw query string into tokens.

    Quoted spans become a single TERM with the quotes removed and are never
    read as keywords. An unterminated quote is ordinary text.

    Args:
        query: Raw query string

    Returns:
        Tokens in left-to-right order (empty for an empty query)
    """
    tokens: List[Token] = []

    for match in _TOKEN_RE.finditer(query or ""):
        lparen, rparen, quoted, bare = match.groups()
        if lparen:
            tokens.append(Token(TokenType.LPAREN, "("))
        elif rparen:
            tokens.append(Token(TokenType.RPAREN, ")"))
        elif quoted is not None:
            tokens.append(Token(TokenType.TERM, quoted))
        else:
            keyword = _KEYWORDS.get(bare.upper())
            if keyword is not None:
                tokens.append(Token(keyword, bare.upper()))
            else:
                tokens.append(Token(TokenType.TERM, bare))

    return tokens


# --------------------------------------------------------------------------
# Parser
# --------------------------------------------------------------------------

_FACTOR_START = {TokenType.TERM, TokenType.NOT, TokenType.LPAREN}


class _Parser:
    """Single-pass parser over a token list with one token of lookahead."""

    def __init__(self, tokens: Sequence[Token], max_depth: int):
        self._tokens = list(tokens)
        self._pos = 0
        self._max_depth = max_depth
        self._nesting = 0

    def parse(self) -> Optional[Expression]:
        expr: Optional[Expression] = None

        while self._peek() is not None:
            # parse_or only stops early on an unmatched ')'
            if self._peek_is(TokenType.RPAREN):
                self._consume()
                continue
            expr = self._join(And, expr, self._parse_or())

        return expr

    def _parse_or(self) -> Optional[Expression]:
        node = self._parse_and()
        while self._peek_is(TokenType.OR):
            self._consume()
            node = self._join(Or, node, self._parse_and())
        return node

    def _parse_and(self) -> Optional[Expression]:
        node = self._parse_not()
        while True:
            if self._peek_is(TokenType.AND):
                self._consume()
            elif not self._peek_is_factor_start():
                break
            node = self._join(And, node, self._parse_not())
        return node

    def _parse_not(self) -> Optional[Expression]:
        if not self._peek_is(TokenType.NOT):
            return self._parse_primary()

        self._consume()
        self._enter()
        inner = self._parse_not()
        self._nesting -= 1

        if inner is None:
            return None
        return Not(inner)

    def _parse_primary(self) -> Optional[Expression]:
        while True:
            token = self._peek()
            if token is None or token.type == TokenType.RPAREN:
                return None
            if token.type == TokenType.NOT:
                return self._parse_not()

            self._consume()

            if token.type == TokenType.TERM:
                return Term(token.value)

            if token.type == TokenType.LPAREN:
                self._enter()
                inner = self._parse_or()
                self._nesting -= 1
                if self._peek_is(TokenType.RPAREN):
                    self._consume()
                return inner

            # Stray AND/OR where a factor belongs: drop it

    def _join(self, node_type, left: Optional[Expression], right: Optional[Expression]) -> Optional[Expression]:
        """Combine two optional subtrees, keeping whichever side exists."""
        if left is None:
            return right
        if right is None:
            return left
        return node_type(left, right)

    def _enter(self) -> None:
        """Track one more level of '(' or NOT nesting."""
        self._nesting += 1
        if self._nesting > self._max_depth:
            raise QueryTooDeepError(
                f"Query is nested too deeply (limit is {self._max_depth} levels)"
            )

    def _peek(self) -> Optional[Token]:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _peek_is(self, token_type: TokenType) -> bool:
        token = self._peek()
        return token is not None and token.type == token_type

    def _peek_is_factor_start(self) -> bool:
        token = self._peek()
        return token is not None and token.type in _FACTOR_START

    def _consume(self) -> Token:
        token = self._tokens[self._pos]
        self._pos += 1
        return token


def parse(tokens: Sequence[Token], max_depth: int = DEFAULT_MAX_DEPTH) -> Optional[Expression]:
    """Parse tokens into a boolean expression tree.

    Args:
        tokens: Output of tokenize()
        max_depth: Maximum '(' / NOT nesting accepted. Flat AND/OR chains
            of any length are not limited.

    Returns:
        Root of the expression tree, or None when no term survives
        (empty input, or input made only of operators and parentheses)

    Raises:
        QueryTooDeepError: If the query exceeds max_depth
    """
    return _Parser(tokens, max_depth).parse()


def parse_query(query: Optional[str], max_depth: int = DEFAULT_MAX_DEPTH) -> Optional[Expression]:
    """Tokenize and parse a raw query string."""
    return parse(tokenize(query), max_depth=max_depth)
