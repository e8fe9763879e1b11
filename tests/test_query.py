"""Tests for query module (tokenizer and parser)."""
import pytest

from src.query import (
    And,
    Not,
    Or,
    QueryTooDeepError,
    Term,
    Token,
    TokenType,
    left_spine,
    parse,
    parse_query,
    tokenize,
)


def types(query):
    return [t.type for t in tokenize(query)]


class TestTokenize:
    def test_empty_query(self):
        assert tokenize("") == []
        assert tokenize("   ") == []
        assert tokenize(None) == []

    def test_bare_terms(self):
        assert tokenize("rust  go") == [
            Token(TokenType.TERM, "rust"),
            Token(TokenType.TERM, "go"),
        ]

    def test_keywords_case_insensitive(self):
        assert types("a and b Or not c") == [
            TokenType.TERM, TokenType.AND, TokenType.TERM,
            TokenType.OR, TokenType.NOT, TokenType.TERM,
        ]

    def test_keyword_prefix_is_a_term(self):
        assert tokenize("ANDROID notes oregon") == [
            Token(TokenType.TERM, "ANDROID"),
            Token(TokenType.TERM, "notes"),
            Token(TokenType.TERM, "oregon"),
        ]

    def test_parentheses_split_terms(self):
        assert tokenize("(a OR b)") == [
            Token(TokenType.LPAREN, "("),
            Token(TokenType.TERM, "a"),
            Token(TokenType.OR, "OR"),
            Token(TokenType.TERM, "b"),
            Token(TokenType.RPAREN, ")"),
        ]

    def test_quoted_phrase(self):
        assert tokenize('"go tour" rust') == [
            Token(TokenType.TERM, "go tour"),
            Token(TokenType.TERM, "rust"),
        ]

    def test_quoting_suppresses_keywords(self):
        assert tokenize('"AND" "not this"') == [
            Token(TokenType.TERM, "AND"),
            Token(TokenType.TERM, "not this"),
        ]

    def test_unterminated_quote_is_text(self):
        assert tokenize('"go tour') == [
            Token(TokenType.TERM, '"go'),
            Token(TokenType.TERM, "tour"),
        ]

    def test_terms_kept_verbatim(self):
        assert tokenize("re:^HTTP:// /Café/") == [
            Token(TokenType.TERM, "re:^HTTP://"),
            Token(TokenType.TERM, "/Café/"),
        ]


class TestParse:
    def test_empty_tokens(self):
        assert parse([]) is None

    def test_single_term(self):
        assert parse_query("rust") == Term("rust")

    def test_quoted_keyword_is_term(self):
        assert parse(tokenize('"AND"')) == Term("AND")

    def test_implicit_and(self):
        assert parse_query("a b") == And(Term("a"), Term("b"))
        assert parse_query("a b") == parse_query("a AND b")

    def test_and_is_left_associative(self):
        assert parse_query("a b AND c") == And(And(Term("a"), Term("b")), Term("c"))

    def test_and_binds_tighter_than_or(self):
        expected = Or(Term("a"), And(Term("b"), Term("c")))
        assert parse_query("a OR b AND c") == expected
        assert parse_query("a OR (b AND c)") == expected

    def test_implicit_and_binds_tighter_than_or(self):
        assert parse_query("a b OR c") == Or(And(Term("a"), Term("b")), Term("c"))

    def test_grouping(self):
        assert parse_query("(a OR b) c") == And(Or(Term("a"), Term("b")), Term("c"))

    def test_not_is_prefix(self):
        assert parse_query("NOT a b") == And(Not(Term("a")), Term("b"))

    def test_double_not(self):
        assert parse_query("NOT NOT x") == Not(Not(Term("x")))

    def test_not_starts_implicit_and(self):
        assert parse_query("a NOT b") == And(Term("a"), Not(Term("b")))

    def test_not_group(self):
        assert parse_query("NOT (a OR b)") == Not(Or(Term("a"), Term("b")))


class TestParseRecovery:
    def test_unterminated_group_with_dangling_operator(self):
        assert parse_query("(a AND") == Term("a")

    def test_unclosed_paren_closed_at_end(self):
        assert parse_query("(a OR b") == Or(Term("a"), Term("b"))

    def test_leading_operator_dropped(self):
        assert parse_query("AND a") == Term("a")
        assert parse_query("OR a") == Term("a")

    def test_doubled_operator(self):
        assert parse_query("a OR OR b") == Or(Term("a"), Term("b"))
        assert parse_query("a AND OR b") == And(Term("a"), Term("b"))

    def test_operator_before_not(self):
        assert parse_query("a AND AND NOT b") == And(Term("a"), Not(Term("b")))

    def test_trailing_not_dropped(self):
        assert parse_query("a NOT") == Term("a")

    def test_unmatched_close_paren_skipped(self):
        assert parse_query("a ) b") == And(Term("a"), Term("b"))
        assert parse_query(") a") == Term("a")

    def test_empty_group(self):
        assert parse_query("() a") == Term("a")
        assert parse_query("()") is None

    def test_operators_only(self):
        assert parse_query("AND OR NOT") is None

    @pytest.mark.parametrize("query", [
        "(((", ")))", "NOT", "a AND (", "( OR ) AND", '"', 'NOT ( NOT', "a ( b ) ) ( c",
    ])
    def test_never_raises(self, query):
        parse_query(query)


class TestDepthLimit:
    def test_nested_parens_rejected(self):
        query = "(" * 20 + "a" + ")" * 20
        with pytest.raises(QueryTooDeepError):
            parse_query(query, max_depth=10)

    def test_long_not_chain_rejected(self):
        with pytest.raises(QueryTooDeepError):
            parse_query("NOT " * 20 + "a", max_depth=10)

    def test_long_or_chain_accepted(self):
        query = " OR ".join(f"w{i}" for i in range(1000))
        spine, leftmost = left_spine(parse_query(query, max_depth=10))
        assert len(spine) == 999
        assert all(isinstance(node, Or) for node in spine)
        assert leftmost == Term("w0")
        assert spine[0].right == Term("w999")

    def test_long_implicit_and_chain_accepted(self):
        query = " ".join(f"t{i}" for i in range(1000))
        spine, leftmost = left_spine(parse_query(query))
        assert len(spine) == 999
        assert all(isinstance(node, And) for node in spine)
        assert leftmost == Term("t0")

    def test_chain_inside_parens_counts_one_level(self):
        query = "(" + " OR ".join(f"w{i}" for i in range(50)) + ")"
        spine, _ = left_spine(parse_query(query, max_depth=1))
        assert len(spine) == 49

    def test_within_limit_accepted(self):
        query = "(" * 5 + "a" + ")" * 5
        assert parse_query(query, max_depth=10) == Term("a")

    def test_default_limit_rejects_adversarial_input(self):
        with pytest.raises(QueryTooDeepError):
            parse_query("(" * 5000 + "a")

    def test_is_value_error(self):
        assert issubclass(QueryTooDeepError, ValueError)
