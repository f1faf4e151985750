"""Tests for the rule key grammar."""

from __future__ import annotations

import logging

import pytest

from aclguard.rules.keys import (
    KeyKind,
    format_signature,
    normalize_key,
    normalize_table,
    parse_key,
)
from aclguard.rules.matchers import ExactMatcher, RegexMatcher


class TestNormalizeKey:
    """Test whitespace normalization of keys."""

    def test_plain_name_unchanged(self):
        assert normalize_key("doit") == "doit"

    def test_signature_whitespace_removed(self):
        raw = "testIt( java.lang.String ,java.lang.String)"
        assert normalize_key(raw) == "testIt(java.lang.String,java.lang.String)"

    def test_whitespace_inside_literal_kept(self):
        raw = 'testIt( java.lang.String )[" a b " ]'
        assert normalize_key(raw) == 'testIt(java.lang.String)[" a b "]'

    def test_whitespace_before_literal_removed(self):
        assert normalize_key('testIt[ " cd "]') == 'testIt[" cd "]'

    def test_regex_whitespace(self):
        assert normalize_key("foo[  /ab/]") == "foo[/ab/]"
        assert normalize_key("foo[/a b/ , /c/]") == "foo[/a b/,/c/]"

    def test_comma_inside_literal(self):
        assert normalize_key('foo["a",","]') == 'foo["a",","]'
        assert normalize_key('foo[",", "a"]') == 'foo[",","a"]'

    def test_delimiter_inside_literal(self):
        assert normalize_key('foo[ "cd""]') == 'foo["cd""]'
        assert normalize_key('foo[ "c d/" ]') == 'foo["c d/"]'

    def test_bracket_inside_literal(self):
        assert normalize_key('foo[ "a"]" ]') == 'foo["a"]"]'
        assert normalize_key('foo[/a] b/ , "c" ]') == 'foo[/a] b/,"c"]'

    def test_normalized_literal_parses_whole(self):
        key = parse_key(normalize_key('foo[ "a"]" ]'))
        assert key.kind is KeyKind.EXACT
        assert key.matchers == (ExactMatcher('a"]'),)

    def test_unterminated_literal_does_not_raise(self):
        assert normalize_key('foo["a b') == 'foo["a b'

    def test_idempotent(self):
        once = normalize_key('bar( String , int )[ /a a/ , / 42 / ]')
        assert normalize_key(once) == once


class TestParseKey:
    """Test key classification."""

    def test_method_key(self):
        key = parse_key("doit")
        assert key.kind is KeyKind.METHOD
        assert key.method_name == "doit"
        assert key.signature is None
        assert key.matchers is None
        assert key.bracketed is False

    def test_signature_key(self):
        key = parse_key("testIt(java.lang.String,java.lang.String)")
        assert key.kind is KeyKind.SIGNATURE
        assert key.method_name == "testIt"
        assert key.signature == ("java.lang.String", "java.lang.String")

    def test_empty_signature(self):
        key = parse_key("foo()")
        assert key.kind is KeyKind.SIGNATURE
        assert key.signature == ()

    def test_array_type_in_signature(self):
        key = parse_key("write([B,int)")
        assert key.kind is KeyKind.SIGNATURE
        assert key.signature == ("[B", "int")

    def test_exact_key(self):
        key = parse_key('foo["ab"]')
        assert key.kind is KeyKind.EXACT
        assert key.signature is None
        assert key.matchers == (ExactMatcher("ab"),)
        assert key.bracketed is True

    def test_exact_key_with_signature(self):
        key = parse_key('setLevel(int)["0"]')
        assert key.kind is KeyKind.EXACT
        assert key.method_name == "setLevel"
        assert key.signature == ("int",)

    def test_regex_key(self):
        key = parse_key("foo(int)[/[01]8/]")
        assert key.kind is KeyKind.REGEX
        assert key.signature == ("int",)
        assert key.matchers == (RegexMatcher("[01]8"),)

    def test_several_regexes(self):
        key = parse_key("foo[/[bc]/,/[^b]/]")
        assert key.matchers == (RegexMatcher("[bc]"), RegexMatcher("[^b]"))

    @pytest.mark.parametrize(
        "key, literals",
        [
            ('foo["a",","]', ("a", ",")),
            ('foo[",","a"]', (",", "a")),
            ('foo["cd""]', ('cd"',)),
            ('foo["cd/"]', ("cd/",)),
            ('foo["a]b"]', ("a]b",)),
            ('foo[" cd "]', (" cd ",)),
        ],
    )
    def test_literals_with_special_characters(self, key: str, literals: tuple[str, ...]):
        parsed = parse_key(key)
        assert parsed.kind is KeyKind.EXACT
        assert tuple(m.value for m in parsed.matchers) == literals

    def test_empty_argument_list(self):
        key = parse_key("foo[]")
        assert key.kind is KeyKind.EXACT
        assert key.matchers == ()

    def test_mixed_matchers_are_invalid(self):
        key = parse_key('foo["a",/b/]')
        assert key.kind is KeyKind.INVALID
        assert key.method_name == "foo"
        assert key.bracketed is True
        assert key.matchers is None

    @pytest.mark.parametrize("key", ["foo[abc]", 'foo["a"', 'foo["a",]', 'foo["a"x]'])
    def test_malformed_argument_list(self, key: str):
        parsed = parse_key(key)
        assert parsed.kind is KeyKind.INVALID
        assert parsed.bracketed is True

    @pytest.mark.parametrize("key", ["foo(", "(int)", "foo(int,)", "foo(int)bar"])
    def test_malformed_head(self, key: str):
        assert parse_key(key).kind is KeyKind.INVALID

    def test_wildcard(self):
        key = parse_key("get*")
        assert key.kind is KeyKind.WILDCARD
        assert key.prefix == "get"

    def test_catch_all_wildcard(self):
        key = parse_key("*")
        assert key.kind is KeyKind.WILDCARD
        assert key.prefix == ""

    def test_prefix_only_for_wildcards(self):
        assert parse_key("doit").prefix == ""

    def test_applies_to(self):
        key = parse_key("foo(int)")
        assert key.applies_to("foo", ("int",))
        assert not key.applies_to("foo", None)
        assert not key.applies_to("bar", ("int",))

    def test_malformed_key_logs_warning(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.WARNING, logger="aclguard.rules.keys"):
            parse_key("onlyLoggedHere(int")
        assert "malformed key 'onlyLoggedHere(int'" in caplog.text


class TestFormatSignature:
    """Test format_signature."""

    def test_with_signature(self):
        assert format_signature("foo", ["java.lang.String", "int"]) == "foo(java.lang.String,int)"

    def test_empty_signature(self):
        assert format_signature("foo", []) == "foo()"

    def test_no_signature(self):
        assert format_signature("foo", None) == "foo"


class TestNormalizeTable:
    """Test normalize_table."""

    def test_keys_are_normalized(self):
        table = normalize_table({"foo( int )": "a", 'bar[ "x y" ]': "b"})
        assert list(table) == ["foo(int)", 'bar["x y"]']

    def test_order_preserved(self):
        table = normalize_table({"c": "1", "a": "2", "b": "3"})
        assert list(table) == ["c", "a", "b"]

    def test_later_duplicate_wins(self):
        table = normalize_table({"foo (int)": "first", "foo(int)": "second"})
        assert dict(table) == {"foo(int)": "second"}

    def test_result_is_read_only(self):
        table = normalize_table({"foo": "a"})
        with pytest.raises(TypeError):
            table["foo"] = "b"  # type: ignore[index]
