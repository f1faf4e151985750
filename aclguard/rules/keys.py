"""
Rule table key grammar for aclguard.

Keys name the invocations a rule applies to:

    myMethod = role1, role2                  # any overload, any arguments
    myMethod(int) = role4                    # signature match
    myMethod(java.lang.String, int) = role5  # signature match
    myMethod(int)["19"] = role3              # exact argument value
    myMethod(int)[/[01]8/] = role2           # regex, anchored at both ends
    myMethod["a", "b"] = role7               # argument values, any overload
    my* = role6                              # method name prefix

Whitespace is insignificant except inside quoted literals and regular
expressions, so keys are normalized before they are compared.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from aclguard.rules.matchers import ExactMatcher, Matcher, RegexMatcher

logger = logging.getLogger(__name__)

_SPAN_DELIMITERS = ('"', "/")
_SPAN_OPENERS = ("[", ",")


class KeyKind(Enum):
    """Category of a parsed rule key."""

    METHOD = "method"
    SIGNATURE = "signature"
    EXACT = "exact"
    REGEX = "regex"
    WILDCARD = "wildcard"
    INVALID = "invalid"


@dataclass(frozen=True)
class RuleKey:
    """
    A normalized rule key broken into its parts.

    Attributes:
        key: The normalized key text, as stored in the normalized table.
        kind: Which grammar form the key uses.
        method_name: The method the rule applies to. For wildcards this is
            the prefix; for unparseable keys it may be empty.
        signature: Parameter type names, or None when the key has no
            parenthesized signature.
        matchers: Per-argument matchers for bracketed keys, otherwise None.
        bracketed: Whether the key carries an argument list, even one that
            failed to parse.
    """

    key: str
    kind: KeyKind
    method_name: str = ""
    signature: tuple[str, ...] | None = None
    matchers: tuple[Matcher, ...] | None = None
    bracketed: bool = False

    @property
    def prefix(self) -> str:
        """The method name prefix of a wildcard key."""
        return self.method_name if self.kind is KeyKind.WILDCARD else ""

    def applies_to(self, method_name: str, signature: tuple[str, ...] | None) -> bool:
        """Whether this key names exactly the given method shape."""
        return self.method_name == method_name and self.signature == signature


def normalize_key(raw: str) -> str:
    """
    Remove insignificant whitespace from a rule key.

    A ``"`` or ``/`` directly after ``[`` or ``,`` opens a literal span. The
    span ends at the next identical delimiter that is followed by ``,`` or by
    nothing but the closing ``]``, ignoring whitespace. This is the rule
    parse_key() uses to find the end of a literal, so a ``]`` may appear
    inside one. Whitespace inside a span is kept, everything else is
    dropped. A span that never closes is not an error: the rest of the key
    is treated as part of it.

    Example:
        >>> normalize_key('testIt( java.lang.String )[" a b " ]')
        'testIt(java.lang.String)[" a b "]'
    """
    out: list[str] = []
    delimiter: str | None = None

    for i, c in enumerate(raw):
        if delimiter is None and c.isspace():
            continue

        if delimiter is None:
            if c in _SPAN_DELIMITERS and out and out[-1] in _SPAN_OPENERS:
                delimiter = c
        elif c == delimiter and _closes_span(raw, i + 1):
            delimiter = None

        out.append(c)

    return "".join(out)


def _closes_span(text: str, start: int) -> bool:
    rest = text[start:].strip()
    return rest.startswith(",") or rest == "]"


def format_signature(method_name: str, signature: Sequence[str] | None) -> str:
    """
    Render a method shape the way rule keys spell it.

    Example:
        >>> format_signature("foo", ["java.lang.String", "int"])
        'foo(java.lang.String,int)'
        >>> format_signature("foo", None)
        'foo'
    """
    if signature is None:
        return method_name
    return f"{method_name}({','.join(signature)})"


@functools.lru_cache(maxsize=2048)
def parse_key(key: str) -> RuleKey:
    """
    Classify a normalized key according to the rule grammar.

    Keys that cannot be parsed come back as ``KeyKind.INVALID`` rather than
    raising, so one bad entry never disables the rest of a table.

    Args:
        key: A key already passed through normalize_key().

    Returns:
        The parsed key.
    """
    if key.endswith("*"):
        return RuleKey(key=key, kind=KeyKind.WILDCARD, method_name=key[:-1])

    head, arg_list = _split_head(key)
    shape = _parse_head(head)
    if shape is None:
        logger.warning(f"Ignoring rule with malformed key '{key}'")
        return RuleKey(key=key, kind=KeyKind.INVALID, bracketed=bool(arg_list))

    method_name, signature = shape
    if not arg_list:
        kind = KeyKind.METHOD if signature is None else KeyKind.SIGNATURE
        return RuleKey(key=key, kind=kind, method_name=method_name, signature=signature)

    matchers = _parse_arg_list(arg_list)
    if matchers is None:
        logger.warning(f"Ignoring argument matchers of malformed key '{key}'")
        return RuleKey(
            key=key,
            kind=KeyKind.INVALID,
            method_name=method_name,
            signature=signature,
            bracketed=True,
        )

    if all(isinstance(m, ExactMatcher) for m in matchers):
        kind = KeyKind.EXACT
    elif all(isinstance(m, RegexMatcher) for m in matchers):
        kind = KeyKind.REGEX
    else:
        logger.warning(f"Ignoring key '{key}' that mixes exact and regex matchers")
        kind = KeyKind.INVALID

    return RuleKey(
        key=key,
        kind=kind,
        method_name=method_name,
        signature=signature,
        matchers=matchers if kind is not KeyKind.INVALID else None,
        bracketed=True,
    )


def _split_head(key: str) -> tuple[str, str]:
    """Split ``name(sig)[args]`` into ``name(sig)`` and ``[args]``."""
    paren = key.find("(")
    bracket = key.find("[")

    # Array type names such as "[B" may appear inside the signature.
    if paren >= 0 and (bracket < 0 or paren < bracket):
        close = key.find(")", paren)
        if close < 0:
            return key, ""
        return key[: close + 1], key[close + 1 :]

    if bracket < 0:
        return key, ""
    return key[:bracket], key[bracket:]


def _parse_head(head: str) -> tuple[str, tuple[str, ...] | None] | None:
    paren = head.find("(")
    if paren < 0:
        return (head, None) if head else None

    if not head.endswith(")") or paren == 0:
        return None

    params = head[paren + 1 : -1]
    signature = tuple(params.split(",")) if params else ()
    if any(not p for p in signature):
        return None
    return head[:paren], signature


def _parse_arg_list(arg_list: str) -> tuple[Matcher, ...] | None:
    """
    Parse ``["a","b"]`` or ``[/x/,/y/]`` into matchers.

    A literal ends at the first closing delimiter that is followed by a
    comma or by the end of the list, so literals may themselves contain
    commas, slashes, quotes and brackets.
    """
    if not (arg_list.startswith("[") and arg_list.endswith("]")):
        return None

    inner = arg_list[1:-1]
    matchers: list[Matcher] = []
    i = 0
    while i < len(inner):
        delimiter = inner[i]
        if delimiter not in _SPAN_DELIMITERS:
            return None

        end = _find_span_end(inner, i + 1, delimiter)
        if end is None:
            return None

        text = inner[i + 1 : end]
        matchers.append(ExactMatcher(text) if delimiter == '"' else RegexMatcher(text))

        i = end + 1
        if i < len(inner):
            if inner[i] != ",":
                return None
            i += 1
            if i == len(inner):
                return None

    return tuple(matchers)


def _find_span_end(text: str, start: int, delimiter: str) -> int | None:
    for j in range(start, len(text)):
        if text[j] == delimiter and (j + 1 == len(text) or text[j + 1] == ","):
            return j
    return None


def normalize_table(table: Mapping[str, Any]) -> Mapping[str, Any]:
    """
    Normalize every key of a rule table.

    Returns a read-only snapshot in the original iteration order. When two
    raw keys normalize to the same text, the later one wins.
    """
    normalized: dict[str, Any] = {}
    for raw_key, value in table.items():
        normalized[normalize_key(raw_key)] = value
    return MappingProxyType(normalized)
