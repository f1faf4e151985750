"""
Rule table parsing and role resolution.

This package holds the pure, dependency-free core of aclguard: the role
list parser, the key grammar, argument matchers and the resolution
algorithm. Nothing in here keeps state between calls.

Quick Start:
    >>> from aclguard.rules import resolve_roles
    >>> table = {"get*": "viewer", "getAttribute*": "manager"}
    >>> resolve_roles("getAttributeList", None, None, table)
    ['manager']
"""

from __future__ import annotations

from aclguard.rules.keys import (
    KeyKind,
    RuleKey,
    format_signature,
    normalize_key,
    normalize_table,
    parse_key,
)
from aclguard.rules.matchers import (
    ExactMatcher,
    Matcher,
    RegexMatcher,
    evaluate_matchers,
)
from aclguard.rules.resolver import NO_RULE, Resolution, resolve, resolve_roles
from aclguard.rules.roles import parse_roles, roles_of

__all__ = [
    # Roles
    "parse_roles",
    "roles_of",
    # Keys
    "KeyKind",
    "RuleKey",
    "normalize_key",
    "normalize_table",
    "parse_key",
    "format_signature",
    # Matchers
    "Matcher",
    "ExactMatcher",
    "RegexMatcher",
    "evaluate_matchers",
    # Resolution
    "Resolution",
    "NO_RULE",
    "resolve",
    "resolve_roles",
]
