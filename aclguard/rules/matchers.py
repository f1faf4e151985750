"""
Argument matchers for aclguard.

A bracketed rule key such as ``foo(java.lang.String)["ab"]`` or
``foo[/[0-9]+/,/.*/]`` carries one matcher per argument. Matchers compare
against the trimmed string form of each actual argument.
"""

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


def argument_text(value: Any) -> str:
    """The string form an argument is matched by."""
    return str(value).strip()


@functools.lru_cache(maxsize=512)
def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.warning(f"Ignoring rule with invalid regular expression /{pattern}/: {e}")
        return None


@dataclass(frozen=True)
class ExactMatcher:
    """Matches an argument whose trimmed string form equals ``value``."""

    value: str

    def matches(self, text: str) -> bool:
        return text == self.value


@dataclass(frozen=True)
class RegexMatcher:
    """
    Matches an argument whose trimmed string form fully matches ``pattern``.

    The pattern is anchored at both ends. A pattern that does not compile
    never matches.
    """

    pattern: str

    def matches(self, text: str) -> bool:
        compiled = _compile(self.pattern)
        if compiled is None:
            return False
        return compiled.fullmatch(text) is not None


Matcher = ExactMatcher | RegexMatcher


def evaluate_matchers(matchers: Sequence[Matcher], args: Sequence[Any]) -> bool:
    """
    Check whether actual arguments satisfy a matcher list.

    Args:
        matchers: One matcher per expected argument.
        args: The actual argument values.

    Returns:
        True if the counts agree and every argument matches the matcher at
        the same position. A count mismatch is not an error, the rule simply
        does not apply.
    """
    if len(matchers) != len(args):
        return False

    return all(
        matcher.matches(argument_text(arg))
        for matcher, arg in zip(matchers, args)
    )
