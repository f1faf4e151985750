"""
Role list parsing for aclguard.

Rule values are role strings such as ``"admin, viewer  # read-only too"``.
This module turns them into the ordered role lists the resolver returns.
"""

from __future__ import annotations


def parse_roles(raw: str) -> list[str]:
    """
    Parse a role string into an ordered list of role names.

    Everything after the first ``#`` is a comment. The remainder is split
    on commas, each entry is stripped, and empty entries are dropped.
    Order is preserved and duplicates are kept.

    Args:
        raw: The role string from a rule table value.

    Returns:
        The role names in declaration order.

    Example:
        >>> parse_roles("  r1 , r2 # note")
        ['r1', 'r2']
        >>> parse_roles("# only a comment")
        []
    """
    comment_idx = raw.find("#")
    if comment_idx >= 0:
        raw = raw[:comment_idx]

    return [role.strip() for role in raw.split(",") if role.strip()]


def roles_of(value: object) -> list[str]:
    """Roles for a rule table value; non-string values grant no roles."""
    if isinstance(value, str):
        return parse_roles(value)
    return []

