"""
Role resolution for aclguard.

Given a method name, the arguments (if known) and the signature (if known),
find the roles that may invoke it according to a rule table. The most
specific rules win:

1. Exact and regex argument rules for the given signature. All matching
   rules contribute their roles and no more general rule is consulted.
2. The signature rule, e.g. ``foo(java.lang.String)``.
3. Steps 1 and 2 again without a signature: ``foo["x"]``, ``foo[/x/]`` and
   the bare method rule ``foo``.
4. The method name wildcard with the longest matching prefix.

When the arguments are not known (advisory checks), argument rules cannot
be evaluated. Their roles are then returned together with the signature or
method rule, since the call may still be allowed for some argument values.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from aclguard.rules.keys import KeyKind, RuleKey, format_signature, normalize_table, parse_key
from aclguard.rules.matchers import evaluate_matchers
from aclguard.rules.roles import roles_of

logger = logging.getLogger(__name__)

_ARGUMENT_KINDS = (KeyKind.EXACT, KeyKind.REGEX)


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of resolving one invocation against one rule table.

    Attributes:
        roles: The roles allowed to invoke the method, or None when no rule
            applies. An empty list means nobody may invoke it.
        kind: The category of the rule that decided, or None.
        keys: The normalized keys whose roles were collected, in order.
    """

    roles: list[str] | None = None
    kind: KeyKind | None = None
    keys: tuple[str, ...] = field(default_factory=tuple)

    @property
    def matched(self) -> bool:
        return self.roles is not None


NO_RULE = Resolution()


def resolve(
    method_name: str,
    args: Sequence[Any] | None,
    signature: Sequence[str] | None,
    table: Mapping[str, Any],
    *,
    normalized: bool = False,
) -> Resolution:
    """
    Resolve an invocation against a rule table.

    Args:
        method_name: The method being invoked.
        args: The actual argument values, or None when they are not known.
        signature: The parameter type names of the overload being invoked,
            or None when the overload is not known. An empty sequence is the
            zero-argument overload.
        table: The rule table mapping keys to role strings.
        normalized: Set when the table keys already went through
            normalize_table(), to skip normalizing again.

    Returns:
        The Resolution; ``NO_RULE`` when nothing applies.
    """
    rules = _parse_rules(table if normalized else normalize_table(table))
    sig = tuple(s.strip() for s in signature) if signature is not None else None
    arg_values = tuple(args) if args is not None else None

    if sig is not None:
        resolution = _resolve_shape(method_name, sig, arg_values, rules)
        if resolution.matched:
            return resolution

    resolution = _resolve_shape(method_name, None, arg_values, rules)
    if resolution.matched:
        return resolution

    return _resolve_wildcard(method_name, rules)


def resolve_roles(
    method_name: str,
    args: Sequence[Any] | None,
    signature: Sequence[str] | None,
    table: Mapping[str, Any],
    *,
    normalized: bool = False,
) -> list[str] | None:
    """
    Find the roles that may invoke a method.

    Returns:
        The roles allowed to invoke the method, possibly empty (nobody may
        invoke it), or None when no rule applies at all.

    Example:
        >>> table = {"bar(String,int)[/aa/,/42/]": "ra", "bar": "rf"}
        >>> resolve_roles("bar", ["aa", 42], ["String", "int"], table)
        ['ra']
        >>> resolve_roles("bar", [42], ["int"], table)
        ['rf']
    """
    return resolve(method_name, args, signature, table, normalized=normalized).roles


def _parse_rules(table: Mapping[str, Any]) -> list[tuple[RuleKey, Any]]:
    return [(parse_key(key), value) for key, value in table.items()]


def _resolve_shape(
    method_name: str,
    signature: tuple[str, ...] | None,
    args: tuple[Any, ...] | None,
    rules: list[tuple[RuleKey, Any]],
) -> Resolution:
    roles: list[str] = []
    keys: list[str] = []
    argument_kind: KeyKind | None = None

    if args is not None:
        # Exact matches first, then regex matches, each in table order.
        for kind in _ARGUMENT_KINDS:
            for rule, value in rules:
                if rule.kind is not kind or not rule.applies_to(method_name, signature):
                    continue
                if evaluate_matchers(rule.matchers or (), args):
                    argument_kind = argument_kind or kind
                    roles.extend(roles_of(value))
                    keys.append(rule.key)

        if argument_kind is not None:
            logger.debug(
                f"Argument rules {keys} matched "
                f"{format_signature(method_name, signature)}: {roles}"
            )
            return Resolution(roles=roles, kind=argument_kind, keys=tuple(keys))
    else:
        for rule, value in rules:
            if rule.bracketed and rule.applies_to(method_name, signature):
                argument_kind = argument_kind or rule.kind
                roles.extend(roles_of(value))
                keys.append(rule.key)

    plain_kind = KeyKind.METHOD if signature is None else KeyKind.SIGNATURE
    for rule, value in rules:
        if rule.kind is plain_kind and rule.applies_to(method_name, signature):
            roles.extend(roles_of(value))
            keys.append(rule.key)
            return Resolution(roles=roles, kind=plain_kind, keys=tuple(keys))

    if argument_kind is not None:
        # Only reachable without arguments: the argument rules could not be
        # evaluated and there is no plain rule for this shape.
        return Resolution(roles=roles, kind=argument_kind, keys=tuple(keys))
    return NO_RULE


def _resolve_wildcard(method_name: str, rules: list[tuple[RuleKey, Any]]) -> Resolution:
    best: tuple[RuleKey, Any] | None = None
    for rule, value in rules:
        if rule.kind is not KeyKind.WILDCARD or not method_name.startswith(rule.prefix):
            continue
        if best is None or len(rule.prefix) > len(best[0].prefix):
            best = (rule, value)

    if best is None:
        return NO_RULE

    rule, value = best
    logger.debug(f"Wildcard '{rule.key}' matched method '{method_name}'")
    return Resolution(roles=roles_of(value), kind=KeyKind.WILDCARD, keys=(rule.key,))
