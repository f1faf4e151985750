"""
Rule table policy engine for aclguard.

This module provides the AclPolicyEngine, the decision point that
enforcement adapters delegate to. It looks up the rule tables for a
resource, resolves the roles required for an invocation and compares them
with the caller's roles.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from aclguard.engines.base import BasePolicyEngine, EngineCapabilities
from aclguard.exceptions import ConfigurationError, InvalidQueryError
from aclguard.resources import FlatResourceResolver, ResourceResolver
from aclguard.rules.keys import KeyKind, normalize_table, parse_key
from aclguard.rules.resolver import NO_RULE, Resolution, resolve
from aclguard.rules.roles import roles_of
from aclguard.sources import InMemoryRuleTableSource, RuleTableSource
from aclguard.types import AuthorizationResult, BulkCheckResult, InvocationKey

if TYPE_CHECKING:
    from aclguard.types import UserContext

logger = logging.getLogger(__name__)

Snapshot = list[tuple[str, Mapping[str, Any]]]


class AclPolicyEngine(BasePolicyEngine):
    """
    Decision point backed by declarative rule tables.

    Each resource maps to one or more rule tables (see ResourceResolver).
    The most specific table that has a rule for the invocation decides.
    When no table has a rule, the invocation is allowed by default; when
    the resource identifier cannot be resolved, every check fails closed.

    Example:
        >>> source = InMemoryRuleTableSource({
        ...     "jmx.acl.foo.bar.Test": {"doit": "master", "get*": "viewer"},
        ... })
        >>> engine = AclPolicyEngine(source=source, resolver=ManagementNameResolver())
        >>> engine.get_required_roles("foo.bar:type=Test", "getName")
        ['viewer']
        >>> user = UserContext(user_id="bob", roles=["viewer"])
        >>> engine.can_invoke(user, "foo.bar:type=Test", "doit")
        False

    Configuration:
        - default_allow: Decision when no rule applies. Defaults to True.
        - role_wildcard: Required-role entry that admits every caller.
            Defaults to "*"; None disables it.
    """

    name = "acl"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        source: RuleTableSource | None = None,
        resolver: ResourceResolver | None = None,
    ) -> None:
        """
        Initialize the AclPolicyEngine.

        Args:
            config: Engine configuration options.
            source: Where rule tables come from. If not provided, an empty
                InMemoryRuleTableSource is created.
            resolver: Maps resource identifiers to table ids. Defaults to
                FlatResourceResolver.

        Raises:
            ConfigurationError: If a configuration value has the wrong type.
        """
        super().__init__(config)

        self.default_allow = self.get_config("default_allow", True)
        if not isinstance(self.default_allow, bool):
            raise ConfigurationError(
                config_key="default_allow",
                expected="a boolean",
                received=self.default_allow,
            )

        self.role_wildcard = self.get_config("role_wildcard", "*")
        if self.role_wildcard is not None and (
            not isinstance(self.role_wildcard, str) or not self.role_wildcard.strip()
        ):
            raise ConfigurationError(
                config_key="role_wildcard",
                expected="a non-empty string or None",
                received=self.role_wildcard,
            )

        self.source = source if source is not None else InMemoryRuleTableSource()
        self.resolver = resolver or FlatResourceResolver()

        logger.debug(
            f"AclPolicyEngine initialized with source={type(self.source).__name__}, "
            f"resolver={type(self.resolver).__name__}"
        )

    @property
    def capabilities(self) -> EngineCapabilities:
        """Get engine capabilities."""
        return EngineCapabilities(
            supports_async=True,
            supports_explain=True,
            supports_advisory=True,
            supports_bulk=True,
            max_batch_size=0,
        )

    def _snapshot(self, resource: str) -> Snapshot:
        """
        Capture the rule tables for a resource, most specific first.

        Every table is copied once here so that the whole decision works
        on one generation of the configuration.
        """
        snapshot: Snapshot = []
        for table_id in self.resolver.candidates(resource):
            table = self.source.get_table(table_id)
            if table is not None:
                snapshot.append((table_id, normalize_table(table)))
        return snapshot

    def _resolve(self, snapshot: Snapshot, key: InvocationKey) -> tuple[Resolution, str | None]:
        for table_id, table in snapshot:
            resolution = resolve(
                key.method_name, key.args, key.signature, table, normalized=True
            )
            if resolution.matched:
                return resolution, table_id
        return NO_RULE, None

    def _admits(self, user: UserContext, roles: Sequence[str]) -> bool:
        if self.role_wildcard is not None and self.role_wildcard in roles:
            return True
        return user.has_any_role(list(roles))

    def get_required_roles(
        self,
        resource: str,
        method_name: str,
        args: Sequence[Any] | None = None,
        signature: Sequence[str] | None = None,
    ) -> list[str] | None:
        """
        Get the roles that may invoke a method on a resource.

        Args:
            resource: The resource identifier.
            method_name: The method being invoked.
            args: Actual argument values, or None if not known.
            signature: Parameter type names, or None if not known.

        Returns:
            The required roles (possibly empty, meaning nobody), or None when
            no rule applies.

        Raises:
            ResourceResolutionError: If the resource identifier is malformed.
        """
        key = InvocationKey.create(method_name, args, signature)
        resolution, _ = self._resolve(self._snapshot(resource), key)
        return resolution.roles

    def evaluate(
        self,
        user: UserContext,
        action: str,
        resource: str,
        context: dict[str, Any] | None = None,
    ) -> AuthorizationResult:
        """
        Evaluate an invocation.

        Args:
            user: The caller.
            action: The method being invoked.
            resource: The resource identifier.
            context: May contain ``args`` (actual argument values) and
                ``signature`` (parameter type names).

        Returns:
            AuthorizationResult with the required roles, the deciding rule
            kind and the matched keys in its metadata.
        """
        ctx = context or {}
        key = InvocationKey.create(action, ctx.get("args"), ctx.get("signature"))
        return self._check(user, resource, key)

    def _check(
        self,
        user: UserContext,
        resource: str,
        key: InvocationKey,
    ) -> AuthorizationResult:
        logger.debug(
            f"Evaluating: user={user.user_id}, resource={resource}, "
            f"method={key.method_name}, signature={key.signature}, "
            f"advisory={key.advisory}"
        )

        try:
            snapshot = self._snapshot(resource)
        except Exception as e:
            logger.warning(f"Denying '{key.method_name}' on '{resource}': {e}")
            return AuthorizationResult.deny(
                reason=f"Rule tables for resource '{resource}' could not be resolved: {e}",
                metadata={"error": type(e).__name__},
            )

        tables = [table_id for table_id, _ in snapshot]
        resolution, table_id = self._resolve(snapshot, key)

        if resolution.roles is None:
            reason = f"No rule for '{key.method_name}' on resource '{resource}'"
            metadata: dict[str, Any] = {"required_roles": None}
            if self.default_allow:
                return AuthorizationResult.allow(reason=reason, policies=tables, metadata=metadata)
            return AuthorizationResult.deny(reason=reason, policies=tables, metadata=metadata)

        metadata = {
            "required_roles": resolution.roles,
            "rule_kind": resolution.kind.value if resolution.kind else None,
            "matched_keys": list(resolution.keys),
            "table_id": table_id,
        }

        if self._admits(user, resolution.roles):
            reason = f"Rule {list(resolution.keys)} in '{table_id}' allowed '{key.method_name}'"
            logger.debug(f"Result: allowed=True, reason={reason}")
            return AuthorizationResult.allow(reason=reason, policies=tables, metadata=metadata)

        reason = (
            f"User '{user.user_id}' lacks any of the roles {resolution.roles} "
            f"required for '{key.method_name}'"
        )
        logger.debug(f"Result: allowed=False, reason={reason}")
        return AuthorizationResult.deny(reason=reason, policies=tables, metadata=metadata)

    def can_invoke(
        self,
        user: UserContext,
        resource: str,
        method_name: str | None = None,
        args: Sequence[Any] | None = None,
        signature: Sequence[str] | None = None,
    ) -> bool:
        """
        Check whether a caller may invoke a method, or anything, on a resource.

        Without ``method_name`` this is the resource-level check of
        can_invoke_resource(). Without ``args`` the check is advisory: the
        caller may be allowed for some argument values but not others.

        Never raises; a resource that cannot be resolved yields False.
        """
        if method_name is None:
            return self.can_invoke_resource(user, resource)

        key = InvocationKey.create(method_name, args, signature)
        return self._check(user, resource, key).allowed

    def can_invoke_resource(self, user: UserContext, resource: str) -> bool:
        """
        Check whether the caller may invoke at least one operation on a resource.

        With an operation catalog for the resource, each operation is checked
        in advisory mode. Without one, the rule tables are inspected: unless a
        catch-all ``*`` rule covers every method, some unlisted operation
        falls back to the default decision; otherwise the caller needs one of
        the roles named anywhere in the tables.

        Never raises; a resource that cannot be resolved yields False.
        """
        try:
            snapshot = self._snapshot(resource)
            operations = self.source.get_operations(resource)
        except Exception as e:
            logger.warning(f"Denying resource-level access to '{resource}': {e}")
            return False

        if operations is not None:
            for operation in operations:
                try:
                    key = InvocationKey.from_query(operation)
                except InvalidQueryError as e:
                    logger.warning(f"Skipping operation of '{resource}': {e}")
                    continue
                resolution, _ = self._resolve(snapshot, key)
                if resolution.roles is None:
                    if self.default_allow:
                        return True
                elif self._admits(user, resolution.roles):
                    return True
            return False

        if not snapshot:
            return self.default_allow

        has_catch_all = any(
            parse_key(k).kind is KeyKind.WILDCARD and parse_key(k).prefix == ""
            for _, table in snapshot
            for k in table
        )
        if not has_catch_all and self.default_allow:
            return True

        return any(
            self._admits(user, roles_of(value))
            for _, table in snapshot
            for value in table.values()
        )

    def can_invoke_bulk(
        self,
        user: UserContext,
        query: Mapping[str, Sequence[str]],
    ) -> list[BulkCheckResult]:
        """
        Answer many checks at once.

        Args:
            user: The caller.
            query: Resource identifiers mapped to method queries such as
                ``"foo"`` or ``"foo(java.lang.String,int)"``. An empty list
                asks for the resource-level check. A bare name covers every
                overload the resource's operation catalog lists.

        Returns:
            One row per (resource, method) pair, in query order. Every pair
            is evaluated on its own; a malformed query only fails its row.

        Example:
            >>> engine.can_invoke_bulk(user, {
            ...     "org.apache.karaf:type=bundle,name=root": ["getBundles()", "uninstall(long)"],
            ...     "org.apache.karaf:type=config,name=root": [],
            ... })
        """
        results: list[BulkCheckResult] = []

        for resource, methods in query.items():
            if not methods:
                allowed = self.can_invoke_resource(user, resource)
                results.append(BulkCheckResult(resource=resource, method="", allowed=allowed))
                continue

            for method in methods:
                try:
                    key = InvocationKey.from_query(method)
                except InvalidQueryError as e:
                    logger.warning(f"Bulk check on '{resource}': {e}")
                    allowed = False
                else:
                    allowed = self._check_query(user, resource, key)
                results.append(BulkCheckResult(resource=resource, method=method, allowed=allowed))

        logger.debug(f"Bulk check for user={user.user_id}: {len(results)} rows")
        return results

    def _check_query(self, user: UserContext, resource: str, key: InvocationKey) -> bool:
        """
        Answer one bulk row.

        A bare method name stands for every overload of that name. When the
        resource's operation catalog lists overloads, the row is allowed if
        any of them is; otherwise the name is resolved without a signature.
        """
        if key.signature is None:
            try:
                overloads = self._overloads(resource, key.method_name)
            except Exception as e:
                logger.warning(f"Denying '{key.method_name}' on '{resource}': {e}")
                return False
            if overloads:
                return any(self._check(user, resource, o).allowed for o in overloads)

        return self._check(user, resource, key).allowed

    def _overloads(self, resource: str, method_name: str) -> list[InvocationKey]:
        overloads = []
        for operation in self.source.get_operations(resource) or ():
            try:
                key = InvocationKey.from_query(operation)
            except InvalidQueryError:
                continue
            if key.method_name == method_name and key.signature is not None:
                overloads.append(key)
        return overloads

    def explain(
        self,
        user: UserContext,
        resource: str,
        method_name: str,
        args: Sequence[Any] | None = None,
        signature: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        """
        Explain an authorization decision.

        Provides detailed information about how a decision was made,
        useful for debugging rule tables.

        Returns:
            Dictionary containing explanation details.
        """
        key = InvocationKey.create(method_name, args, signature)
        result = self._check(user, resource, key)

        explanation: dict[str, Any] = {
            "decision": "ALLOW" if result.allowed else "DENY",
            "reason": result.reason,
            "tables_consulted": result.policies_evaluated,
            "user": {
                "user_id": user.user_id,
                "roles": user.roles,
            },
            "request": {
                "resource": resource,
                **key.to_dict(),
            },
            "default_allow": self.default_allow,
        }
        explanation.update(result.metadata)
        return explanation
