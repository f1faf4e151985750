"""
aclguard: role-based authorization for named resources and their methods.

aclguard answers one question: may a caller holding certain roles invoke a
given method, with given arguments, on a given resource? Rules live in
declarative tables that map invocation patterns to role lists, and the
most specific applicable rule decides.

Basic Usage:
    >>> from aclguard import AclPolicyEngine, InMemoryRuleTableSource, UserContext
    >>> from aclguard.resources import ManagementNameResolver
    >>>
    >>> source = InMemoryRuleTableSource({
    ...     "jmx.acl.org.apache.karaf.bundle": {
    ...         "install": "manager",
    ...         "uninstall(long)[\\"0\\"]": "nobody",
    ...         "uninstall": "admin",
    ...         "get*": "viewer",
    ...     },
    ... })
    >>> engine = AclPolicyEngine(source=source, resolver=ManagementNameResolver())
    >>>
    >>> user = UserContext(user_id="karaf", roles=["admin"])
    >>> resource = "org.apache.karaf:type=bundle,name=root"
    >>> engine.can_invoke(user, resource, "uninstall", [42], ["long"])
    True
    >>> engine.can_invoke(user, resource, "uninstall", [0], ["long"])
    False
    >>> engine.can_invoke_bulk(user, {resource: ["getBundles()", "install"]})
"""

__version__ = "0.1.0"

from aclguard.decorators import guarded
from aclguard.engines import (
    AclPolicyEngine,
    BasePolicyEngine,
    EngineCapabilities,
    EngineFactory,
    PolicyEngine,
    create_engine,
)
from aclguard.exceptions import (
    AclGuardError,
    AuthorizationError,
    ConfigurationError,
    InvalidQueryError,
    ResourceResolutionError,
)
from aclguard.resources import (
    FlatResourceResolver,
    ManagementNameResolver,
    ResourceResolver,
)
from aclguard.rules import parse_roles, resolve, resolve_roles
from aclguard.sources import InMemoryRuleTableSource, RuleTableSource
from aclguard.types import (
    AuthorizationResult,
    BulkCheckResult,
    InvocationKey,
    UserContext,
)

__all__ = [
    # Version
    "__version__",
    # Types
    "UserContext",
    "InvocationKey",
    "AuthorizationResult",
    "BulkCheckResult",
    # Engines
    "PolicyEngine",
    "BasePolicyEngine",
    "EngineCapabilities",
    "AclPolicyEngine",
    "EngineFactory",
    "create_engine",
    # Rules
    "parse_roles",
    "resolve",
    "resolve_roles",
    # Sources and resources
    "RuleTableSource",
    "InMemoryRuleTableSource",
    "ResourceResolver",
    "FlatResourceResolver",
    "ManagementNameResolver",
    # Decorators
    "guarded",
    # Exceptions
    "AclGuardError",
    "AuthorizationError",
    "ConfigurationError",
    "InvalidQueryError",
    "ResourceResolutionError",
]
