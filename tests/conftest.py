"""
Pytest fixtures for aclguard tests.

Provides common fixtures used across all test modules.
"""

from __future__ import annotations

import pytest

from aclguard.engines.acl import AclPolicyEngine
from aclguard.resources import ManagementNameResolver
from aclguard.sources import InMemoryRuleTableSource
from aclguard.types import UserContext

# ============================================================================
# User Context Fixtures
# ============================================================================


@pytest.fixture
def admin_user() -> UserContext:
    """Create an admin user context for testing."""
    return UserContext(user_id="admin_1", roles=["admin"])


@pytest.fixture
def master_user() -> UserContext:
    return UserContext(user_id="master_1", roles=["master"])


@pytest.fixture
def editor_user() -> UserContext:
    return UserContext(user_id="editor_1", roles=["editor"])


@pytest.fixture
def viewer_user() -> UserContext:
    """Create a read-only user context for testing."""
    return UserContext(
        user_id="viewer_1",
        roles=["viewer"],
        attributes={"department": "operations"},
    )


@pytest.fixture
def guest_user() -> UserContext:
    """Create a user context holding no role mentioned in any table."""
    return UserContext(user_id="guest_0", roles=["guest"])


# ============================================================================
# Rule Table Fixtures
# ============================================================================


@pytest.fixture
def rule_tables() -> dict[str, dict[str, str]]:
    """
    Two tables for ``foo.bar:type=Test``: one for the object itself and one
    for its whole domain.
    """
    return {
        "jmx.acl.foo.bar.Test": {
            "doit": "master",
            "fryIt": "editor, viewer",
            'setLevel(int)["0"]': "admin",
            "setLevel(int)": "editor",
            "shutdown": "",
        },
        "jmx.acl.foo.bar": {
            "get*": "viewer",
            "*": "admin",
        },
    }


@pytest.fixture
def source(rule_tables: dict[str, dict[str, str]]) -> InMemoryRuleTableSource:
    return InMemoryRuleTableSource(rule_tables)


@pytest.fixture
def engine(source: InMemoryRuleTableSource) -> AclPolicyEngine:
    """Create an AclPolicyEngine resolving management object names."""
    return AclPolicyEngine(source=source, resolver=ManagementNameResolver())
