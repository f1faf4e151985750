"""Tests for the guarded decorator."""

from __future__ import annotations

import logging

import pytest

from aclguard.decorators import guarded
from aclguard.engines.acl import AclPolicyEngine
from aclguard.exceptions import AuthorizationError
from aclguard.sources import InMemoryRuleTableSource
from aclguard.types import UserContext


@pytest.fixture()
def config_engine() -> AclPolicyEngine:
    source = InMemoryRuleTableSource({
        "config": {
            "set_property[/password/,/.*/]": "admin",
            "set_property": "editor, admin",
            "resize(int)": "editor",
            "ping(object)": "viewer",
            'tag["a", "b"]': "editor",
            "tag": "admin",
            "read": "",
        },
    })
    return AclPolicyEngine(source=source)


class TestGuardedSync:
    """Test guarded on regular functions."""

    def test_allowed_call_runs(self, config_engine: AclPolicyEngine, editor_user: UserContext):
        @guarded(config_engine, "config")
        def set_property(key: str, value: str, user: UserContext | None = None) -> str:
            return f"{key}={value}"

        assert set_property("color", "red", user=editor_user) == "color=red"

    def test_argument_rule_denies(self, config_engine: AclPolicyEngine, editor_user: UserContext):
        calls = []

        @guarded(config_engine, "config")
        def set_property(key: str, value: str, user: UserContext | None = None) -> None:
            calls.append(key)

        with pytest.raises(AuthorizationError) as exc_info:
            set_property("password", "secret", user=editor_user)

        assert calls == []
        assert exc_info.value.user == "editor_1"
        assert exc_info.value.action == "set_property"
        assert exc_info.value.resource == "config"
        assert exc_info.value.required_roles == ["admin"]

    def test_argument_rule_allows(self, config_engine: AclPolicyEngine, admin_user: UserContext):
        @guarded(config_engine, "config")
        def set_property(key: str, value: str, user: UserContext | None = None) -> str:
            return "stored"

        assert set_property("password", "secret", user=admin_user) == "stored"

    def test_user_passed_positionally(
        self, config_engine: AclPolicyEngine, editor_user: UserContext
    ):
        @guarded(config_engine, "config")
        def set_property(key: str, value: str, user: UserContext | None = None) -> str:
            return value

        assert set_property("color", "red", editor_user) == "red"

    def test_signature_from_annotations(
        self, config_engine: AclPolicyEngine, editor_user: UserContext, viewer_user: UserContext
    ):
        @guarded(config_engine, "config")
        def resize(size: int, user: UserContext | None = None) -> int:
            return size

        assert resize(3, user=editor_user) == 3
        with pytest.raises(AuthorizationError):
            resize(3, user=viewer_user)

    def test_unannotated_parameters(self, config_engine: AclPolicyEngine, viewer_user: UserContext):
        @guarded(config_engine, "config")
        def ping(target, user=None):
            return "pong"

        assert ping("localhost", user=viewer_user) == "pong"

    def test_variadic_arguments(self, config_engine: AclPolicyEngine, editor_user: UserContext):
        @guarded(config_engine, "config")
        def tag(*labels: str, user: UserContext | None = None) -> tuple[str, ...]:
            return labels

        assert tag("a", "b", user=editor_user) == ("a", "b")
        with pytest.raises(AuthorizationError):
            tag("a", user=editor_user)

    def test_method_name_override(self, config_engine: AclPolicyEngine, admin_user: UserContext):
        @guarded(config_engine, "config", method_name="read")
        def fetch(user: UserContext | None = None) -> str:
            return "data"

        with pytest.raises(AuthorizationError) as exc_info:
            fetch(user=admin_user)
        assert exc_info.value.action == "read"

    def test_custom_user_param(self, config_engine: AclPolicyEngine, editor_user: UserContext):
        @guarded(config_engine, "config", user_param="caller")
        def resize(size: int, caller: UserContext | None = None) -> int:
            return size * 2

        assert resize(4, caller=editor_user) == 8

    def test_missing_user(self, config_engine: AclPolicyEngine):
        @guarded(config_engine, "config")
        def resize(size: int, user: UserContext | None = None) -> int:
            return size

        with pytest.raises(AuthorizationError) as exc_info:
            resize(3)
        assert exc_info.value.user == "unknown"
        assert exc_info.value.reason == "No user context provided"

    def test_unlisted_method_allowed_by_default(
        self, config_engine: AclPolicyEngine, guest_user: UserContext
    ):
        @guarded(config_engine, "config")
        def status(user: UserContext | None = None) -> str:
            return "ok"

        assert status(user=guest_user) == "ok"

    def test_preserves_metadata(self, config_engine: AclPolicyEngine):
        @guarded(config_engine, "config")
        def resize(size: int, user: UserContext | None = None) -> int:
            """Resize the pool."""
            return size

        assert resize.__name__ == "resize"
        assert resize.__doc__ == "Resize the pool."

    def test_denial_is_logged(
        self,
        config_engine: AclPolicyEngine,
        viewer_user: UserContext,
        caplog: pytest.LogCaptureFixture,
    ):
        @guarded(config_engine, "config")
        def resize(size: int, user: UserContext | None = None) -> int:
            return size

        with caplog.at_level(logging.INFO, logger="aclguard.decorators"):
            with pytest.raises(AuthorizationError):
                resize(3, user=viewer_user)
        assert "Denied 'resize' on 'config' for user viewer_1" in caplog.text


class TestGuardedAsync:
    """Test guarded on coroutine functions."""

    @pytest.mark.asyncio
    async def test_allowed(self, config_engine: AclPolicyEngine, editor_user: UserContext):
        @guarded(config_engine, "config")
        async def resize(size: int, user: UserContext | None = None) -> int:
            return size + 1

        assert await resize(1, user=editor_user) == 2

    @pytest.mark.asyncio
    async def test_denied(self, config_engine: AclPolicyEngine, editor_user: UserContext):
        @guarded(config_engine, "config")
        async def set_property(key: str, value: str, user: UserContext | None = None) -> None:
            return None

        with pytest.raises(AuthorizationError) as exc_info:
            await set_property("password", "secret", user=editor_user)
        assert exc_info.value.required_roles == ["admin"]

    @pytest.mark.asyncio
    async def test_missing_user(self, config_engine: AclPolicyEngine):
        @guarded(config_engine, "config")
        async def resize(size: int, user: UserContext | None = None) -> int:
            return size

        with pytest.raises(AuthorizationError):
            await resize(1)
