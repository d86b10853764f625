"""
Tests for command parsing and the command registry.
"""

import pytest

from wabot.auto_reply.commands import (
    COMMAND_ERROR_TEXT,
    RATE_LIMITED_TEXT,
    CommandRegistry,
    parse_command,
)
from wabot.security.roles import Role

from conftest import ADMIN, OWNER, USER, make_message


class TestParseCommand:
    """Tests for parse_command."""

    def test_simple_command(self):
        cmd = parse_command("!ping")
        assert cmd.name == "ping"
        assert cmd.arguments == []

    def test_arguments_split_on_whitespace(self):
        cmd = parse_command("!calc  2 +\t2")
        assert cmd.name == "calc"
        assert cmd.arguments == ["2", "+", "2"]

    def test_name_lowercased(self):
        assert parse_command("!MENU").name == "menu"

    @pytest.mark.parametrize("text", ["", "ping", "!", "!   ", " !ping", None])
    def test_not_a_command(self, text):
        assert parse_command(text) is None

    def test_custom_prefix(self):
        assert parse_command("/help me", prefix="/").arguments == ["me"]
        assert parse_command("!help", prefix="/") is None

    def test_multi_character_prefix(self):
        assert parse_command(".bot ping", prefix=".bot").name == "ping"


class TestRegistration:
    """Tests for CommandRegistry.register."""

    def test_register_defaults(self, registry):
        descriptor = registry.register("Hello", lambda t, c, a: None)
        assert descriptor.name == "hello"
        assert descriptor.description == "No description"
        assert descriptor.usage == "!hello"
        assert descriptor.role is Role.USER
        assert descriptor.category == "general"
        assert "HELLO" in registry

    def test_role_string_accepted(self, registry):
        assert registry.register("x", lambda t, c, a: None, role="admin").role is Role.ADMIN

    def test_rejects_empty_name(self, registry):
        with pytest.raises(ValueError):
            registry.register("  ", lambda t, c, a: None)

    def test_rejects_non_callable(self, registry):
        with pytest.raises(TypeError):
            registry.register("x", "not callable")

    def test_reregister_overwrites(self, registry):
        first = lambda t, c, a: None
        second = lambda t, c, a: None
        registry.register("x", first)
        registry.register("x", second, description="new")
        assert len(registry) == 1
        assert registry.get("x").handler is second
        assert registry.get("x").description == "new"

    def test_decorator(self, registry):
        @registry.command("greet", description="Say hi", category="fun")
        async def greet(transport, ctx, args):
            pass

        assert registry.get("greet").handler is greet
        assert registry.get("greet").category == "fun"

    def test_plugin_scope_tags_commands(self, registry):
        with registry.plugin_scope("demo.py") as names:
            registry.register("a", lambda t, c, a: None)
            registry.register("b", lambda t, c, a: None)
        registry.register("c", lambda t, c, a: None)

        assert names == ["a", "b"]
        assert registry.get("a").plugin == "demo.py"
        assert registry.get("c").plugin is None

    def test_unregister(self, registry):
        registry.register("x", lambda t, c, a: None)
        assert registry.unregister("X")
        assert not registry.unregister("x")
        assert registry.get("x") is None


class TestAvailableCommands:
    """Tests for available_commands and help."""

    @pytest.fixture
    def populated(self, registry):
        registry.register("ping", lambda t, c, a: None)
        registry.register("status", lambda t, c, a: None, role=Role.ADMIN)
        registry.register("restart", lambda t, c, a: None, role=Role.OWNER)
        registry.register("menu", lambda t, c, a: None)
        return registry

    def test_user_sees_user_commands_in_order(self, populated):
        names = [d.name for d in populated.available_commands(USER)]
        assert names == ["ping", "menu"]

    def test_admin_sees_admin_commands(self, populated):
        names = [d.name for d in populated.available_commands(ADMIN)]
        assert names == ["ping", "status", "menu"]

    def test_owner_sees_everything(self, populated):
        names = [d.name for d in populated.available_commands(OWNER)]
        assert names == ["ping", "status", "restart", "menu"]

    def test_get_help_hides_forbidden_commands(self, populated):
        assert "restart" not in populated.get_help(USER)
        assert populated.get_help(USER, "restart") == "No help for: restart"
        assert populated.get_help(OWNER, "restart").startswith("!restart")


class TestExecute:
    """Tests for CommandRegistry.execute."""

    @pytest.mark.asyncio
    async def test_unknown_command_is_ignored(self, registry, transport):
        assert not await registry.execute(transport, make_message("!nope"), "nope", [])
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_handler_receives_context(self, registry, transport):
        seen = {}

        async def handler(t, ctx, args):
            seen["ctx"] = ctx
            seen["args"] = args
            await t.send_text(ctx.chat_id, "ok")

        registry.register("echo", handler)
        message = make_message("!echo a b", sender=ADMIN)

        assert await registry.execute(transport, message, "ECHO", ["a", "b"])
        assert seen["args"] == ["a", "b"]
        assert seen["ctx"].role is Role.ADMIN
        assert seen["ctx"].sender_number == ADMIN
        assert seen["ctx"].command == "echo"
        assert seen["ctx"].registry is registry
        assert transport.texts == ["ok"]

    @pytest.mark.asyncio
    async def test_sync_handler(self, registry, transport):
        calls = []
        registry.register("sync", lambda t, c, a: calls.append(a))
        assert await registry.execute(transport, make_message("!sync"), "sync", ["x"])
        assert calls == [["x"]]

    @pytest.mark.asyncio
    async def test_access_denied(self, registry, transport):
        calls = []
        registry.register("restart", lambda t, c, a: calls.append(1), role=Role.OWNER)

        assert not await registry.execute(transport, make_message("!restart"), "restart", [])
        assert calls == []
        assert len(transport.sent) == 1
        notice = transport.texts[0]
        assert "Access Denied" in notice
        assert "owner" in notice
        assert "👤 User" in notice

    @pytest.mark.asyncio
    async def test_reply_goes_to_group_chat(self, registry, transport):
        registry.register("admin", lambda t, c, a: None, role=Role.ADMIN)
        message = make_message("!admin", sender=USER, chat="120363@g.us")

        await registry.execute(transport, message, "admin", [])
        assert transport.sent[0].chat_id == "120363@g.us"

    @pytest.mark.asyncio
    async def test_rate_limit_notice(self, registry, transport):
        calls = []
        registry.register("ping", lambda t, c, a: calls.append(1))

        for _ in range(10):
            assert await registry.execute(transport, make_message("!ping"), "ping", [])
        assert not await registry.execute(transport, make_message("!ping"), "ping", [])

        assert len(calls) == 10
        assert transport.texts == [RATE_LIMITED_TEXT]

    @pytest.mark.asyncio
    async def test_owner_bypasses_rate_limit(self, registry, transport):
        calls = []
        registry.register("ping", lambda t, c, a: calls.append(1))

        for _ in range(25):
            await registry.execute(transport, make_message("!ping", sender=OWNER), "ping", [])
        assert len(calls) == 25
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_denied_calls_consume_rate_limit(self, registry, transport, rate_limiter):
        registry.register("secret", lambda t, c, a: None, role=Role.OWNER)
        await registry.execute(transport, make_message("!secret"), "secret", [])
        assert rate_limiter.get_entry(USER).count == 1

    @pytest.mark.asyncio
    async def test_unknown_commands_do_not_consume_rate_limit(self, registry, transport, rate_limiter):
        await registry.execute(transport, make_message("!nope"), "nope", [])
        assert rate_limiter.get_entry(USER) is None

    @pytest.mark.asyncio
    async def test_handler_error_sends_notice(self, registry, transport):
        async def broken(t, ctx, args):
            raise RuntimeError("boom")

        registry.register("broken", broken)
        assert not await registry.execute(transport, make_message("!broken"), "broken", [])
        assert transport.texts == [COMMAND_ERROR_TEXT]
        assert registry.get_stats()["error_count"] == 1

    @pytest.mark.asyncio
    async def test_failed_error_notice_is_swallowed(self, registry, transport):
        def broken(t, ctx, args):
            raise RuntimeError("boom")

        registry.register("broken", broken)
        transport.fail_send = True
        assert not await registry.execute(transport, make_message("!broken"), "broken", [])

    @pytest.mark.asyncio
    async def test_app_passed_to_context(self, roles, rate_limiter, transport):
        app = object()
        registry = CommandRegistry(roles, rate_limiter, app=app)
        seen = []
        registry.register("x", lambda t, c, a: seen.append(c.app))
        await registry.execute(transport, make_message("!x"), "x", [])
        assert seen == [app]
