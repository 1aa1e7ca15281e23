"""Tests for interactive session commands."""

from unittest.mock import MagicMock

from rssh.commands.connection import connect, interactive
from rssh.session import ConnectRequest, SessionState


class TestConnect:
    """Tests for connect command."""

    def test_connect(self, store, orchestrator, shell_runner):
        store.add("web", "user", "1.2.3.4")
        assert connect(orchestrator, ConnectRequest("web")) == 0
        shell_runner.assert_called_once()
        assert orchestrator.state is SessionState.CLOSED


class TestInteractive:
    """Tests for interactive command."""

    def test_empty_store(self, store, orchestrator, capsys):
        ask = MagicMock()
        assert interactive(store, orchestrator, ask) == 0
        ask.assert_not_called()
        assert "Use 'add' command first" in capsys.readouterr().out

    def test_prompts_then_connects(self, store, orchestrator, fake_transport):
        store.add("web", "user", "1.2.3.4")
        store.add("db", "admin", "db.local")
        ask = MagicMock(return_value=ConnectRequest("db", port=2200))

        assert interactive(store, orchestrator, ask) == 0

        (profiles,), _ = ask.call_args
        assert [p.alias for p in profiles] == ["db", "web"]
        assert fake_transport.calls[0][:3] == ("db.local", 2200, "admin")
