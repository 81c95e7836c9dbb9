from __future__ import annotations

from typer.testing import CliRunner

from trixy_indexer.app.domain.errors import ChainClientError, ConfigurationError
from trixy_indexer.app.interface.cli import __main__ as cli

runner = CliRunner()


def test_sync_once_runs_catch_up_task(monkeypatch):
    calls: list[dict[str, object]] = []

    async def fake_task(**kwargs):
        calls.append(kwargs)

    monkeypatch.setitem(cli.TASKS, "trixy__catch_up_task", fake_task)

    result = runner.invoke(cli.app, ["indexer", "sync", "--once", "--network", "emulator"])

    assert result.exit_code == 0
    assert calls == [{"network": "emulator", "contract": None}]


def test_sync_defaults_to_continuous_task(monkeypatch):
    calls: list[dict[str, object]] = []

    async def fake_task(**kwargs):
        calls.append(kwargs)

    monkeypatch.setitem(cli.TASKS, "trixy__sync_events_task", fake_task)

    result = runner.invoke(cli.app, ["indexer", "sync", "--contract", "TrixyProtocol"])

    assert result.exit_code == 0
    assert calls == [{"network": None, "contract": "TrixyProtocol"}]


def test_configuration_error_exits_with_code_1(monkeypatch):
    async def failing_task(**kwargs):
        raise ConfigurationError("Unknown network 'devnet'")

    monkeypatch.setitem(cli.TASKS, "trixy__sync_events_task", failing_task)

    result = runner.invoke(cli.app, ["indexer", "sync", "--network", "devnet"])

    assert result.exit_code == 1


def test_one_shot_failure_exits_with_code_1(monkeypatch):
    async def failing_task(**kwargs):
        raise ChainClientError("access node unreachable")

    monkeypatch.setitem(cli.TASKS, "trixy__catch_up_task", failing_task)

    result = runner.invoke(cli.app, ["indexer", "sync", "--once"])

    assert result.exit_code == 1
