"""Tests for the sync CLI commands."""

from typer.testing import CliRunner

from adapters.cli import sync_commands
from config import adapters as config_adapters

runner = CliRunner()


class UnavailableDatabase:
    def __init__(self):
        self.closed = False

    async def initialize(self):
        pass

    async def create_tables(self):
        raise RuntimeError("database unavailable")

    async def close(self):
        self.closed = True


class StubFactory:
    def get_config(self):
        return config_adapters.TestingConfig()


def test_status_reports_errors_and_exits_nonzero(monkeypatch):
    database = UnavailableDatabase()
    monkeypatch.setattr(sync_commands, "get_adapter_factory", lambda: StubFactory())
    monkeypatch.setattr(sync_commands, "initialize_database", lambda config: database)

    result = runner.invoke(sync_commands.app, ["status"])

    assert result.exit_code == 1
    assert "database unavailable" in result.output
    assert database.closed
