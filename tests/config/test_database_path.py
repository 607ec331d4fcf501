"""
Tests for database path resolution.
"""

from pathlib import Path

from chatwise_recall.config.database_path import (
    get_default_database_path,
    resolve_database_path,
)


class TestResolveDatabasePath:
    """Priority order of database path sources."""

    def test_explicit_path_wins(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("CHATWISE_DB_PATH", str(tmp_path / "env.db"))
        assert resolve_database_path(str(tmp_path / "cli.db")) == (tmp_path / "cli.db").resolve()

    def test_primary_environment_variable(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("CHATWISE_DB_PATH", str(tmp_path / "env.db"))
        monkeypatch.setenv("DB_PATH", str(tmp_path / "fallback.db"))
        assert resolve_database_path() == (tmp_path / "env.db").resolve()

    def test_fallback_environment_variable(self, tmp_path, monkeypatch) -> None:
        monkeypatch.delenv("CHATWISE_DB_PATH", raising=False)
        monkeypatch.setenv("DB_PATH", str(tmp_path / "fallback.db"))
        assert resolve_database_path("   ") == (tmp_path / "fallback.db").resolve()

    def test_platform_default(self, monkeypatch) -> None:
        monkeypatch.delenv("CHATWISE_DB_PATH", raising=False)
        monkeypatch.delenv("DB_PATH", raising=False)
        assert resolve_database_path() == get_default_database_path()

    def test_linux_default_location(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr("platform.system", lambda: "Linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_default_database_path() == Path(tmp_path) / "app.chatwise" / "app.db"

    def test_macos_default_location(self, monkeypatch) -> None:
        monkeypatch.setattr("platform.system", lambda: "Darwin")
        path = get_default_database_path()
        assert path.parts[-4:] == ("Library", "Application Support", "app.chatwise", "app.db")
