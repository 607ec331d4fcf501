"""
Tests for common utilities.
"""

import pytest

from chatwise_recall.utils import common


class TestGetVersion:
    def test_reads_packaged_version(self) -> None:
        assert common.get_version() == "0.1.0"

    def test_missing_file(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr(common, "VERSION_FILE", tmp_path / "VERSION")
        with pytest.raises(FileNotFoundError):
            common.get_version()

    def test_empty_file(self, tmp_path, monkeypatch) -> None:
        version_file = tmp_path / "VERSION"
        version_file.write_text("\n")
        monkeypatch.setattr(common, "VERSION_FILE", version_file)
        with pytest.raises(ValueError, match="empty"):
            common.get_version()
