"""Tests for file_handler: encoding-aware reads, writes, and deploy key files."""

import stat

import pytest

from site_sync.file_handler import (
    private_key_file,
    read_file_with_encoding,
    write_file,
    write_private_key,
)


class TestReadFileWithEncoding:
    def test_utf8(self, tmp_path):
        f = tmp_path / "ignore.txt"
        f.write_text("drafts/\ncafé/*\n", encoding="utf-8")
        content, _ = read_file_with_encoding(f)
        assert "café/*" in content

    def test_ascii_reported_as_utf8(self, tmp_path):
        """Pure ASCII is reported as utf-8."""
        f = tmp_path / "a.txt"
        f.write_bytes(b"*.psd\n" * 20)
        _, encoding = read_file_with_encoding(f)
        assert encoding == "utf-8"

    def test_empty_file(self, tmp_path):
        f = tmp_path / "empty.txt"
        f.write_bytes(b"")
        assert read_file_with_encoding(f) == ("", "utf-8")


def test_write_file_creates_parents(tmp_path):
    """Parent directories are created and the byte count returned."""
    target = tmp_path / ".github" / "workflows" / "hugo.yml"
    assert write_file(target, "name: x\n") == 8
    assert target.read_text() == "name: x\n"


class TestPrivateKey:
    def test_written_owner_only(self, tmp_path):
        """Key files are created with mode 0600."""
        path = write_private_key(tmp_path / "temp" / "blog", "PEM")
        assert path.read_text() == "PEM"
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_context_manager_deletes(self, tmp_path):
        with private_key_file(tmp_path, "PEM") as path:
            assert path.exists()
        assert not path.exists()

    def test_context_manager_deletes_on_error(self, tmp_path):
        """The key file is removed when the block raises."""
        with pytest.raises(RuntimeError):
            with private_key_file(tmp_path, "PEM") as path:
                raise RuntimeError("git failed")
        assert not path.exists()
