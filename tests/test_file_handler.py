"""Tests for file_handler module: decoding and the LocalFileSystem collaborator."""

import os
from datetime import datetime, timezone

import pytest

from dotnotes.file_handler import LocalFileSystem, decode_bytes, detect_encoding

LEGACY_TEXT = "Ceci est un fichier de configuration très ancien. " * 5

# =============================================================================
# decode_bytes
# =============================================================================


class TestDecodeBytes:
    def test_empty(self):
        assert decode_bytes(b"") == ""

    def test_utf8(self):
        assert decode_bytes("héllo wörld\n".encode("utf-8")) == "héllo wörld\n"

    def test_non_utf8_detected(self):
        result = decode_bytes(LEGACY_TEXT.encode("latin-1"))
        assert "fichier de configuration" in result
        assert "�" not in result


class TestDetectEncoding:
    def test_utf8(self):
        assert detect_encoding("héllo\n".encode("utf-8")) == "utf-8"

    def test_non_utf8_named(self):
        raw = LEGACY_TEXT.encode("latin-1")
        encoding = detect_encoding(raw)
        assert encoding != "utf-8"
        assert "fichier de configuration" in raw.decode(encoding)


# =============================================================================
# LocalFileSystem
# =============================================================================


@pytest.fixture
def fs():
    return LocalFileSystem()


class TestPredicates:
    def test_exists_includes_dangling_symlink(self, fs, tmp_path):
        link = tmp_path / "dangling"
        link.symlink_to(tmp_path / "nowhere")
        assert fs.exists(str(link))
        assert fs.is_symlink(str(link))

    def test_missing(self, fs, tmp_path):
        assert not fs.exists(str(tmp_path / "missing"))

    def test_is_dir_excludes_symlinked_dir(self, fs, tmp_path):
        real = tmp_path / "real"
        real.mkdir()
        link = tmp_path / "link"
        link.symlink_to(real)
        assert fs.is_dir(str(real))
        assert not fs.is_dir(str(link))


class TestReadWrite:
    def test_write_creates_parents(self, fs, tmp_path):
        target = tmp_path / "a" / "b" / "file"
        written = fs.write_text(str(target), "héllo")
        assert target.read_text(encoding="utf-8") == "héllo"
        assert written == len("héllo".encode("utf-8"))

    def test_round_trip(self, fs, tmp_path):
        target = str(tmp_path / ".bashrc")
        fs.write_text(target, "export PATH=$HOME/bin:$PATH\n")
        assert fs.read_text(target) == "export PATH=$HOME/bin:$PATH\n"

    def test_write_keeps_existing_encoding(self, fs, tmp_path):
        target = tmp_path / "legacy.conf"
        original = LEGACY_TEXT.encode("latin-1")
        target.write_bytes(original)
        updated = LEGACY_TEXT + "Dernière ligne.\n"

        fs.write_text(str(target), updated)

        assert target.read_bytes() == updated.encode(detect_encoding(original))
        assert target.read_bytes() != updated.encode("utf-8")

    def test_unencodable_content_written_as_utf8(self, fs, tmp_path):
        target = tmp_path / "legacy.conf"
        target.write_bytes(LEGACY_TEXT.encode("latin-1"))

        fs.write_text(str(target), "done ✓\n")

        assert target.read_bytes() == "done ✓\n".encode("utf-8")

    def test_read_missing_raises(self, fs, tmp_path):
        with pytest.raises(FileNotFoundError):
            fs.read_text(str(tmp_path / "missing"))


class TestModTime:
    def test_returns_aware_utc(self, fs, tmp_path):
        target = tmp_path / "file"
        target.write_text("x")
        stamp = datetime(2023, 5, 17, 8, 30, tzinfo=timezone.utc)
        os.utime(target, (stamp.timestamp(), stamp.timestamp()))

        result = fs.mod_time(str(target))

        assert result == stamp
        assert result.tzinfo is not None


class TestWalk:
    def test_regular_files_sorted(self, fs, tmp_path):
        (tmp_path / "b").write_text("b")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "a").write_text("a")
        (tmp_path / "a").write_text("a")

        result = fs.walk(str(tmp_path))

        assert result == [
            str(tmp_path / "a"),
            str(tmp_path / "b"),
            str(tmp_path / "sub" / "a"),
        ]

    def test_symlinks_skipped_and_reported(self, fs, tmp_path):
        (tmp_path / "real").write_text("r")
        (tmp_path / "dir").mkdir()
        (tmp_path / "dir" / "inner").write_text("i")
        (tmp_path / "file_link").symlink_to(tmp_path / "real")
        (tmp_path / "dir_link").symlink_to(tmp_path / "dir")
        skipped = []

        result = fs.walk(str(tmp_path), on_skip=skipped.append)

        assert result == [str(tmp_path / "dir" / "inner"), str(tmp_path / "real")]
        assert sorted(skipped) == [
            str(tmp_path / "dir_link"),
            str(tmp_path / "file_link"),
        ]

    def test_symlink_warning_logged(self, fs, tmp_path, caplog):
        (tmp_path / "real").write_text("r")
        (tmp_path / "link").symlink_to(tmp_path / "real")

        with caplog.at_level("WARNING", logger="dotnotes.file_handler"):
            fs.walk(str(tmp_path))

        assert "symlinks not currently supported" in caplog.text

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores permissions")
    def test_unreadable_directory_raises(self, fs, tmp_path):
        locked = tmp_path / "locked"
        locked.mkdir()
        (locked / "secret").write_text("s")
        locked.chmod(0)
        try:
            with pytest.raises(PermissionError):
                fs.walk(str(tmp_path))
        finally:
            locked.chmod(0o755)
