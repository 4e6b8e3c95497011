"""Unit tests for filesystem storage adapter."""

import errno
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from tr_rename.adapters.storage.filesystem import FilesystemAdapter
from tr_rename.adapters.storage.registry import NameRegistry
from tr_rename.domain.errors import (
    FilesystemError,
    InvalidTargetPath,
    RenameCollisionExhausted,
)

NAME = "2024_01_01_Kauf_Sparplan_US0378331005_Apple_Inc.pdf"


def make_pdf(directory: Path, name: str = "source.pdf", content: bytes = b"%PDF") -> Path:
    path = directory / name
    path.write_bytes(content)
    return path


class TestRename:
    """Tests for FilesystemAdapter.rename."""

    def test_renames_in_place(self, tmp_path: Path) -> None:
        source = make_pdf(tmp_path)
        target = FilesystemAdapter(tmp_path).rename(source, NAME)

        assert target == tmp_path.resolve() / NAME
        assert target.read_bytes() == b"%PDF"
        assert not source.exists()

    def test_subdirectory_stays_in_place(self, tmp_path: Path) -> None:
        sub = tmp_path / "2024"
        sub.mkdir()
        source = make_pdf(sub)
        target = FilesystemAdapter(tmp_path).rename(source, NAME)
        assert target.parent == sub.resolve()

    def test_collision_adds_suffix(self, tmp_path: Path) -> None:
        make_pdf(tmp_path, NAME, b"existing")
        source = make_pdf(tmp_path, "new.pdf", b"new")

        target = FilesystemAdapter(tmp_path).rename(source, NAME)

        assert target.name == "2024_01_01_Kauf_Sparplan_US0378331005_Apple_Inc_1.pdf"
        assert (tmp_path / NAME).read_bytes() == b"existing"
        assert target.read_bytes() == b"new"

    def test_second_collision(self, tmp_path: Path) -> None:
        adapter = FilesystemAdapter(tmp_path)
        first = make_pdf(tmp_path, "a.pdf", b"a")
        second = make_pdf(tmp_path, "b.pdf", b"b")
        third = make_pdf(tmp_path, "c.pdf", b"c")

        names = [adapter.rename(p, NAME).name for p in (first, second, third)]

        assert names == [
            NAME,
            "2024_01_01_Kauf_Sparplan_US0378331005_Apple_Inc_1.pdf",
            "2024_01_01_Kauf_Sparplan_US0378331005_Apple_Inc_2.pdf",
        ]
        assert sorted(p.read_bytes() for p in tmp_path.iterdir()) == [b"a", b"b", b"c"]

    def test_same_file_is_noop(self, tmp_path: Path) -> None:
        source = make_pdf(tmp_path, NAME)
        target = FilesystemAdapter(tmp_path).rename(source, NAME)
        assert target == source.resolve()
        assert [p.name for p in tmp_path.iterdir()] == [NAME]

    def test_dangling_symlink_counts_as_taken(self, tmp_path: Path) -> None:
        (tmp_path / NAME).symlink_to(tmp_path / "missing.pdf")
        source = make_pdf(tmp_path)

        target = FilesystemAdapter(tmp_path).rename(source, NAME)

        assert target.name.endswith("_1.pdf")
        assert (tmp_path / NAME).is_symlink()

    def test_exhausted(self, tmp_path: Path) -> None:
        adapter = FilesystemAdapter(tmp_path, max_attempts=2)
        make_pdf(tmp_path, NAME)
        make_pdf(tmp_path, NAME.replace(".pdf", "_1.pdf"))
        make_pdf(tmp_path, NAME.replace(".pdf", "_2.pdf"))
        source = make_pdf(tmp_path)

        with pytest.raises(RenameCollisionExhausted):
            adapter.rename(source, NAME)
        assert source.exists()

    def test_file_exists_error_is_collision(self, tmp_path: Path) -> None:
        source = make_pdf(tmp_path)
        real_link = os.link
        calls = []

        def flaky_link(src: Path, dst: Path) -> None:
            calls.append(Path(dst).name)
            if len(calls) == 1:
                raise FileExistsError(dst)
            real_link(src, dst)

        with patch.object(os, "link", flaky_link):
            target = FilesystemAdapter(tmp_path).rename(source, NAME)

        assert calls == [NAME, NAME.replace(".pdf", "_1.pdf")]
        assert target.name == NAME.replace(".pdf", "_1.pdf")

    def test_target_created_after_check_is_not_overwritten(self, tmp_path: Path) -> None:
        """A file appearing between the existence check and the move survives."""
        make_pdf(tmp_path, NAME, b"existing")
        source = make_pdf(tmp_path, "new.pdf", b"new")

        with patch.object(os.path, "lexists", return_value=False):
            target = FilesystemAdapter(tmp_path).rename(source, NAME)

        assert target.name == NAME.replace(".pdf", "_1.pdf")
        assert (tmp_path / NAME).read_bytes() == b"existing"
        assert target.read_bytes() == b"new"
        assert not source.exists()

    def test_falls_back_without_hard_links(self, tmp_path: Path) -> None:
        source = make_pdf(tmp_path)
        unsupported = OSError(errno.ENOTSUP, "Operation not supported")

        with patch.object(os, "link", side_effect=unsupported):
            target = FilesystemAdapter(tmp_path).rename(source, NAME)

        assert target.read_bytes() == b"%PDF"
        assert not source.exists()

    def test_os_error_becomes_filesystem_error(self, tmp_path: Path) -> None:
        source = make_pdf(tmp_path)
        with patch.object(os, "link", side_effect=PermissionError("denied")):
            with pytest.raises(FilesystemError):
                FilesystemAdapter(tmp_path).rename(source, NAME)
        assert source.exists()

    def test_unlink_failure_keeps_source(self, tmp_path: Path) -> None:
        source = make_pdf(tmp_path)
        real_unlink = os.unlink

        def stubborn_unlink(path: Path) -> None:
            if Path(path).name == source.name:
                raise PermissionError("denied")
            real_unlink(path)

        with patch.object(os, "unlink", stubborn_unlink):
            with pytest.raises(FilesystemError):
                FilesystemAdapter(tmp_path).rename(source, NAME)

        assert [p.name for p in tmp_path.iterdir()] == [source.name]

    def test_missing_source(self, tmp_path: Path) -> None:
        with pytest.raises(FilesystemError):
            FilesystemAdapter(tmp_path).rename(tmp_path / "gone.pdf", NAME)


class TestContainment:
    """Tests for path validation."""

    @pytest.mark.parametrize(
        "name",
        ["", ".", "..", "../escape.pdf", "a/b.pdf", "..\\escape.pdf", "nul\x00.pdf"],
    )
    def test_rejects_invalid_names(self, tmp_path: Path, name: str) -> None:
        source = make_pdf(tmp_path)
        with pytest.raises(InvalidTargetPath):
            FilesystemAdapter(tmp_path).rename(source, name)
        assert source.exists()

    def test_rejects_long_names(self, tmp_path: Path) -> None:
        source = make_pdf(tmp_path)
        name = "ü" * 126 + ".pdf"  # 256 bytes
        with pytest.raises(InvalidTargetPath):
            FilesystemAdapter(tmp_path).rename(source, name)

    def test_suffix_respects_byte_limit(self, tmp_path: Path) -> None:
        name = "a" * 251 + ".pdf"
        make_pdf(tmp_path, name)
        source = make_pdf(tmp_path)
        with pytest.raises(InvalidTargetPath):
            FilesystemAdapter(tmp_path).rename(source, name)

    def test_source_outside_root(self, tmp_path: Path) -> None:
        root = tmp_path / "root"
        root.mkdir()
        source = make_pdf(tmp_path)
        with pytest.raises(InvalidTargetPath):
            FilesystemAdapter(root).rename(source, NAME)
        assert source.exists()

    def test_source_in_symlinked_directory_outside_root(self, tmp_path: Path) -> None:
        root = tmp_path / "root"
        outside = tmp_path / "outside"
        root.mkdir()
        outside.mkdir()
        (root / "link").symlink_to(outside, target_is_directory=True)
        make_pdf(outside)

        with pytest.raises(InvalidTargetPath):
            FilesystemAdapter(root).rename(root / "link" / "source.pdf", NAME)
        assert (outside / "source.pdf").exists()

    def test_refuses_symlinked_source(self, tmp_path: Path) -> None:
        real = make_pdf(tmp_path)
        link = tmp_path / "link.pdf"
        link.symlink_to(real)
        with pytest.raises(InvalidTargetPath):
            FilesystemAdapter(tmp_path).rename(link, NAME)

    def test_root_must_exist(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            FilesystemAdapter(tmp_path / "missing")


class TestDryRun:
    """Tests for dry-run mode."""

    def test_does_not_touch_files(self, tmp_path: Path) -> None:
        source = make_pdf(tmp_path)
        target = FilesystemAdapter(tmp_path, dry_run=True).rename(source, NAME)

        assert target == tmp_path.resolve() / NAME
        assert source.exists()
        assert not target.exists()

    def test_reserved_names_disambiguate(self, tmp_path: Path) -> None:
        adapter = FilesystemAdapter(tmp_path, dry_run=True)
        first = make_pdf(tmp_path, "a.pdf")
        second = make_pdf(tmp_path, "b.pdf")

        assert adapter.rename(first, NAME).name == NAME
        assert adapter.rename(second, NAME).name == NAME.replace(".pdf", "_1.pdf")


class TestNameRegistry:
    """Tests for NameRegistry."""

    def test_reserve(self, tmp_path: Path) -> None:
        registry = NameRegistry()
        assert not registry.is_reserved(tmp_path, "a.pdf")
        registry.reserve(tmp_path, "a.pdf")
        assert registry.is_reserved(tmp_path, "a.pdf")
        assert not registry.is_reserved(tmp_path / "sub", "a.pdf")

    def test_same_lock_per_directory(self, tmp_path: Path) -> None:
        registry = NameRegistry()
        with registry.lock(tmp_path):
            registry.reserve(tmp_path, "a.pdf")
        with registry.lock(tmp_path):
            assert registry.is_reserved(tmp_path, "a.pdf")

    def test_shared_between_adapters(self, tmp_path: Path) -> None:
        registry = NameRegistry()
        first = FilesystemAdapter(tmp_path, registry=registry, dry_run=True)
        second = FilesystemAdapter(tmp_path, registry=registry, dry_run=True)

        first.rename(make_pdf(tmp_path, "a.pdf"), NAME)
        target = second.rename(make_pdf(tmp_path, "b.pdf"), NAME)

        assert target.name == NAME.replace(".pdf", "_1.pdf")
        assert os.path.lexists(tmp_path / "a.pdf")
