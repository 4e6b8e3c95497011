"""Storage adapter using local filesystem."""

import errno
import logging
import os
from pathlib import Path

from ...domain.errors import (
    FilesystemError,
    InvalidTargetPath,
    RenameCollisionExhausted,
)
from ...ports.storage import StoragePort
from .registry import NameRegistry

logger = logging.getLogger(__name__)

MAX_COLLISION_ATTEMPTS = 99
MAX_FILENAME_BYTES = 255

# Filesystems without hard links (FAT, some network mounts)
_NO_LINK_ERRNOS = {errno.EPERM, errno.ENOTSUP, errno.EOPNOTSUPP}


class FilesystemAdapter(StoragePort):
    """Renames files in place, never leaving the scan root.

    All targets stay in the source file's directory, which must lie below
    the canonical root. Existing files are never overwritten: a numeric
    suffix is appended until a free name is found.
    """

    def __init__(
        self,
        root: Path,
        registry: NameRegistry | None = None,
        max_attempts: int = MAX_COLLISION_ATTEMPTS,
        max_filename_bytes: int = MAX_FILENAME_BYTES,
        dry_run: bool = False,
    ) -> None:
        self.root = root.resolve(strict=True)
        self.registry = registry or NameRegistry()
        self.max_attempts = max_attempts
        self.max_filename_bytes = max_filename_bytes
        self.dry_run = dry_run

    def rename(self, path: Path, filename: str) -> Path:
        self._validate_name(filename)

        if path.is_symlink():
            raise InvalidTargetPath(f"Refusing to rename symlink: {path.name}")

        directory = path.parent.resolve()
        source = directory / path.name
        if not directory.is_relative_to(self.root):
            raise InvalidTargetPath(f"Source outside scan root: {path}")

        stem, suffix = os.path.splitext(filename)

        with self.registry.lock(directory):
            for attempt in range(self.max_attempts + 1):
                name = filename if attempt == 0 else f"{stem}_{attempt}{suffix}"
                self._validate_name(name)
                target = directory / name
                self._check_containment(target, directory)

                if self._is_same_file(source, target):
                    logger.info(f"Already named: {name}")
                    return source

                if os.path.lexists(target) or self.registry.is_reserved(directory, name):
                    logger.debug(f"Name taken: {name}")
                    continue

                try:
                    self._move(source, target)
                except FileExistsError:
                    logger.debug(f"Name taken during rename: {name}")
                    continue

                self.registry.reserve(directory, name)
                return target

        raise RenameCollisionExhausted(
            f"No free name for {filename} after {self.max_attempts} attempts"
        )

    def _validate_name(self, name: str) -> None:
        """Reject anything that is not a plain, bounded file name."""
        if not name or name in (".", ".."):
            raise InvalidTargetPath(f"Invalid filename: {name!r}")
        if "/" in name or "\\" in name or "\x00" in name or Path(name).name != name:
            raise InvalidTargetPath(f"Filename contains path components: {name!r}")
        if len(name.encode("utf-8")) > self.max_filename_bytes:
            raise InvalidTargetPath(
                f"Filename exceeds {self.max_filename_bytes} bytes: {name[:40]}..."
            )

    def _check_containment(self, target: Path, directory: Path) -> None:
        # Canonicalize the location, not the entry: an existing symlink
        # at target is a collision, not a redirect
        canonical = target.parent.resolve() / target.name
        if canonical.parent != directory or not canonical.is_relative_to(self.root):
            raise InvalidTargetPath(f"Refusing to rename outside scan root: {target}")

    def _is_same_file(self, source: Path, target: Path) -> bool:
        if source == target:
            return True
        if target.is_symlink() or not target.exists():
            return False
        try:
            return os.path.samefile(source, target)
        except OSError:
            return False

    def _move(self, source: Path, target: Path) -> None:
        if self.dry_run:
            logger.info(f"Would rename: {source.name} -> {target.name}")
            return

        # link() fails with FileExistsError instead of replacing the target
        try:
            os.link(source, target)
        except FileExistsError:
            raise
        except OSError as e:
            if e.errno not in _NO_LINK_ERRNOS:
                raise FilesystemError(f"Rename failed for {source.name}: {e}") from e
            logger.debug(f"Hard links unsupported, falling back to rename: {e}")
            self._rename(source, target)
        else:
            try:
                os.unlink(source)
            except OSError as e:
                target.unlink(missing_ok=True)
                raise FilesystemError(f"Rename failed for {source.name}: {e}") from e

        logger.info(f"Renamed: {source.name} -> {target.name}")

    def _rename(self, source: Path, target: Path) -> None:
        # Only reached without link support; the lexists check under the
        # directory lock is the remaining guard
        try:
            source.rename(target)
        except FileExistsError:
            raise
        except OSError as e:
            raise FilesystemError(f"Rename failed for {source.name}: {e}") from e
