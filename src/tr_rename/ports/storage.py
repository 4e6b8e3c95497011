"""Storage port - interface for renaming files in place."""

from abc import ABC, abstractmethod
from pathlib import Path


class StoragePort(ABC):
    """Interface for file renaming."""

    @abstractmethod
    def rename(self, path: Path, filename: str) -> Path:
        """Rename a file within its directory.

        Returns the final path, which may carry a disambiguation suffix
        or equal the input path when the file is already named correctly.
        """
        pass
