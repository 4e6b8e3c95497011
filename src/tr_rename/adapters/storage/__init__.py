"""Storage adapters."""

from .filesystem import FilesystemAdapter
from .registry import NameRegistry

__all__ = ["FilesystemAdapter", "NameRegistry"]
