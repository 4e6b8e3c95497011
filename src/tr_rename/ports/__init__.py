"""Ports - interfaces for external dependencies."""

from .extractor import TextExtractorPort
from .storage import StoragePort

__all__ = ["StoragePort", "TextExtractorPort"]
