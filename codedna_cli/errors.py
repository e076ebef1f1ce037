"""Exception types raised by the ingestion core."""

from __future__ import annotations


class CodeDnaError(Exception):
    """Base class for CodeDNA errors."""


class ProjectRootError(CodeDnaError):
    """Raised when the ingestion root does not exist or is not a directory."""

    def __init__(self, path) -> None:
        self.path = path
        super().__init__(f"Project root not found or not a directory: {path}")
