"""Content Port - interface for reading project files."""

from typing import Protocol


class ContentSource(Protocol):
    """Reads the text of a project file."""

    def read_text(self, project_path: str, relative_path: str) -> str:
        """Return file text. Raises OSError when the file cannot be read."""
        ...

    def size(self, project_path: str, relative_path: str) -> int:
        """Return the file's size in bytes as stored."""
        ...

    def list_files(self, project_path: str) -> list[tuple[str, int]]:
        """Return (relative_path, byte_size) for every eligible file in the project."""
        ...
