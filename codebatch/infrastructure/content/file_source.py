"""Filesystem content source."""

from pathlib import Path

from codebatch.domain.ports.config import ContentConfig
from codebatch.infrastructure.content.file_collector import collect_source_files

# Tried in order; latin-1 maps every byte to one character and never fails
ENCODINGS = ["utf-8", "latin-1"]


class FileSystemContentSource:
    """Reads project files from the local disk.

    Text is decoded with the first encoding in ENCODINGS that accepts the
    whole file, with newlines kept as they are on disk. Offsets computed on
    one read match every later read, and re-encoding any slice with the
    same encoding gives back the bytes on disk.
    """

    def __init__(self, config: ContentConfig | None = None, excluded_dirs: set[str] | None = None) -> None:
        self._config = config or ContentConfig()
        self._excluded_dirs = excluded_dirs or set()

    def _resolve(self, project_path: str, relative_path: str) -> Path:
        root = Path(project_path).resolve()
        target = (root / relative_path).resolve()
        if not target.is_relative_to(root):
            raise PermissionError(f"Path escapes project root: {relative_path}")
        return target

    def read_text(self, project_path: str, relative_path: str) -> str:
        text, _ = self.read_decoded(project_path, relative_path)
        return text

    def read_decoded(self, project_path: str, relative_path: str) -> tuple[str, str]:
        """File text and the encoding it was decoded with."""
        data = self._resolve(project_path, relative_path).read_bytes()
        for encoding in ENCODINGS[:-1]:
            try:
                return data.decode(encoding), encoding
            except UnicodeDecodeError:
                continue
        return data.decode(ENCODINGS[-1]), ENCODINGS[-1]

    def size(self, project_path: str, relative_path: str) -> int:
        return self._resolve(project_path, relative_path).stat().st_size

    def list_files(self, project_path: str) -> list[tuple[str, int]]:
        return collect_source_files(
            Path(project_path),
            max_file_size=self._config.max_file_size,
            max_files=self._config.max_files,
            follow_symlinks=self._config.follow_symlinks,
            excluded_dirs=self._excluded_dirs,
        )
