"""Project content - file listing, reading and task delivery."""

from codebatch.infrastructure.content.delivery import chunk_for_delivery, render_batch
from codebatch.infrastructure.content.file_collector import collect_source_files
from codebatch.infrastructure.content.file_source import FileSystemContentSource

__all__ = [
    "FileSystemContentSource",
    "chunk_for_delivery",
    "collect_source_files",
    "render_batch",
]
