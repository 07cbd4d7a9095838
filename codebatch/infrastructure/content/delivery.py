"""Task content rendering and delivery chunking."""

from codebatch.domain.entities.batch import CombinedBatch, MultiBatch, SingleBatch
from codebatch.domain.ports.content import ContentSource

# Preferred cut points, in priority order; the cut lands after the leading newlines
DELIVERY_BOUNDARIES = [
    "\n\ndef ",
    "\n\nclass ",
    "\nfunction ",
    "\n\n",
    "\n",
]


def chunk_for_delivery(text: str, max_length: int) -> list[str]:
    """Split text into ordered chunks of at most max_length chars.

    Lossless: ``"".join(chunks) == text``. Cuts prefer natural boundaries in
    the second half of each window.

    Raises:
        ValueError: If max_length is not positive

    """
    if max_length <= 0:
        raise ValueError("max_length must be positive")
    if len(text) <= max_length:
        return [text]

    chunks: list[str] = []
    start = 0
    text_len = len(text)
    while start < text_len:
        end = min(start + max_length, text_len)
        if end < text_len:
            search_start = start + max_length // 2
            window = text[search_start:end]
            for boundary in DELIVERY_BOUNDARIES:
                idx = window.rfind(boundary)
                if idx != -1:
                    cut = search_start + idx + len(boundary) - len(boundary.lstrip("\n"))
                    if cut > start:
                        end = cut
                        break
        chunks.append(text[start:end])
        start = end
    return chunks


def _fence(language: str) -> str:
    return language if language != "unknown" else ""


def render_batch(
    batch: CombinedBatch | SingleBatch | MultiBatch,
    source: ContentSource,
    project_path: str,
) -> str:
    """Text handed to the content generator for one batch."""
    sections: list[str] = []
    for f in batch.files:
        text = source.read_text(project_path, f.path)
        if isinstance(batch, MultiBatch) and f.chunk_range is not None:
            start, end = f.chunk_range
            text = text[start:end]
            header = (
                f"## File: {f.path} (part {batch.part_index}/{batch.total_parts}, "
                f"lines {batch.start_line}-{batch.end_line})"
            )
        else:
            header = f"## File: {f.path}"
        sections.append(f"{header}\n\n```{_fence(f.language)}\n{text}\n```\n")
    return "\n".join(sections)
