from vault_index.domain.constants import CHUNK_BREAK_LOOKBACK, CHUNK_MAX_SIZE, CHUNK_OVERLAP
from vault_index.domain.models import Chunk
from vault_index.logging_config import get_logger

logger = get_logger(__name__)

_SENTENCE_TERMINATORS = ".?!"


class Chunker:
    """Split long documents into overlapping chunks on natural boundaries."""

    def __init__(
        self,
        max_chunk_size: int = CHUNK_MAX_SIZE,
        chunk_overlap: int = CHUNK_OVERLAP,
    ) -> None:
        if max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        if chunk_overlap < 0:
            raise ValueError("chunk_overlap must not be negative")
        self._max_chunk_size = max_chunk_size
        self._chunk_overlap = chunk_overlap

    @property
    def max_chunk_size(self) -> int:
        return self._max_chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    def chunk(self, parent_id: str, text: str) -> list[Chunk]:
        """Split text into chunks for indexing. Blank text yields no chunks."""
        if not text.strip():
            return []

        if len(text) <= self._max_chunk_size:
            return [Chunk(text=text, index=0, total_chunks=1, parent_id=parent_id)]

        spans = self._split_spans(text)
        total = len(spans)
        logger.debug("Split %s into %d chunks", parent_id, total)
        return [
            Chunk(text=text[start:end], index=i, total_chunks=total, parent_id=parent_id)
            for i, (start, end) in enumerate(spans)
        ]

    def _split_spans(self, text: str) -> list[tuple[int, int]]:
        """Return [start, end) offsets of each chunk."""
        spans: list[tuple[int, int]] = []
        length = len(text)
        start = 0

        while start < length:
            end = min(start + self._max_chunk_size, length)
            if end < length:
                end = self._find_break_point(text, start, end)
            spans.append((start, end))

            if end >= length:
                break

            next_start = max(end - self._chunk_overlap, 0)
            # Start must strictly increase or the loop never terminates
            if next_start <= start:
                next_start = end
            start = next_start

        return spans

    @staticmethod
    def _find_break_point(text: str, start: int, target: int) -> int:
        """Find the best natural break at or before target, at most 200 chars back."""
        search_start = max(target - CHUNK_BREAK_LOOKBACK, start)
        window = text[search_start:target]

        # Paragraph break
        idx = window.rfind("\n\n")
        if idx != -1:
            return search_start + idx + 2

        # Sentence terminator followed by whitespace or end of text
        for i in range(target - 1, search_start - 1, -1):
            if text[i] in _SENTENCE_TERMINATORS:
                if i + 1 >= len(text) or text[i + 1].isspace():
                    return i + 1

        # Single newline
        idx = window.rfind("\n")
        if idx != -1:
            return search_start + idx + 1

        # Word boundary
        for i in range(target - 1, search_start - 1, -1):
            if text[i].isspace():
                return i + 1

        return target
