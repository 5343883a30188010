"""
Deterministic text chunker.

Splits text into overlapping segments of bounded size, preferring a
whitespace boundary near the size limit and hard-splitting when none is
close enough.

Dependencies: None (pure domain logic)
System role: First stage of the ingestion pipeline
"""


class TextChunker:
    """Split raw text into ordered, overlapping chunks."""

    def __init__(self, chunk_size: int = 2000, chunk_overlap: int = 200) -> None:
        """
        Initialize chunker configuration.

        Args:
            chunk_size: Maximum chunk size in characters
            chunk_overlap: Characters shared between consecutive chunks

        Raises:
            ValueError: When sizes are not positive or overlap >= chunk_size
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be in [0, chunk_size)")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def chunk(self, text: str) -> list[str]:
        """
        Split text into chunks of at most chunk_size characters.

        A split point is moved back to the last whitespace character when one
        exists within half of chunk_size of the hard boundary; otherwise the
        text is cut at exactly chunk_size. The next chunk starts chunk_overlap
        characters before the split point. Whitespace-only chunks are dropped.

        Args:
            text: Raw text to split

        Returns:
            list[str]: Ordered chunks, empty when text has no content
        """
        if not text or not text.strip():
            return []

        chunks: list[str] = []
        length = len(text)
        start = 0

        while start < length:
            hard_end = min(start + self.chunk_size, length)
            end = hard_end if hard_end == length else self._find_split(text, start, hard_end)

            piece = text[start:end].strip()
            if piece:
                chunks.append(piece)

            if end >= length:
                break

            # Always advance, even when overlap would rewind past the start
            start = max(end - self.chunk_overlap, start + 1)

        return chunks

    def _find_split(self, text: str, start: int, hard_end: int) -> int:
        """Return the split index for a window ending at hard_end."""
        window_floor = max(start + 1, hard_end - self.chunk_size // 2)
        for idx in range(hard_end, window_floor - 1, -1):
            if text[idx - 1].isspace():
                return idx
        return hard_end
