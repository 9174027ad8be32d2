"""Script-to-chunk segmentation for length-limited speech calls.

Responsibilities:
- Split arbitrary-length scripts into chunks no longer than the provider limit.
- Prefer sentence boundaries, then whitespace, then a hard cut.
- Stay a pure function of `(text, max_len)`.
"""

from __future__ import annotations

from ..models.datatypes import Chunk


class TextSegmenter:
    """Split text at natural boundaries with a deterministic fallback chain."""

    _MIN_SENTENCE_RATIO = 0.30
    _SENTENCE_TERMINATORS = (".", "!", "?")
    _TERMINATOR_FOLLOWERS = (" ", "\n")

    def segment(self, text: str, max_len: int) -> list[Chunk]:
        """Split `text` into ordered chunks of at most `max_len` characters.

        Args:
            text: Script text to split.
            max_len: Maximum characters accepted by one provider call.

        Returns:
            Ordered chunks. Empty input yields no chunks; input that already
            fits is returned unchanged as a single chunk.
        """

        if max_len <= 0:
            raise ValueError("`max_len` must be a positive integer.")
        if not text:
            return []
        if len(text) <= max_len:
            return [Chunk(index=0, text=text)]

        pieces: list[str] = []
        remaining = text
        while remaining:
            if len(remaining) <= max_len:
                pieces.append(remaining)
                break
            split_at = self._split_index(remaining[:max_len], max_len)
            piece = remaining[:split_at].strip()
            if piece:
                pieces.append(piece)
            remaining = remaining[split_at:].strip()

        return [Chunk(index=index, text=piece) for index, piece in enumerate(pieces)]

    def _split_index(self, window: str, max_len: int) -> int:
        """Resolve where the current window should be cut."""

        sentence_end = self._last_sentence_end(window)
        if sentence_end >= 0 and sentence_end >= max_len * self._MIN_SENTENCE_RATIO:
            return sentence_end + 1

        last_space = self._last_whitespace(window)
        if last_space > 0:
            return last_space
        return max_len

    def _last_sentence_end(self, window: str) -> int:
        """Return the index of the rightmost terminator followed by a space or newline."""

        best = -1
        for terminator in self._SENTENCE_TERMINATORS:
            for follower in self._TERMINATOR_FOLLOWERS:
                best = max(best, window.rfind(f"{terminator}{follower}"))
        return best

    @staticmethod
    def _last_whitespace(window: str) -> int:
        """Return the index of the rightmost whitespace character, or -1."""

        for index in range(len(window) - 1, -1, -1):
            if window[index].isspace():
                return index
        return -1


def segment(text: str, max_len: int) -> list[Chunk]:
    """Split `text` with the default `TextSegmenter`."""

    return TextSegmenter().segment(text, max_len)
