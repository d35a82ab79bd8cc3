"""
Group word-level timings from the transcription provider into
fixed-length transcript segments.

Words arrive with millisecond ``start``/``end`` offsets; segments are stored
in seconds. A segment is closed before the word that would push its span
(first word start to current word end) past the threshold. A running segment
is never cut while empty, so a single long word still gets a segment of its
own.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

DEFAULT_SEGMENT_SECONDS = 30.0


@dataclass(frozen=True)
class SegmentDraft:
    start_time: float
    end_time: float
    text: str


class Segmenter:
    def __init__(self, max_seconds: float = DEFAULT_SEGMENT_SECONDS):
        self.max_seconds = max_seconds

    def segment(self, words: Iterable[Mapping[str, Any]]) -> list[SegmentDraft]:
        segments: list[SegmentDraft] = []
        current: list[Mapping[str, Any]] = []
        segment_start = 0.0

        for word in words:
            word_start = word["start"] / 1000
            word_end = word["end"] / 1000

            if current and word_end - segment_start > self.max_seconds:
                segments.append(self._close(current, segment_start))
                current = []

            if not current:
                segment_start = word_start
            current.append(word)

        if current:
            segments.append(self._close(current, segment_start))

        return segments

    @staticmethod
    def _close(words: list[Mapping[str, Any]], segment_start: float) -> SegmentDraft:
        return SegmentDraft(
            start_time=segment_start,
            end_time=words[-1]["end"] / 1000,
            text=" ".join(str(w["text"]) for w in words).strip(),
        )
