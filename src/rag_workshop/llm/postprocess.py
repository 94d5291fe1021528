"""Post-processing of raw completion text."""

from __future__ import annotations

from collections.abc import Sequence

# Markers where the model tends to run past the end of its turn.
DEFAULT_STOP_MARKERS: tuple[str, ...] = ("#", "import", "Human", "human", "AI:")
REDUCED_STOP_MARKERS: tuple[str, ...] = ("#", "import")


def truncate_at_stop_markers(
    text: str, markers: Sequence[str] = DEFAULT_STOP_MARKERS
) -> str:
    """Cut `text` before the first occurrence of each marker, in order, then strip."""
    for marker in markers:
        if marker and marker in text:
            text = text[: text.index(marker)]
    return text.strip()
