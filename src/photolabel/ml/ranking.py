"""Top-K ranking of raw per-label confidence scores."""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from photolabel.errors import IndexOutOfRangeError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

MAX_RESULTS = 3
THRESHOLD = 0.0
UNKNOWN_TITLE = "Unknown"


@dataclass(frozen=True)
class Recognition:
    """A single classification prediction."""

    id: str
    title: str
    confidence: float

    def __str__(self) -> str:
        return f"Title = {self.title}, Confidence = {self.confidence})"


def rank(
    scores: Sequence[float],
    labels: Sequence[str],
    k: int = MAX_RESULTS,
    threshold: float = THRESHOLD,
) -> list[Recognition]:
    """Return the ``k`` most confident labels at or above ``threshold``.

    Every label slot is looked up in ``scores``; score slots past the end
    of ``labels`` are ignored. Results are in descending confidence order;
    equal confidences keep index order.

    Raises:
        IndexOutOfRangeError: If ``labels`` has more entries than ``scores``.
    """
    logger.debug("List Size:(%d, %d)", len(scores), len(labels))
    if len(labels) > len(scores):
        raise IndexOutOfRangeError(
            f"Label index {len(scores)} has no score ({len(labels)} labels, {len(scores)} scores)"
        )

    candidates = [
        (float(scores[i]), i)
        for i in range(len(labels))
        if float(scores[i]) >= threshold
    ]
    logger.debug("Candidates above threshold: %d", len(candidates))
    if k <= 0:
        return []

    top = heapq.nsmallest(k, candidates, key=lambda item: (-item[0], item[1]))
    return [
        Recognition(
            id=str(i),
            title=labels[i] if i < len(labels) else UNKNOWN_TITLE,
            confidence=confidence,
        )
        for confidence, i in top
    ]


def format_top_result(recognitions: Sequence[Recognition]) -> str:
    """Render the best recognition as the ``title::::confidence`` display line."""
    if not recognitions:
        return "None::::None"
    best = recognitions[0]
    return f"{best.title}::::{best.confidence}"
