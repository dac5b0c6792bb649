"""
Score label scale.

Analysts pick ordered labels (e.g. "Very Low" .. "Very High"); each label maps
to an evenly spaced point on the 0..10 score scale::

    step = 10 / (L − 1)        label i → i · step

With fewer than two labels the step is 0 and no label can be resolved.
"""

from __future__ import annotations

import math
from typing import Sequence

SCALE_MAX = 10.0


def label_step(n_labels: int) -> float:
    """Score distance between adjacent labels (0.0 when fewer than two labels)."""
    return SCALE_MAX / (n_labels - 1) if n_labels > 1 else 0.0


def nearest_label(score: float, labels: Sequence[str]) -> str | None:
    """Return the label closest to ``score``, or ``None`` if no label resolves."""
    step = label_step(len(labels))
    if step == 0:
        return None
    # ties round up: 1.25 on a 2.5 step resolves to the upper label
    index = max(0, min(len(labels) - 1, math.floor(score / step + 0.5)))
    return labels[index]
