"""Interpretation of raw object-detection output.

The detector's output layout is not fixed, so the raw numbers are read as a
bounding box in one of three shapes, tried in order:

1. exactly four values: ``[x1, y1, x2, y2]``;
2. seven or more values: ``[x_center, y_center, width, height, confidence, class_id, ...]``;
3. anything else: the first non-overlapping window of four values that forms a
   valid corner box.

Whatever cannot be read as a box yields :class:`NoBox` and the ``medium`` bucket.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Literal, Optional, Union

from triage.models import SizeBucket


SMALL_AREA_MAX = 5000.0
LARGE_AREA_MIN = 15000.0

DEFAULT_BUCKET: SizeBucket = "medium"

# Detector tensors nest a few levels at most ([batch][detection][values]).
MAX_NESTING_DEPTH = 8


@dataclass(frozen=True)
class Box:
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def area(self) -> float:
        return (self.x2 - self.x1) * (self.y2 - self.y1)

    @property
    def has_extent(self) -> bool:
        return self.x2 > self.x1 and self.y2 > self.y1

    @property
    def is_valid(self) -> bool:
        return self.has_extent and self.x1 >= 0 and self.y1 >= 0


@dataclass(frozen=True)
class BoxFound:
    box: Box
    shape: Literal["corners", "center", "window"]


@dataclass(frozen=True)
class NoBox:
    reason: str


DetectionParse = Union[BoxFound, NoBox]


def parse_detection(raw: Any) -> DetectionParse:
    """Read raw detector output as a bounding box."""
    try:
        values, failure = _flatten_numbers(raw)
    except (TypeError, ValueError, OverflowError):
        return NoBox(reason="unreadable")
    if values is None:
        return NoBox(reason=failure or "not_numeric")
    if not values:
        return NoBox(reason="empty")

    if len(values) == 4:
        box = Box(*values)
        if not box.has_extent:
            return NoBox(reason="degenerate_box")
        return BoxFound(box=box, shape="corners")

    if len(values) >= 7:
        x_center, y_center, width, height = values[:4]
        box = Box(
            x1=x_center - width / 2,
            y1=y_center - height / 2,
            x2=x_center + width / 2,
            y2=y_center + height / 2,
        )
        if not box.has_extent:
            return NoBox(reason="degenerate_box")
        return BoxFound(box=box, shape="center")

    for start in range(0, len(values) - 3, 4):
        box = Box(*values[start : start + 4])
        if box.is_valid:
            return BoxFound(box=box, shape="window")

    return NoBox(reason="no_valid_window")


def bucket_for_area(area: float) -> SizeBucket:
    """Bucket a box area into small, medium or large."""
    if area < SMALL_AREA_MAX:
        return "small"
    if area <= LARGE_AREA_MIN:
        return "medium"
    return "large"


def size_from_detection(raw: Any) -> SizeBucket:
    """Return the size bucket for raw detector output; never raises."""
    parsed = parse_detection(raw)
    if isinstance(parsed, NoBox):
        return DEFAULT_BUCKET
    return bucket_for_area(parsed.box.area)


def _flatten_numbers(raw: Any) -> tuple[Optional[list[float]], Optional[str]]:
    """Flatten nested sequences into finite floats.

    Returns ``(values, None)``, or ``(None, reason)`` when the input is not
    numeric or nests deeper than MAX_NESTING_DEPTH (including cycles).
    """
    root = _as_iterable(raw)
    if root is None:
        return None, "not_numeric"

    values: list[float] = []
    stack: list[Iterator[Any]] = [iter(root)]
    while stack:
        item = next(stack[-1], _EXHAUSTED)
        if item is _EXHAUSTED:
            stack.pop()
            continue
        if isinstance(item, bool):
            return None, "not_numeric"
        if isinstance(item, (int, float)):
            value = float(item)
            if not math.isfinite(value):
                return None, "not_numeric"
            values.append(value)
            continue
        nested = _as_iterable(item)
        if nested is None:
            return None, "not_numeric"
        if len(stack) >= MAX_NESTING_DEPTH:
            return None, "too_deep"
        stack.append(iter(nested))
    return values, None


_EXHAUSTED = object()


def _as_iterable(raw: Any) -> Optional[Iterable[Any]]:
    if raw is None or isinstance(raw, (str, bytes)):
        return None

    if hasattr(raw, "tolist"):
        raw = raw.tolist()

    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return [raw]

    if not isinstance(raw, Iterable):
        return None
    return raw
