from __future__ import annotations

from typing import Iterable, Optional

import numpy as np

from .errors import EncodingError


def to_class_indices(activity_ids: Iterable[int], offset: int, num_classes: int) -> np.ndarray:
    """Shift activity ids to zero-based class indices, checking the range."""
    ids = np.asarray(list(activity_ids), dtype=np.int64)
    indices = ids - int(offset)
    bad = (indices < 0) | (indices >= num_classes)
    if bad.any():
        raise EncodingError(
            f"Activity id {int(ids[bad][0])} is outside [{offset}, {offset + num_classes - 1}]"
        )
    return indices


def one_hot_encode(activity_ids: Iterable[int], offset: int, num_classes: Optional[int] = None) -> np.ndarray:
    """
    One-hot encode activity ids.

    Args:
        activity_ids: raw activity identifiers
        offset: smallest retained raw identifier
        num_classes: width of the encoding; defaults to the number of distinct ids

    Returns:
        float32 array [N, num_classes]
    """
    ids = list(activity_ids)
    if num_classes is None:
        num_classes = len(set(ids))
    indices = to_class_indices(ids, offset, num_classes)
    encoded = np.zeros((len(indices), num_classes), dtype=np.float32)
    encoded[np.arange(len(indices)), indices] = 1.0
    return encoded


def decode_one_hot(rows: np.ndarray, offset: int) -> np.ndarray:
    """Recover raw activity ids from one-hot (or probability) rows."""
    rows = np.asarray(rows)
    return rows.argmax(axis=1).astype(np.int64) + int(offset)


class ActivityEncoder:
    """
    Label encoder fixed to an activity allow-list, so every split shares one width.
    """

    def __init__(self, allowed_ids: Iterable[int], names: Optional[dict] = None):
        self.allowed_ids = sorted({int(a) for a in allowed_ids})
        if not self.allowed_ids:
            raise ValueError("allow-list of activities is empty")
        self.offset = self.allowed_ids[0]
        self.num_classes = len(self.allowed_ids)
        # ids that are not contiguous cannot be shifted into [0, num_classes)
        to_class_indices(self.allowed_ids, self.offset, self.num_classes)
        self.names = dict(names or {})

    def encode(self, activity_ids: Iterable[int]) -> np.ndarray:
        return one_hot_encode(activity_ids, self.offset, self.num_classes)

    def indices(self, activity_ids: Iterable[int]) -> np.ndarray:
        return to_class_indices(activity_ids, self.offset, self.num_classes)

    def decode(self, rows: np.ndarray) -> np.ndarray:
        return decode_one_hot(rows, self.offset)

    def class_names(self):
        return [self.names.get(a, str(a)) for a in self.allowed_ids]
