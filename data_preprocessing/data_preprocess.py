"""
Fixed-length windowing of variable-length observations.

Sequences are cut or zero-filled to one pad size. The default policy matches
the common sequence-padding convention: both truncation and padding happen at
the head, so the tail of every observation survives.
"""
from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
import torch

POLICIES = ("head", "tail")


def _as_array(seq) -> np.ndarray:
    data = seq.data if hasattr(seq, "data") else seq
    data = np.asarray(data, dtype=np.float32)
    if data.ndim == 1:
        data = data[:, None]
    return data


def sequence_lengths(sequences: Sequence) -> np.ndarray:
    return np.array([_as_array(seq).shape[0] for seq in sequences], dtype=np.int64)


def compute_pad_size(sequences: Sequence, percentile: float = 0.98, method: str = "higher") -> int:
    """
    Pad size from the empirical length distribution.

    Args:
        sequences: observations or [T, C] arrays
        percentile: fraction in (0, 1], e.g. 0.98
        method: numpy percentile method; "higher" picks an observed length

    Returns:
        percentile-th sequence length, rounded up.
    """
    if not 0.0 < percentile <= 1.0:
        raise ValueError(f"percentile must be in (0, 1], got {percentile}")
    lengths = sequence_lengths(sequences)
    if lengths.size == 0:
        raise ValueError("cannot compute a pad size from zero sequences")

    value = np.percentile(lengths, percentile * 100.0, method=method)
    return int(math.ceil(float(value)))


def fit_length(data: np.ndarray, pad_size: int, truncate_from: str = "head",
               pad_from: str = "head", value: float = 0.0) -> np.ndarray:
    """
    data: [T, C]
    return: [pad_size, C]
    """
    T, C = data.shape
    if T >= pad_size:
        return data[T - pad_size:] if truncate_from == "head" else data[:pad_size]

    fill = np.full((pad_size - T, C), value, dtype=data.dtype)
    if pad_from == "head":
        return np.concatenate([fill, data], axis=0)
    return np.concatenate([data, fill], axis=0)


def pad_sequences(sequences: Sequence, pad_size: int, truncate_from: str = "head",
                  pad_from: str = "head", value: float = 0.0,
                  channels: Optional[int] = None) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Stack variable-length sequences into one fixed-shape tensor.

    Args:
        sequences: observations or [T_i, C] arrays, all with the same C
        pad_size: output sequence length
        truncate_from: "head" drops leading samples of long sequences (keeps
            the last pad_size), "tail" drops trailing ones
        pad_from: "head" prepends fill rows to short sequences, "tail" appends
        value: fill value
        channels: expected channel count; also the width of an empty result

    Returns:
        padded: float tensor [N, pad_size, C]
        lengths: long tensor [N], original samples kept per row
    """
    if truncate_from not in POLICIES:
        raise ValueError(f"truncate_from must be one of {POLICIES}, got {truncate_from!r}")
    if pad_from not in POLICIES:
        raise ValueError(f"pad_from must be one of {POLICIES}, got {pad_from!r}")
    if pad_size < 1:
        raise ValueError(f"pad_size must be >= 1, got {pad_size}")

    arrays: List[np.ndarray] = [_as_array(seq) for seq in sequences]
    if not arrays:
        return torch.zeros(0, pad_size, channels or 0), torch.zeros(0, dtype=torch.long)

    found = {a.shape[1] for a in arrays}
    if len(found) != 1:
        raise ValueError(f"sequences disagree on channel count: {sorted(found)}")
    if channels is not None and found != {channels}:
        raise ValueError(f"expected {channels} channels, got {found.pop()}")

    padded = np.stack([fit_length(a, pad_size, truncate_from, pad_from, value) for a in arrays], axis=0)
    lengths = np.minimum([a.shape[0] for a in arrays], pad_size)
    return torch.from_numpy(padded.astype(np.float32)), torch.as_tensor(lengths, dtype=torch.long)
