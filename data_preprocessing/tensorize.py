"""
Observations -> per-split tensors for the classifier.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np
import torch

from .data_preprocess import compute_pad_size, pad_sequences
from .dataset import CHANNEL_NAMES, Observation
from .label_encoder import ActivityEncoder
from .split import partition_subjects, split_by_subject

logger = logging.getLogger(__name__)


@dataclass
class TensorSplit:
    X: torch.Tensor          # [N, pad_size, 6]
    Y: np.ndarray            # [N, num_classes] one-hot
    lengths: torch.Tensor    # [N] samples kept before padding
    observations: List[Observation] = field(default_factory=list)

    def __len__(self):
        return self.X.shape[0]

    @property
    def class_indices(self) -> np.ndarray:
        return self.Y.argmax(axis=1) if len(self.Y) else np.zeros(0, dtype=np.int64)


@dataclass
class TensorBundle:
    train: TensorSplit
    test: TensorSplit
    pad_size: int
    train_subjects: List[int]
    test_subjects: List[int]


def tensorize(observations, pad_size, encoder, truncate_from="head", pad_from="head"):
    X, lengths = pad_sequences(observations, pad_size, truncate_from=truncate_from,
                               pad_from=pad_from, channels=len(CHANNEL_NAMES))
    Y = encoder.encode([obs.activity_id for obs in observations])
    return TensorSplit(X=X, Y=Y, lengths=lengths, observations=list(observations))


def build_tensor_splits(observations, encoder: ActivityEncoder, percentile=0.98, train_fraction=0.8,
                        seed=42, truncate_from="head", pad_from="head", method="higher") -> TensorBundle:
    """
    Partition observations by subject and tensorize both splits.

    The pad size comes from the training split only and is reused unchanged
    for the evaluation split.
    """
    train_ids, test_ids = partition_subjects([obs.subject_id for obs in observations], train_fraction, seed)
    train_obs, test_obs = split_by_subject(observations, train_ids, test_ids)

    pad_size = compute_pad_size(train_obs, percentile, method=method)
    logger.info(f"[Padding] pad_size={pad_size} (percentile={percentile}, method={method}, "
                f"truncate_from={truncate_from}, pad_from={pad_from})")

    train = tensorize(train_obs, pad_size, encoder, truncate_from, pad_from)
    test = tensorize(test_obs, pad_size, encoder, truncate_from, pad_from)
    logger.info(f"Train tensor: X{tuple(train.X.shape)} Y{train.Y.shape} | "
                f"Test tensor: X{tuple(test.X.shape)} Y{test.Y.shape}")
    return TensorBundle(train=train, test=test, pad_size=pad_size,
                        train_subjects=train_ids, test_subjects=test_ids)
