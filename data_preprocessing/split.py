import logging
import math

import numpy as np

logger = logging.getLogger(__name__)


def partition_subjects(subject_ids, train_fraction=0.8, seed=42):
    """
    Split subjects into disjoint train/test sets.

    The input is deduplicated and sorted first, so the result depends only on
    the subject set and the seed. round(train_fraction * n) subjects (halves
    rounded up) are drawn without replacement for training.

    Returns:
        (train_ids, test_ids): sorted lists of subject ids
    """
    if not 0.0 <= train_fraction <= 1.0:
        raise ValueError(f"train_fraction must be in [0, 1], got {train_fraction}")

    subjects = np.array(sorted({int(s) for s in subject_ids}), dtype=np.int64)
    n_train = int(math.floor(train_fraction * len(subjects) + 0.5))

    rng = np.random.RandomState(seed)
    train = rng.choice(subjects, n_train, replace=False) if n_train else np.array([], dtype=np.int64)
    train_ids = sorted(int(s) for s in train)
    test_ids = sorted(set(subjects.tolist()) - set(train_ids))

    logger.info(f"Subject split (seed={seed}): train={train_ids} test={test_ids}")
    return train_ids, test_ids


def split_by_subject(observations, train_ids, test_ids):
    """
    Assign observations to splits by subject membership, preserving order.
    """
    train_set, test_set = set(train_ids), set(test_ids)
    overlap = train_set & test_set
    if overlap:
        raise ValueError(f"subjects in both splits: {sorted(overlap)}")

    train_obs, test_obs = [], []
    for obs in observations:
        if obs.subject_id in train_set:
            train_obs.append(obs)
        elif obs.subject_id in test_set:
            test_obs.append(obs)
        else:
            raise ValueError(f"subject {obs.subject_id} is in neither split")
    return train_obs, test_obs
