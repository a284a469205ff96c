import numpy as np
import pytest

from data_preprocessing import Observation, partition_subjects, split_by_subject

SUBJECTS = list(range(1, 31))


@pytest.mark.parametrize("seed", range(10))
def test_partition_is_disjoint_and_complete(seed):
    train, test = partition_subjects(SUBJECTS, 0.8, seed)
    assert set(train).isdisjoint(test)
    assert set(train) | set(test) == set(SUBJECTS)
    assert len(train) == 24


def test_partition_is_deterministic_and_order_independent():
    shuffled = list(reversed(SUBJECTS)) + SUBJECTS
    assert partition_subjects(SUBJECTS, 0.8, 3) == partition_subjects(shuffled, 0.8, 3)


def test_partition_depends_on_seed():
    results = {tuple(partition_subjects(SUBJECTS, 0.5, seed)[0]) for seed in range(5)}
    assert len(results) > 1


@pytest.mark.parametrize("fraction,expected", [(0.0, 0), (1.0, 5), (0.5, 3), (0.6, 3), (0.25, 1)])
def test_partition_sizes(fraction, expected):
    train, test = partition_subjects([1, 2, 3, 4, 5], fraction, 0)
    assert len(train) == expected
    assert len(test) == 5 - expected


def test_partition_rejects_bad_fraction():
    with pytest.raises(ValueError):
        partition_subjects(SUBJECTS, 1.2, 0)


def obs(i, subject):
    return Observation(i, 7, "STAND_TO_SIT", subject, np.zeros((3, 6)))


def test_split_by_subject_preserves_order():
    observations = [obs(0, 1), obs(1, 2), obs(2, 1), obs(3, 3)]
    train, test = split_by_subject(observations, [1, 3], [2])
    assert [o.observation_id for o in train] == [0, 2, 3]
    assert [o.observation_id for o in test] == [1]


def test_split_by_subject_unknown_subject():
    with pytest.raises(ValueError):
        split_by_subject([obs(0, 4)], [1], [2])


def test_split_by_subject_overlap():
    with pytest.raises(ValueError):
        split_by_subject([obs(0, 1)], [1], [1])
