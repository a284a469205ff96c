"""
Containers for labeled HAPT intervals, raw recordings and observations.
"""
from dataclasses import dataclass

import numpy as np

CHANNEL_NAMES = ["acc_x", "acc_y", "acc_z", "gyro_x", "gyro_y", "gyro_z"]


@dataclass(frozen=True)
class LabeledInterval:
    """One row of labels.txt. Sample positions are 1-based and inclusive."""
    experiment_id: int
    subject_id: int
    activity_id: int
    start_sample: int
    end_sample: int

    @property
    def length(self) -> int:
        return self.end_sample - self.start_sample + 1


@dataclass(frozen=True, eq=False)
class RawRecording:
    """
    One experiment of one subject.

    Attributes:
        samples: float array of shape (n_samples, 6), motion channels first
    """
    experiment_id: int
    subject_id: int
    samples: np.ndarray

    def __len__(self):
        return self.samples.shape[0]


@dataclass(frozen=True, eq=False)
class Observation:
    """
    Time-series container for one labeled activity event.

    Attributes:
        observation_id: sequential id, reassigned whenever the set is filtered
        activity_id: raw activity identifier from the label table
        activity_name: activity name from the lookup table
        subject_id: subject (user) that performed the activity
        data: read-only array of sensor readings, shape (seq_len, n_channels)
    """
    observation_id: int
    activity_id: int
    activity_name: str
    subject_id: int
    data: np.ndarray

    @property
    def length(self) -> int:
        return int(self.data.shape[0])

    @property
    def label(self) -> int:
        return self.activity_id

    def renumbered(self, observation_id):
        return Observation(observation_id, self.activity_id, self.activity_name,
                           self.subject_id, self.data)


def freeze(array):
    """Return a read-only float copy of ``array``."""
    out = np.array(array, dtype=np.float64, copy=True)
    out.setflags(write=False)
    return out
