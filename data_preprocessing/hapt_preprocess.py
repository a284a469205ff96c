from collections import Counter
from pathlib import Path
import logging

import numpy as np
import pandas as pd

from .dataset import RawRecording, Observation, freeze
from .errors import AlignmentError, MissingFileError, OutOfRangeError, ParseError, UnknownActivityError
from .label_index import parse_activity_labels, parse_label_index

logger = logging.getLogger(__name__)

# HAPT data format (RawData/):
# acc_exp01_user01.txt  -> 3 columns (x y z) accelerometer, 50 Hz
# gyro_exp01_user01.txt -> 3 columns (x y z) gyroscope, 50 Hz
# labels.txt            -> exp user activity start end (1-based, inclusive)
DEFAULT_GROUP_TAGS = {"motion": "acc", "rotation": "gyro"}
SENSOR_GROUPS = ("motion", "rotation")


def signal_path(raw_dir, tag, experiment_id, subject_id):
    return Path(raw_dir) / f"{tag}_exp{experiment_id:02d}_user{subject_id:02d}.txt"


def _read_signal_file(path):
    if not path.exists():
        raise MissingFileError(path)
    try:
        df = pd.read_csv(path, sep=r"\s+", header=None)
    except pd.errors.EmptyDataError:
        return np.empty((0, 3))
    except pd.errors.ParserError as e:
        raise ParseError(path, None, f"ragged row ({e})") from e

    if df.shape[1] != 3:
        raise ParseError(path, None, f"expected 3 channels, found {df.shape[1]}")
    values = df.apply(pd.to_numeric, errors="coerce")
    bad = values.isna().any(axis=1).to_numpy()
    if bad.any():
        raise ParseError(path, int(np.argmax(bad)) + 1, "non-numeric or missing sample")
    return values.to_numpy(dtype=np.float64)


def read_recording(raw_dir, experiment_id, subject_id, group_tags=None):
    """
    Load the motion and rotation files of one recording and join them by row.

    Returns:
        RawRecording whose samples are (n, 6): motion xyz then rotation xyz.
    """
    tags = dict(DEFAULT_GROUP_TAGS, **(group_tags or {}))
    parts = []
    for group in SENSOR_GROUPS:
        path = signal_path(raw_dir, tags[group], experiment_id, subject_id)
        parts.append((path, _read_signal_file(path)))

    (motion_path, motion), (rotation_path, rotation) = parts
    if motion.shape[0] != rotation.shape[0]:
        raise AlignmentError(
            f"Recording exp{experiment_id:02d}/user{subject_id:02d}: "
            f"{motion_path.name} has {motion.shape[0]} samples but "
            f"{rotation_path.name} has {rotation.shape[0]}"
        )

    samples = freeze(np.concatenate([motion, rotation], axis=1))
    return RawRecording(experiment_id, subject_id, samples)


def extract_observations(label_index, raw_dir, activity_names, group_tags=None):
    """
    Slice every labeled interval out of its recording.

    Recordings are visited in first-appearance order of the label table and
    intervals in file order; observation ids follow that global order.

    Args:
        label_index: LabelIndex parsed from labels.txt
        raw_dir: directory holding the per-recording signal files
        activity_names: {activity_id: name} lookup
        group_tags: optional override of the sensor-group file tags

    Returns:
        List of Observation objects with data [seq_len, 6].
    """
    logger.info("Loading HAPT Dataset --------------------------------------")

    observations = []
    total_raw_samples = 0

    for experiment_id, subject_id in label_index.recordings():
        recording = read_recording(raw_dir, experiment_id, subject_id, group_tags)
        total_raw_samples += len(recording)
        logger.debug(f"Recording exp{experiment_id:02d}/user{subject_id:02d}: {len(recording)} samples")

        for interval in label_index.intervals_for(experiment_id, subject_id):
            if interval.start_sample < 1 or interval.end_sample > len(recording):
                raise OutOfRangeError(
                    f"Interval [{interval.start_sample}, {interval.end_sample}] of "
                    f"exp{experiment_id:02d}/user{subject_id:02d} exceeds recording length {len(recording)}"
                )
            if interval.activity_id not in activity_names:
                raise UnknownActivityError(f"Activity id {interval.activity_id} has no name")

            data = recording.samples[interval.start_sample - 1:interval.end_sample]
            observations.append(Observation(
                observation_id=len(observations),
                activity_id=interval.activity_id,
                activity_name=activity_names[interval.activity_id],
                subject_id=subject_id,
                data=freeze(data),
            ))

    logger.info("Loading HAPT Dataset Finished --------------------------------------")
    log_summary(observations, total_raw_samples)
    return observations


def select_activities(observations, allowed_ids):
    """
    Keep only observations of allow-listed activities, renumbering ids from 0.
    """
    allowed = set(int(a) for a in allowed_ids)
    kept = [obs for obs in observations if obs.activity_id in allowed]
    kept = [obs.renumbered(i) for i, obs in enumerate(kept)]
    logger.info(f"Selected {len(kept)}/{len(observations)} observations for activities {sorted(allowed)}")
    return kept


def log_summary(observations, total_raw_samples=None):
    lengths = np.array([obs.length for obs in observations])
    activity_counts = Counter(obs.activity_id for obs in observations)
    names = {obs.activity_id: obs.activity_name for obs in observations}

    logger.info("====== Dataset Summary ======")
    if total_raw_samples is not None:
        logger.info(f"Raw data points: {total_raw_samples}")
    logger.info(f"Total data points (labeled): {int(lengths.sum()) if len(lengths) else 0}")
    logger.info(f"Total activities (sequences): {len(observations)}")
    logger.info(f"Subjects: {sorted({obs.subject_id for obs in observations})}")
    if len(lengths):
        logger.info(f"Sequence length min/median/max: {lengths.min()}/{np.median(lengths):.1f}/{lengths.max()}")
    logger.info("Activity sequence counts and data points:")
    for label in sorted(activity_counts.keys()):
        total_points = sum(obs.length for obs in observations if obs.activity_id == label)
        logger.info(f"  Activity {label} ({names[label]}): {activity_counts[label]} sequences, "
                    f"{total_points} data points")


def load_hapt(root, allowed_ids=None, group_tags=None, activity_names=None, label_index=None):
    """
    Parse the HAPT tables under ``root`` and extract observations.

    Args:
        root: dataset root holding activity_labels.txt and RawData/
        allowed_ids: optional activity allow-list
        group_tags: optional override of the sensor-group file tags
        activity_names: already parsed activity lookup, read from root if None
        label_index: already parsed LabelIndex, read from root if None
    """
    root = Path(root)
    raw_dir = root / "RawData"
    if activity_names is None:
        activity_names = parse_activity_labels(root / "activity_labels.txt")
    if label_index is None:
        label_index = parse_label_index(raw_dir / "labels.txt")

    observations = extract_observations(label_index, raw_dir, activity_names, group_tags)
    if allowed_ids is not None:
        observations = select_activities(observations, allowed_ids)
    return observations
