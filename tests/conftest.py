import numpy as np
import pytest

ACTIVITY_NAMES = {
    1: "WALKING",
    4: "SITTING",
    7: "STAND_TO_SIT",
    8: "SIT_TO_STAND",
    9: "SIT_TO_LIE",
}


def motion_values(experiment_id, n):
    return np.arange(n * 3, dtype=np.float64).reshape(n, 3) + 1000.0 * experiment_id


def rotation_values(experiment_id, n):
    return -motion_values(experiment_id, n) / 10.0


def write_signal(path, values):
    np.savetxt(path, values, fmt="%.6f", delimiter=" ")


def write_hapt(root, recordings, intervals, activity_names=None):
    """
    Write a miniature HAPT tree.

    recordings: {(experiment_id, subject_id): n_samples}
    intervals: [(experiment_id, subject_id, activity_id, start, end), ...]
    """
    raw_dir = root / "RawData"
    raw_dir.mkdir(parents=True, exist_ok=True)
    names = ACTIVITY_NAMES if activity_names is None else activity_names
    (root / "activity_labels.txt").write_text("".join(f"{k} {v}\n" for k, v in names.items()))
    (raw_dir / "labels.txt").write_text("".join(" ".join(map(str, row)) + "\n" for row in intervals))
    for (exp, user), n in recordings.items():
        write_signal(raw_dir / f"acc_exp{exp:02d}_user{user:02d}.txt", motion_values(exp, n))
        write_signal(raw_dir / f"gyro_exp{exp:02d}_user{user:02d}.txt", rotation_values(exp, n))
    return root


@pytest.fixture
def hapt_root(tmp_path):
    recordings = {(1, 1): 300, (2, 2): 300}
    intervals = [
        (1, 1, 7, 11, 50),     # 40 samples
        (1, 1, 4, 51, 80),     # 30 samples, not allow-listed
        (1, 1, 8, 101, 160),   # 60 samples
        (2, 2, 9, 1, 100),     # 100 samples
    ]
    return write_hapt(tmp_path / "hapt", recordings, intervals)


@pytest.fixture
def make_hapt(tmp_path):
    def _make(recordings, intervals, activity_names=None):
        return write_hapt(tmp_path / "hapt", recordings, intervals, activity_names)
    return _make
