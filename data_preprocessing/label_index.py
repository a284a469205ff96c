import logging
from collections import OrderedDict
from pathlib import Path

import numpy as np
import pandas as pd

from .dataset import LabeledInterval
from .errors import ParseError

logger = logging.getLogger(__name__)

LABEL_COLUMNS = ["experiment_id", "subject_id", "activity_id", "start_sample", "end_sample"]


def read_whitespace_table(path, n_fields):
    """
    Read a whitespace-delimited table whose rows must all have ``n_fields`` fields.

    Returns a DataFrame of strings with columns 0..n_fields-1 and a 1-based
    row number index. Raises ParseError on ragged rows.
    """
    path = Path(path)
    try:
        df = pd.read_csv(path, sep=r"\s+", header=None, dtype=str)
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=range(n_fields), dtype=str)
    except pd.errors.ParserError as e:
        raise ParseError(path, None, f"ragged row ({e})") from e

    df.index = np.arange(1, len(df) + 1)

    if df.shape[1] > n_fields:
        extra = df[df.iloc[:, n_fields:].notna().any(axis=1)]
        row = int(extra.index[0]) if len(extra) else None
        raise ParseError(path, row, f"expected {n_fields} fields, found {df.shape[1]}")

    if df.shape[1] < n_fields:
        raise ParseError(path, 1, f"expected {n_fields} fields, found {df.shape[1]}")

    short = df[df.isna().any(axis=1)]
    if len(short):
        raise ParseError(path, int(short.index[0]), f"expected {n_fields} fields")

    return df


def _to_int_column(path, column):
    values = pd.to_numeric(column, errors="coerce")
    bad = values.isna() | (values % 1 != 0)
    if bad.any():
        row = int(column.index[bad.to_numpy()][0])
        raise ParseError(path, row, f"non-integer field {column[row]!r}")
    return values.astype(np.int64)


class LabelIndex:
    """
    Labeled intervals of every recording, grouped by (experiment, subject).
    """

    def __init__(self, intervals):
        self.intervals = list(intervals)
        self._by_recording = OrderedDict()
        for interval in self.intervals:
            key = (interval.experiment_id, interval.subject_id)
            self._by_recording.setdefault(key, []).append(interval)

    def __len__(self):
        return len(self.intervals)

    def intervals_for(self, experiment_id, subject_id):
        return list(self._by_recording.get((experiment_id, subject_id), []))

    def recordings(self):
        """Distinct (experiment_id, subject_id) pairs in first-appearance order."""
        return list(self._by_recording.keys())

    def subjects(self):
        return sorted({interval.subject_id for interval in self.intervals})


def parse_label_index(path):
    """
    Parse labels.txt: ``<experiment> <subject> <activity> <start> <end>`` per row.
    """
    path = Path(path)
    df = read_whitespace_table(path, len(LABEL_COLUMNS))
    columns = {name: _to_int_column(path, df[i]) for i, name in enumerate(LABEL_COLUMNS)}
    table = pd.DataFrame(columns, index=df.index)

    reversed_rows = table[table["start_sample"] > table["end_sample"]]
    if len(reversed_rows):
        row = int(reversed_rows.index[0])
        raise ParseError(path, row, "start sample is after end sample")

    intervals = [LabeledInterval(*map(int, rec)) for rec in table[LABEL_COLUMNS].itertuples(index=False)]
    index = LabelIndex(intervals)
    logger.info(f"Label index: {len(index)} intervals over {len(index.recordings())} recordings, "
                f"{len(index.subjects())} subjects")
    return index


def parse_activity_labels(path):
    """
    Parse activity_labels.txt into ``{activity_id: activity_name}``.
    """
    path = Path(path)
    df = read_whitespace_table(path, 2)
    ids = _to_int_column(path, df[0])

    names = {}
    for row, activity_id, name in zip(df.index, ids, df[1]):
        if int(activity_id) in names:
            raise ParseError(path, int(row), f"duplicate activity id {activity_id}")
        names[int(activity_id)] = name
    return names
