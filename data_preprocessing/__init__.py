"""
Turn raw HAPT smartphone recordings into fixed-shape supervised examples.
"""
from .errors import (
    HaptDataError,
    ParseError,
    MissingFileError,
    AlignmentError,
    OutOfRangeError,
    UnknownActivityError,
    EncodingError,
)
from .dataset import LabeledInterval, RawRecording, Observation, CHANNEL_NAMES
from .label_index import LabelIndex, parse_label_index, parse_activity_labels
from .hapt_preprocess import read_recording, extract_observations, select_activities, load_hapt
from .data_preprocess import compute_pad_size, pad_sequences
from .label_encoder import ActivityEncoder, one_hot_encode, to_class_indices, decode_one_hot
from .split import partition_subjects, split_by_subject
from .tensorize import TensorSplit, TensorBundle, build_tensor_splits
