"""
Figures for the HAPT walkthrough: length distributions, raw recordings,
prediction confidence and the confusion matrix.
"""
import logging
import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from data_preprocessing.dataset import CHANNEL_NAMES

logger = logging.getLogger(__name__)


def _save(fig, save_path):
    os.makedirs(os.path.dirname(save_path) or ".", exist_ok=True)
    fig.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Plot saved to {save_path}")
    return save_path


def observation_frame(observations):
    return pd.DataFrame({
        "observation_id": [obs.observation_id for obs in observations],
        "activity_id": [obs.activity_id for obs in observations],
        "activity_name": [obs.activity_name for obs in observations],
        "subject_id": [obs.subject_id for obs in observations],
        "length": [obs.length for obs in observations],
    })


def plot_length_distribution(observations, pad_size, save_path):
    """Histogram of observation lengths per activity, with the pad size marked."""
    df = observation_frame(observations)
    names = sorted(df["activity_name"].unique())
    fig, axes = plt.subplots(len(names), 1, figsize=(10, 1.8 * max(len(names), 1)), sharex=True, squeeze=False)

    bins = np.linspace(0, max(df["length"].max(), pad_size) * 1.05, 40)
    for ax, name in zip(axes[:, 0], names):
        ax.hist(df.loc[df["activity_name"] == name, "length"], bins=bins, alpha=0.8)
        ax.axvline(pad_size, color="red", linestyle="--", linewidth=1)
        ax.set_ylabel(name, rotation=0, ha="right", fontsize=8)
    axes[-1, 0].set_xlabel("observation length (samples)")
    axes[0, 0].set_title(f"Observation lengths (pad size = {pad_size})")
    return _save(fig, save_path)


def plot_recording(recording, intervals, activity_names, save_path, max_len=None):
    """Six channels of one recording with its labeled intervals shaded."""
    X = recording.samples if max_len is None else recording.samples[:max_len]
    t = np.arange(len(X))

    fig, ax = plt.subplots(figsize=(14, 6))
    for k, name in enumerate(CHANNEL_NAMES):
        ax.plot(t, X[:, k], label=name, linewidth=0.8)
    for interval in intervals:
        start, end = interval.start_sample - 1, interval.end_sample - 1
        if start >= len(X):
            continue
        ax.axvspan(start, min(end, len(X) - 1), alpha=0.15, color="gray")
        ax.text(start, ax.get_ylim()[1], activity_names.get(interval.activity_id, str(interval.activity_id)),
                fontsize=6, rotation=90, va="top")

    ax.set_title(f"exp{recording.experiment_id:02d} / user{recording.subject_id:02d}")
    ax.set_xlabel("sample index")
    ax.set_ylabel("sensor value")
    ax.legend(ncol=3, fontsize=8)
    return _save(fig, save_path)


def prediction_frame(observations, probs, encoder):
    pred_idx = probs.argmax(axis=1)
    true_idx = encoder.indices([obs.activity_id for obs in observations])
    names = encoder.class_names()
    return pd.DataFrame({
        "observation_id": [obs.observation_id for obs in observations],
        "subject_id": [obs.subject_id for obs in observations],
        "true_activity": [names[i] for i in true_idx],
        "predicted_activity": [names[i] for i in pred_idx],
        "confidence": probs.max(axis=1),
        "true_class_prob": probs[np.arange(len(probs)), true_idx],
        "correct": pred_idx == true_idx,
    })


def plot_predictions(pred_df, save_path):
    """Probability assigned to the true class, per observation and activity."""
    names = sorted(pred_df["true_activity"].unique())
    fig, ax = plt.subplots(figsize=(10, 5))
    for i, name in enumerate(names):
        part = pred_df[pred_df["true_activity"] == name]
        jitter = np.random.RandomState(i).uniform(-0.2, 0.2, len(part))
        colors = np.where(part["correct"], "tab:green", "tab:red")
        ax.scatter(i + jitter, part["true_class_prob"], c=colors, s=12, alpha=0.7)
    ax.set_xticks(range(len(names)))
    ax.set_xticklabels(names, rotation=30, ha="right", fontsize=8)
    ax.set_ylabel("probability of true class")
    ax.set_ylim(0, 1.05)
    ax.set_title("Test predictions (green = correct)")
    return _save(fig, save_path)


def plot_confusion_matrix(cm, class_names, save_path):
    fig, ax = plt.subplots(figsize=(7, 6))
    im = ax.imshow(cm, cmap="Blues")
    fig.colorbar(im, ax=ax)
    ax.set_xticks(range(len(class_names)))
    ax.set_yticks(range(len(class_names)))
    ax.set_xticklabels(class_names, rotation=45, ha="right", fontsize=8)
    ax.set_yticklabels(class_names, fontsize=8)
    for i in range(cm.shape[0]):
        for j in range(cm.shape[1]):
            ax.text(j, i, int(cm[i, j]), ha="center", va="center", fontsize=8)
    ax.set_xlabel("predicted")
    ax.set_ylabel("true")
    return _save(fig, save_path)
