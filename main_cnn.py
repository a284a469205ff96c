"""
HAPT postural-transition classifier.
Loads raw recordings, slices labeled observations, pads them to a fixed length,
splits by subject, trains a 1-D CNN and reports test metrics and figures.
"""
import argparse
import logging
import os
import sys

import numpy as np
import pandas as pd
import torch
import yaml

from data_preprocessing import (
    ActivityEncoder,
    HaptDataError,
    build_tensor_splits,
    load_hapt,
    parse_activity_labels,
    parse_label_index,
    read_recording,
)
from models import ConvClassifier, ConvConfig
from trainer import TrainConfig, evaluate, predict_proba, train_model
import visualize


def setup_args(argv=None):
    parser = argparse.ArgumentParser(description="HAPT CNN activity classifier")
    parser.add_argument("--dataset", type=str, default="hapt", help="Name of configs/<dataset>.yaml")
    parser.add_argument("--config", type=str, default=None, help="Explicit YAML config path")
    parser.add_argument("--data_root", type=str, default=None)
    parser.add_argument("--percentile", type=float, default=None)
    parser.add_argument("--truncate_from", type=str, default=None, choices=["head", "tail"])
    parser.add_argument("--pad_from", type=str, default=None, choices=["head", "tail"])
    parser.add_argument("--train_fraction", type=float, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--epochs", type=int, default=None)
    parser.add_argument("--batch_size", type=int, default=None)
    parser.add_argument("--lr", type=float, default=None)
    parser.add_argument("--no_plots", action="store_true", default=False)
    return parser.parse_args(argv)


def load_yaml_config(dataset_name, config_path=None):
    config_path = config_path or os.path.join("configs", f"{dataset_name}.yaml")
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"YAML config not found: {config_path}")
    with open(config_path, "r") as f:
        return yaml.safe_load(f)


def merge_args(config, args):
    """CLI flags override the YAML config."""
    config = dict(config)
    config["training"] = dict(config.get("training", {}))
    for key in ["data_root", "percentile", "truncate_from", "pad_from", "train_fraction", "seed"]:
        value = getattr(args, key)
        if value is not None:
            config[key] = value
    for key in ["epochs", "batch_size", "lr"]:
        value = getattr(args, key)
        if value is not None:
            config["training"][key] = value
    return config


def run(config, make_plots=True):
    seed = config.get("seed", 42)
    torch.manual_seed(seed)
    np.random.seed(seed)
    device = torch.device("cuda" if torch.cuda.is_available() else "cpu")

    output = config.get("output", {})
    results_dir = os.path.join(output.get("results_dir", "results"), "hapt")
    os.makedirs(results_dir, exist_ok=True)

    root = config["data_root"]
    group_tags = config.get("group_tags")

    logging.info("=" * 50)
    logging.info("Data preparation")
    logging.info("=" * 50)
    raw_dir = os.path.join(root, "RawData")
    activity_names = parse_activity_labels(os.path.join(root, "activity_labels.txt"))
    label_index = parse_label_index(os.path.join(raw_dir, "labels.txt"))
    observations = load_hapt(root, config["activities"], group_tags,
                             activity_names=activity_names, label_index=label_index)
    if not observations:
        raise ValueError(f"No observations for activities {config['activities']}")
    encoder = ActivityEncoder(config["activities"], activity_names)

    bundle = build_tensor_splits(
        observations,
        encoder,
        percentile=config.get("percentile", 0.98),
        train_fraction=config.get("train_fraction", 0.8),
        seed=seed,
        truncate_from=config.get("truncate_from", "head"),
        pad_from=config.get("pad_from", "head"),
        method=config.get("percentile_method", "higher"),
    )

    if make_plots:
        visualize.plot_length_distribution(bundle.train.observations, bundle.pad_size,
                                           os.path.join(results_dir, "length_distribution.png"))
        exp_user = output.get("plot_recording")
        if exp_user:
            experiment_id, subject_id = exp_user
            recording = read_recording(raw_dir, experiment_id, subject_id, group_tags)
            intervals = label_index.intervals_for(experiment_id, subject_id)
            visualize.plot_recording(recording, intervals, activity_names,
                                     os.path.join(results_dir, f"recording_exp{experiment_id:02d}_user{subject_id:02d}.png"))

    logging.info("=" * 50)
    logging.info("Training")
    logging.info("=" * 50)
    model_cfg = ConvConfig(**config.get("model", {}))
    model = ConvClassifier(n_vars=bundle.train.X.shape[2], num_classes=encoder.num_classes, cfg=model_cfg)
    if bundle.pad_size < model.min_length:
        raise ValueError(f"pad_size {bundle.pad_size} is shorter than the model receptive field {model.min_length}")
    train_cfg = TrainConfig(**{**config.get("training", {}), "seed": seed, "checkpoint_path": output.get("checkpoint")})
    history = train_model(model, bundle.train.X, bundle.train.class_indices, train_cfg, device)
    pd.DataFrame(history).to_csv(os.path.join(results_dir, "cnn_history.csv"), index=False)

    logging.info("=" * 50)
    logging.info("Evaluation")
    logging.info("=" * 50)
    probs = predict_proba(model, bundle.test.X, train_cfg.batch_size, device)
    y_true = bundle.test.class_indices
    y_pred = probs.argmax(axis=1) if len(probs) else np.zeros(0, dtype=np.int64)
    metrics = evaluate(y_true, y_pred, encoder.num_classes)
    logging.info(f"[Test] Acc: {metrics['accuracy']:.4f} | F1: {metrics['f1']:.4f} | "
                 f"n={len(y_true)} subjects={bundle.test_subjects}")

    summary = pd.DataFrame([{
        "pad_size": bundle.pad_size,
        "n_train": len(bundle.train),
        "n_test": len(bundle.test),
        "accuracy": metrics["accuracy"],
        "f1": metrics["f1"],
        "epochs_run": len(history),
    }])
    summary.to_csv(os.path.join(results_dir, "cnn_metrics.csv"), index=False)

    if len(probs):
        pred_df = visualize.prediction_frame(bundle.test.observations, probs, encoder)
        pred_df.to_csv(os.path.join(results_dir, "cnn_predictions.csv"), index=False)
        if make_plots:
            visualize.plot_predictions(pred_df, os.path.join(results_dir, "predictions.png"))
            visualize.plot_confusion_matrix(metrics["confusion_matrix"], encoder.class_names(),
                                            os.path.join(results_dir, "confusion_matrix.png"))

    logging.info(f"Results saved to {results_dir}/")
    return metrics


def main(argv=None):
    args = setup_args(argv)
    config = merge_args(load_yaml_config(args.dataset, args.config), args)

    log_dir = config.get("output", {}).get("log_dir", "logs")
    os.makedirs(log_dir, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler(os.path.join(log_dir, f"cnn_{args.dataset}.log")), logging.StreamHandler()],
    )
    logging.info(f"Starting CNN training on {args.dataset} dataset")

    try:
        run(config, make_plots=not args.no_plots)
    except HaptDataError as e:
        logging.error(f"Data preparation failed: {e}")
        return 1
    except ValueError as e:
        logging.error(f"Run aborted: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
