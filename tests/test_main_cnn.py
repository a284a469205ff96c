import pandas as pd
import pytest
import yaml

import main_cnn


def make_config(tmp_path, root, **overrides):
    config = {
        "data_root": str(root),
        "group_tags": {"motion": "acc", "rotation": "gyro"},
        "activities": [7, 8, 9],
        "percentile": 0.98,
        "percentile_method": "higher",
        "truncate_from": "head",
        "pad_from": "head",
        "train_fraction": 0.5,
        "seed": 1,
        "model": {"dropout": 0.0},
        "training": {"epochs": 2, "batch_size": 2, "validation_fraction": 0.0, "patience": 5, "log_every": 1},
        "output": {
            "results_dir": str(tmp_path / "results"),
            "log_dir": str(tmp_path / "logs"),
            "checkpoint": str(tmp_path / "ckpt" / "cnn.pt"),
            "plot_recording": [1, 1],
        },
    }
    config.update(overrides)
    path = tmp_path / "hapt.yaml"
    path.write_text(yaml.safe_dump(config))
    return path


def hapt_tree(make_hapt):
    intervals = []
    for subject in (1, 2):
        for k, activity in enumerate([7, 8, 9, 7, 8, 9]):
            start = 1 + k * 50
            intervals.append((subject, subject, activity, start, start + 29 + 3 * k))
    return make_hapt({(1, 1): 400, (2, 2): 400}, intervals)


def test_load_yaml_config_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        main_cnn.load_yaml_config("nope", str(tmp_path / "nope.yaml"))


def test_cli_overrides_config():
    args = main_cnn.setup_args(["--percentile", "0.9", "--epochs", "3", "--seed", "5"])
    config = main_cnn.merge_args({"percentile": 0.98, "seed": 42, "training": {"epochs": 350}}, args)
    assert config["percentile"] == 0.9
    assert config["seed"] == 5
    assert config["training"]["epochs"] == 3


def test_run_end_to_end(tmp_path, make_hapt):
    root = hapt_tree(make_hapt)
    path = make_config(tmp_path, root)

    assert main_cnn.main(["--config", str(path)]) == 0

    results = tmp_path / "results" / "hapt"
    metrics = pd.read_csv(results / "cnn_metrics.csv")
    assert metrics.loc[0, "n_train"] == 6
    assert metrics.loc[0, "n_test"] == 6
    assert metrics.loc[0, "epochs_run"] == 2
    assert 0.0 <= metrics.loc[0, "accuracy"] <= 1.0

    predictions = pd.read_csv(results / "cnn_predictions.csv")
    assert len(predictions) == 6
    for name in ["length_distribution.png", "recording_exp01_user01.png", "predictions.png", "confusion_matrix.png"]:
        assert (results / name).exists()
    assert (tmp_path / "ckpt" / "cnn.pt").exists()


def test_run_fails_on_corrupt_dataset(tmp_path, make_hapt):
    root = hapt_tree(make_hapt)
    (root / "RawData" / "gyro_exp02_user02.txt").write_text("0 0 0\n")
    path = make_config(tmp_path, root)

    assert main_cnn.main(["--config", str(path), "--no_plots"]) == 1
    assert not (tmp_path / "results" / "hapt" / "cnn_metrics.csv").exists()


def test_run_fails_when_no_activity_matches(tmp_path, make_hapt):
    root = hapt_tree(make_hapt)
    path = make_config(tmp_path, root, activities=[10, 11, 12])

    assert main_cnn.main(["--config", str(path), "--no_plots"]) == 1
    assert not (tmp_path / "results" / "hapt" / "cnn_metrics.csv").exists()


def test_run_fails_when_pad_size_is_below_receptive_field(tmp_path, make_hapt):
    root = hapt_tree(make_hapt)
    # receptive field 2 * 29 + 4 = 62, longer than every observation
    path = make_config(tmp_path, root, model={"dropout": 0.0, "kernel_size": 30})

    assert main_cnn.main(["--config", str(path), "--no_plots"]) == 1
    assert not (tmp_path / "results" / "hapt" / "cnn_history.csv").exists()


def test_training_section_may_repeat_seed_and_checkpoint(tmp_path, make_hapt):
    root = hapt_tree(make_hapt)
    training = {"epochs": 1, "batch_size": 2, "validation_fraction": 0.0, "patience": 5, "log_every": 1,
                "seed": 99, "checkpoint_path": str(tmp_path / "ignored.pt")}
    path = make_config(tmp_path, root, training=training)

    assert main_cnn.main(["--config", str(path), "--no_plots"]) == 0
    assert (tmp_path / "ckpt" / "cnn.pt").exists()
    assert not (tmp_path / "ignored.pt").exists()


def test_tables_are_parsed_once(tmp_path, make_hapt, monkeypatch):
    import data_preprocessing.hapt_preprocess as hapt_preprocess

    root = hapt_tree(make_hapt)
    path = make_config(tmp_path, root)
    calls = []
    for name in ["parse_label_index", "parse_activity_labels"]:
        original = getattr(main_cnn, name)

        def counted(*args, _name=name, _original=original):
            calls.append(_name)
            return _original(*args)
        monkeypatch.setattr(main_cnn, name, counted)
        monkeypatch.setattr(hapt_preprocess, name, counted)

    assert main_cnn.main(["--config", str(path)]) == 0
    assert sorted(calls) == ["parse_activity_labels", "parse_label_index"]
