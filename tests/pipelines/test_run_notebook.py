#!/usr/bin/env python3
"""
test_run_notebook.py

End-to-end tests for the command line runner.
"""
import json
from unittest.mock import patch

import pytest
import yaml

from cnn_primer.notebook.config_loader import load_primer_config
from cnn_primer.pipelines import run_notebook


TINY_CONFIG = {
    "lessons": {"image_size": 7, "kernel_size": 3, "padding": 1, "stride": 2, "pool_size": 2},
    "model": {
        "name": "tiny",
        "input_shape": [1, 8, 8],
        "layers": [
            {"type": "conv", "out_channels": 4, "kernel_size": 3, "padding": 1},
            {"type": "relu"},
            {"type": "maxpool", "kernel_size": 2},
            {"type": "flatten"},
            {"type": "linear", "out_features": 4},
            {"type": "logsoftmax"},
        ],
    },
    "training": {"epochs": 3, "num_samples": 32, "batch_size": 8, "device": "cpu"},
}


@pytest.fixture(autouse=True)
def isolated_run(reset_root_logging):
    load_primer_config.cache_clear()
    with patch("cnn_primer.notebook.config_loader.c"), \
         patch.object(run_notebook, "display_lesson"), \
         patch.object(run_notebook, "display_shape_trace"), \
         patch.object(run_notebook, "display_training_summary"):
        yield
    load_primer_config.cache_clear()


def write_config(tmp_path, data):
    path = tmp_path / "primer.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


class TestParseArgs:

    def test_defaults(self):
        args = run_notebook.parse_args([])
        assert args.config is None
        assert args.output == "runs/notebook"
        assert args.lesson is None
        assert not args.train
        assert not args.plots

    def test_repeated_lessons(self):
        args = run_notebook.parse_args(["-l", "pooling", "-l", "stride", "--epochs", "2"])
        assert args.lesson == ["pooling", "stride"]
        assert args.epochs == 2

    def test_rejects_unknown_lesson(self):
        with pytest.raises(SystemExit):
            run_notebook.parse_args(["--lesson", "attention"])

    def test_rejects_zero_epochs(self):
        with pytest.raises(SystemExit):
            run_notebook.parse_args(["--epochs", "0"])


class TestMain:

    def test_packaged_config_passes(self, tmp_path):
        out = tmp_path / "run"
        assert run_notebook.main(["--output", str(out), "--quiet"]) == 0
        assert (out / "notebook.log").exists()
        assert "STAGE 2: SHAPE TRACE" in (out / "notebook.log").read_text(encoding="utf-8")

    def test_missing_config(self, tmp_path):
        code = run_notebook.main(["--config", str(tmp_path / "missing.yaml"), "--output", str(tmp_path)])
        assert code == 2

    def test_invalid_config(self, tmp_path):
        data = dict(TINY_CONFIG, training={"dataset": "cifar"})
        code = run_notebook.main(["--config", write_config(tmp_path, data), "--output", str(tmp_path)])
        assert code == 2

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("invalid: yaml: content: [", encoding="utf-8")
        code = run_notebook.main(["--config", str(path), "--output", str(tmp_path / "run")])
        assert code == 2

    def test_kernel_larger_than_image(self, tmp_path):
        data = dict(TINY_CONFIG, lessons={"image_size": 2, "kernel_size": 3})
        code = run_notebook.main([
            "--config", write_config(tmp_path, data), "--output", str(tmp_path), "-l", "convolution"
        ])
        assert code == 1

    def test_unbuildable_stack(self, tmp_path):
        data = dict(TINY_CONFIG, model={
            "input_shape": [1, 8, 8],
            "layers": [{"type": "linear", "out_features": 4}],
        })
        code = run_notebook.main([
            "--config", write_config(tmp_path, data), "--output", str(tmp_path), "-l", "pooling"
        ])
        assert code == 1

    def test_train_and_plots(self, tmp_path):
        out = tmp_path / "run"
        code = run_notebook.main([
            "--config", write_config(tmp_path, TINY_CONFIG),
            "--output", str(out),
            "--train", "--epochs", "1", "--plots", "--quiet",
        ])
        assert code == 0
        assert (out / "model.pt").exists()
        history = json.loads((out / "history.json").read_text(encoding="utf-8"))
        assert history["network"] == "tiny"
        assert len(history["epochs"]) == 1
        for name in ("feature_maps.png", "filter_0.png", "training.png"):
            assert (out / "plots" / name).exists()

    def test_train_with_wrong_class_count(self, tmp_path):
        data = dict(TINY_CONFIG, training={"dataset": "mnist", "device": "cpu"})
        code = run_notebook.main([
            "--config", write_config(tmp_path, data), "--output", str(tmp_path), "--train", "-q"
        ])
        # Four outputs cannot score ten MNIST digits
        assert code == 1
