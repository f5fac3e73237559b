"""
Tests for the example training driver and its configuration.
"""

import logging

import pytest

from scalargrad import graph as graph_module
from scalargrad.config import TOY_INPUTS, TOY_TARGETS, TrainConfig
from scalargrad.node import Node
from scalargrad.train import main, sgd_step, squared_error_loss, train


# ============================================================================
# CONFIG
# ============================================================================

class TestTrainConfig:
    def test_defaults(self):
        config = TrainConfig()
        assert config.layer_sizes == (4, 4, 1)
        assert config.steps > 0
        assert config.learning_rate > 0

    def test_layer_sizes_become_tuple(self):
        assert TrainConfig(layer_sizes=[3, 1]).layer_sizes == (3, 1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"layer_sizes": ()},
            {"layer_sizes": (4, 0, 1)},
            {"learning_rate": 0.0},
            {"learning_rate": -0.1},
            {"steps": 0},
        ],
    )
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(ValueError):
            TrainConfig(**kwargs)


# ============================================================================
# LOSS AND UPDATE
# ============================================================================

class TestLoss:
    def test_squared_error(self):
        preds = [[Node(0.5)], [Node(-1.0)]]
        loss = squared_error_loss(preds, [1.0, 1.0])
        assert loss.data == pytest.approx(0.25 + 4.0)
        loss.backward()
        # d/dp (y - p)^2 = -2 (y - p)
        assert preds[0][0].grad == pytest.approx(-1.0)
        assert preds[1][0].grad == pytest.approx(-4.0)

    def test_multi_output_targets(self):
        preds = [[Node(1.0), Node(2.0)]]
        loss = squared_error_loss(preds, [[0.0, 0.0]])
        assert loss.data == pytest.approx(5.0)

    def test_rejects_count_mismatch(self):
        with pytest.raises(ValueError):
            squared_error_loss([[Node(1.0)]], [1.0, 2.0])

    def test_rejects_width_mismatch(self):
        with pytest.raises(ValueError):
            squared_error_loss([[Node(1.0), Node(2.0)]], [1.0])

    def test_sgd_step(self):
        p = Node(1.0)
        p.grad = 2.0
        sgd_step([p], 0.1)
        assert p.data == pytest.approx(0.8)
        assert p.grad == 2.0


# ============================================================================
# TRAINING
# ============================================================================

class TestTrain:
    def test_loss_decreases(self):
        result = train(TrainConfig(steps=40, seed=1))
        assert len(result.losses) == 40
        assert result.losses[-1] < result.losses[0]
        assert result.loss is not None
        assert result.loss.data == result.losses[-1]

    def test_seeded_runs_are_identical(self):
        a = train(TrainConfig(steps=5, seed=3))
        b = train(TrainConfig(steps=5, seed=3))
        assert a.losses == b.losses

    def test_logs_every_step(self, caplog):
        with caplog.at_level(logging.INFO, logger="scalargrad.train"):
            train(TrainConfig(steps=3, seed=0))
        assert sum("loss =" in r.getMessage() for r in caplog.records) == 3

    def test_custom_dataset(self):
        xs = [[0.0], [1.0]]
        ys = [[0.5, -0.5], [-0.5, 0.5]]
        result = train(TrainConfig(layer_sizes=(3, 2), steps=20, seed=0), xs, ys)
        assert result.losses[-1] < result.losses[0]

    def test_empty_dataset(self):
        with pytest.raises(ValueError):
            train(TrainConfig(steps=1), [], [])


# ============================================================================
# CLI
# ============================================================================

class TestMain:
    def test_prints_predictions(self, capsys):
        assert main(["--steps", "3", "--seed", "0"]) == 0
        out = capsys.readouterr().out
        assert "final loss:" in out
        assert out.count("target") == len(TOY_INPUTS) == len(TOY_TARGETS)

    def test_invalid_config(self):
        assert main(["--steps", "0"]) == 2
        assert main(["--layers", "4", "2"]) == 2

    def test_plot(self, tmp_path):
        path = tmp_path / "loss.png"
        assert main(["--steps", "3", "--plot", str(path)]) == 0
        assert path.exists()
        assert path.stat().st_size > 0

    def test_graph(self, monkeypatch, tmp_path):
        rendered = []

        def fake_render(self, filename, view=False, cleanup=False):
            rendered.append(filename)
            return f"{filename}.svg"

        monkeypatch.setattr(graph_module.Digraph, "render", fake_render)
        assert main(["--steps", "2", "--graph", str(tmp_path / "loss")]) == 0
        assert rendered == [str(tmp_path / "loss")]
