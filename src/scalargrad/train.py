"""
Example training driver: fit a small Network to a toy dataset by gradient descent.

Each step runs a forward pass over every sample, sums the squared errors into
one loss node, zeroes the parameter gradients, backpropagates from the loss
and moves every parameter against its gradient.
"""

from __future__ import annotations

import argparse
import logging
import random
from dataclasses import dataclass, field
from typing import Optional, Sequence

from scalargrad.config import TOY_INPUTS, TOY_TARGETS, TrainConfig
from scalargrad.nn import Network
from scalargrad.node import Node

logger = logging.getLogger(__name__)


@dataclass
class TrainResult:
    model: Network
    losses: list[float] = field(default_factory=list)
    # Loss node of the last step, still holding its graph and gradients.
    loss: Optional[Node] = None


def _as_row(target: float | Sequence[float]) -> list[float]:
    if isinstance(target, (int, float)):
        return [float(target)]
    return [float(t) for t in target]


def squared_error_loss(
    predictions: Sequence[Sequence[Node]],
    targets: Sequence[float | Sequence[float]],
) -> Node:
    """
    Sum of squared errors over all samples and outputs.

    Args:
        predictions: One list of output nodes per sample.
        targets: One target per sample; a plain number for single-output
                 networks, otherwise a sequence as wide as the output.

    Returns:
        A single loss node whose graph reaches every prediction.

    Raises:
        ValueError: If the sample counts or output widths do not match.
    """
    if len(predictions) != len(targets):
        raise ValueError(
            f"got {len(predictions)} predictions for {len(targets)} targets"
        )

    loss = Node(0.0, label="loss")
    for pred, target in zip(predictions, targets):
        row = _as_row(target)
        if len(pred) != len(row):
            raise ValueError(f"prediction width {len(pred)} does not match target width {len(row)}")
        for y, y_hat in zip(row, pred):
            loss = loss + (Node(y) - y_hat) ** 2
    return loss


def sgd_step(parameters: Sequence[Node], learning_rate: float) -> None:
    """Plain gradient descent: value -= learning_rate * gradient, in place."""
    for p in parameters:
        p.set_value(p.get_value() - learning_rate * p.get_gradient())


def train(
    config: TrainConfig,
    xs: Sequence[Sequence[float]] = TOY_INPUTS,
    ys: Sequence[float | Sequence[float]] = TOY_TARGETS,
) -> TrainResult:
    """
    Train a freshly initialized Network on (xs, ys).

    Args:
        config: Network shape and optimization hyperparameters.
        xs: Input vectors, all of the same width.
        ys: Targets matching the network's output width.

    Returns:
        The trained model, the loss of every step and the last loss node.
    """
    if not xs:
        raise ValueError("cannot train on an empty dataset")

    rng = random.Random(config.seed) if config.seed is not None else None
    model = Network(len(xs[0]), config.layer_sizes, rng=rng)
    parameters = model.parameters()
    logger.debug(f"Training {model} ({len(parameters)} parameters) with {config}")

    result = TrainResult(model=model)
    for k in range(config.steps):
        predictions = [model(x) for x in xs]
        loss = squared_error_loss(predictions, ys)

        model.zero_grad()
        loss.backward()
        sgd_step(parameters, config.learning_rate)

        result.losses.append(loss.data)
        result.loss = loss
        logger.info(f"step {k}: loss = {loss.data:.6f}")

    return result


def plot_losses(losses: Sequence[float], path: str) -> None:
    """Save the loss curve of a training run as an image."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(range(len(losses)), losses, marker="o", markersize=3)
    ax.set_xlabel("step")
    ax.set_ylabel("loss")
    ax.set_title("Training loss")
    fig.savefig(path)
    plt.close(fig)
    logger.info(f"Saved loss curve to {path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scalargrad-train",
        description="Train a tiny tanh network on a four-sample toy dataset.",
    )
    parser.add_argument("--steps", type=int, default=TrainConfig.steps)
    parser.add_argument("--learning-rate", type=float, default=TrainConfig.learning_rate)
    parser.add_argument(
        "--layers",
        type=int,
        nargs="+",
        default=list(TrainConfig.layer_sizes),
        help="output width of each layer; the last one must be 1",
    )
    parser.add_argument("--seed", type=int, default=TrainConfig.seed)
    parser.add_argument("--plot", metavar="PATH", help="save the loss curve to PATH")
    parser.add_argument(
        "--graph",
        metavar="PATH",
        help="render the final loss graph to PATH.svg (needs Graphviz)",
    )
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = TrainConfig(
            layer_sizes=tuple(args.layers),
            learning_rate=args.learning_rate,
            steps=args.steps,
            seed=args.seed,
        )
        if config.layer_sizes[-1] != 1:
            raise ValueError(f"the toy dataset has one target per sample, last layer is {config.layer_sizes[-1]} wide")
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    result = train(config)

    print(f"final loss: {result.losses[-1]:.6f}")
    for x, y in zip(TOY_INPUTS, TOY_TARGETS):
        print(f"{list(x)} -> {result.model(x)[0].data:+.4f} (target {y:+.1f})")

    if args.plot:
        plot_losses(result.losses, args.plot)
    if args.graph:
        from scalargrad.graph import render_graph

        render_graph(result.loss, args.graph)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
