from __future__ import annotations

import random
from typing import Sequence

from scalargrad.node import Node


def _check_size(size: int, name: str) -> None:
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise ValueError(f"{name} must be a positive integer, got {size!r}")


def _as_inputs(inputs: Sequence[Node | float], n_inputs: int) -> list[Node]:
    """
    Validate the input width and wrap plain numbers into leaf nodes.

    Raises:
        ValueError: If the number of inputs does not match n_inputs.
    """
    if len(inputs) != n_inputs:
        raise ValueError(f"expected {n_inputs} inputs, got {len(inputs)}")
    return [x if isinstance(x, Node) else Node(x) for x in inputs]


class Module:
    """Base class for anything that owns trainable parameter nodes."""

    def parameters(self) -> list[Node]:
        return []

    def zero_grad(self) -> None:
        """Reset the gradient of every parameter to zero before a fresh backward pass."""
        for p in self.parameters():
            p.set_gradient(0.0)


class Neuron(Module):
    """
    A single tanh unit: tanh(b + Σ x_i * w_i).

    Weights and bias are leaf nodes drawn uniformly from [-1, 1). Every call to
    forward builds a fresh subgraph on top of those same leaves.
    """

    def __init__(self, n_inputs: int, rng: random.Random | None = None) -> None:
        """
        Args:
            n_inputs: Number of inputs (and weights) of this neuron.
            rng: Random number generator used for initialization. Defaults to
                 the global random module, pass a seeded random.Random for
                 reproducible weights.
        """
        _check_size(n_inputs, "n_inputs")
        rng = rng if rng is not None else random
        self.n_inputs = n_inputs
        self.w = [Node(rng.uniform(-1.0, 1.0), label=f"w{i}") for i in range(n_inputs)]
        self.b = Node(rng.uniform(-1.0, 1.0), label="b")

    def __repr__(self) -> str:
        return f"Neuron({self.n_inputs})"

    def __call__(self, inputs: Sequence[Node | float]) -> Node:
        return self.forward(inputs)

    def forward(self, inputs: Sequence[Node | float]) -> Node:
        """
        Compute the neuron activation for one input vector.

        Args:
            inputs: Exactly n_inputs nodes or numbers.

        Returns:
            The tanh output node.
        """
        xs = _as_inputs(inputs, self.n_inputs)
        act = sum((xi * wi for xi, wi in zip(xs, self.w)), self.b)
        return act.tanh()

    def parameters(self) -> list[Node]:
        # Weights first, then bias.
        return self.w + [self.b]


class Layer(Module):
    """A fully connected layer of independent neurons sharing the same inputs."""

    def __init__(
        self, n_inputs: int, n_outputs: int, rng: random.Random | None = None
    ) -> None:
        _check_size(n_inputs, "n_inputs")
        _check_size(n_outputs, "n_outputs")
        self.n_inputs = n_inputs
        self.neurons = [Neuron(n_inputs, rng=rng) for _ in range(n_outputs)]

    def __repr__(self) -> str:
        return f"Layer({self.n_inputs}, {len(self.neurons)})"

    def __call__(self, inputs: Sequence[Node | float]) -> list[Node]:
        return self.forward(inputs)

    def forward(self, inputs: Sequence[Node | float]) -> list[Node]:
        # Wrap once so every neuron shares the same input leaves.
        xs = _as_inputs(inputs, self.n_inputs)
        return [neuron(xs) for neuron in self.neurons]

    def parameters(self) -> list[Node]:
        return [p for neuron in self.neurons for p in neuron.parameters()]


class Network(Module):
    """
    A multi-layer perceptron: a chain of Layers, each feeding the next.

    Args:
        n_inputs: Width of the input vector.
        layer_sizes: Output width of each layer, in order.
        rng: Random number generator shared by all layers for initialization.
    """

    def __init__(
        self,
        n_inputs: int,
        layer_sizes: Sequence[int],
        rng: random.Random | None = None,
    ) -> None:
        _check_size(n_inputs, "n_inputs")
        if len(layer_sizes) == 0:
            raise ValueError("layer_sizes must not be empty")
        sizes = [n_inputs, *layer_sizes]
        self.n_inputs = n_inputs
        self.layers = [
            Layer(sizes[i], sizes[i + 1], rng=rng) for i in range(len(layer_sizes))
        ]

    def __repr__(self) -> str:
        return f"Network({self.n_inputs}, {[len(layer.neurons) for layer in self.layers]})"

    def __call__(self, inputs: Sequence[Node | float]) -> list[Node]:
        return self.forward(inputs)

    def forward(self, inputs: Sequence[Node | float]) -> list[Node]:
        """
        Thread an input vector through every layer in order.

        Raises:
            ValueError: If len(inputs) does not match n_inputs.
        """
        out = _as_inputs(inputs, self.n_inputs)
        for layer in self.layers:
            out = layer(out)
        return out

    def parameters(self) -> list[Node]:
        """
        All parameters in layer order, then neuron order, weights before bias.

        The order is the same on every call, so an optimizer can pair
        parameters with per-parameter state by position.
        """
        return [p for layer in self.layers for p in layer.parameters()]
