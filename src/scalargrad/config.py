"""
Training defaults for the example driver.

The engine itself has no configuration; these only steer scalargrad.train.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

LEARNING_RATE = 0.05
NUM_STEPS = 40
LAYER_SIZES = (4, 4, 1)
SAMPLE_SEED = 2147483647

# Four samples, three features each, one target each.
TOY_INPUTS = (
    (2.0, 3.0, -1.0),
    (3.0, -1.0, 0.5),
    (0.5, 1.0, 1.0),
    (1.0, 1.0, -1.0),
)
TOY_TARGETS = (1.0, -1.0, -1.0, 1.0)


@dataclass
class TrainConfig:
    """Hyperparameters for one training run."""

    layer_sizes: tuple[int, ...] = LAYER_SIZES
    learning_rate: float = LEARNING_RATE
    steps: int = NUM_STEPS

    # None draws weights from the global random state.
    seed: Optional[int] = SAMPLE_SEED

    def __post_init__(self) -> None:
        self.layer_sizes = tuple(self.layer_sizes)
        if not self.layer_sizes:
            raise ValueError("layer_sizes must not be empty")
        if any(size <= 0 for size in self.layer_sizes):
            raise ValueError(f"layer sizes must be positive, got {self.layer_sizes}")
        if self.learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {self.learning_rate}")
        if self.steps <= 0:
            raise ValueError(f"steps must be positive, got {self.steps}")
