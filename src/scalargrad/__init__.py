"""Scalar reverse-mode automatic differentiation and tiny tanh networks."""

from scalargrad.nn import Layer, Module, Network, Neuron
from scalargrad.node import (
    Node,
    Op,
    add,
    backward,
    div,
    exp,
    leaf,
    mul,
    neg,
    pow,
    sub,
    tanh,
    topological_order,
)

__all__ = [
    "Layer",
    "Module",
    "Network",
    "Neuron",
    "Node",
    "Op",
    "add",
    "backward",
    "div",
    "exp",
    "leaf",
    "mul",
    "neg",
    "pow",
    "sub",
    "tanh",
    "topological_order",
]
