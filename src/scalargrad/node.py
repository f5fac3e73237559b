from __future__ import annotations

import math
import uuid
from enum import Enum
from typing import Callable


class Op(str, Enum):
    """
    Tag recording which operation produced a node.

    The values double as the operation labels drawn in graph visualizations.
    Leaf nodes carry no tag at all.
    """

    ADD = "+"
    MUL = "*"
    TANH = "tanh"
    EXP = "exp"
    POW = "**"


def _exp(x: float) -> float:
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


def _powi(x: float, n: float) -> float:
    """
    Raise x to an integral power with IEEE semantics.

    Python's float operator raises where C would return an infinity
    (0.0 ** -1, 1e200 ** 2). Those cases are mapped back to signed
    infinities so that numeric failures propagate silently through the graph.
    """
    try:
        return x**n
    except (ZeroDivisionError, OverflowError):
        # The sign of the base only survives an odd exponent.
        return math.copysign(math.inf, x) if n % 2 else math.inf


class Node:
    """
    Represents a scalar node in a computational graph for automatic differentiation.

    Each node stores a numerical value (data), an accumulated gradient (grad)
    and references to the operand nodes it was computed from (children). Nodes
    are shared by reference: the same parameter node can be a child of many
    operation nodes, and an in-place update of its data or grad is visible
    through every one of them.

    Nodes are compared and hashed by identity only. Two distinct nodes holding
    equal values are still distinct graph vertices.
    """

    def __init__(
        self,
        data: float,
        _children: tuple[Node, ...] = (),
        _op: Op | None = None,
        label: str = "",
    ) -> None:
        """
        Initialize a Node in the computational graph.

        Args:
            data: The numerical value stored in this node.
            _children: Operand nodes of the operation that produced this node,
                       in operand order. Empty for leaf nodes.
            _op: The operation that produced this node, None for leaf nodes.
            label: Human-readable label for visualization purposes.
        """
        self.id = uuid.uuid4()
        self.data = float(data)
        self.grad = 0.0
        self._prev = tuple(_children)
        self._op = _op
        self.label = label

    def __repr__(self) -> str:
        return f"Node(data={self.data}, label={self.label!r}, grad={self.grad})"

    @property
    def children(self) -> tuple[Node, ...]:
        """Operand nodes in operand order."""
        return self._prev

    @property
    def op(self) -> Op | None:
        """The operation that produced this node, None for leaves."""
        return self._op

    @property
    def is_leaf(self) -> bool:
        return self._op is None

    def get_value(self) -> float:
        return self.data

    def set_value(self, value: float) -> None:
        self.data = float(value)

    def get_gradient(self) -> float:
        return self.grad

    def set_gradient(self, grad: float) -> None:
        self.grad = float(grad)

    def add_to_gradient(self, grad: float) -> None:
        """
        Accumulate a gradient contribution into this node.

        Every local backward rule goes through here, so a node reached via
        several paths ends up with the sum of all contributions.
        """
        self.grad += grad

    def __add__(self, other: Node | float) -> Node:
        """
        Overload the addition operator to create a new node.

        Creates a new node representing the sum of this node and another node.
        A plain number operand is wrapped in a fresh leaf node first.

        Args:
            other: The node (or number) to add to this node.

        Returns:
            A new Node with children (self, other) and operation Op.ADD.
        """
        other = _as_node(other)
        return Node(self.data + other.data, (self, other), Op.ADD)

    def __radd__(self, other: float) -> Node:
        return self + other

    def __mul__(self, other: Node | float) -> Node:
        """
        Overload the multiplication operator to create a new node.

        Args:
            other: The node (or number) to multiply with this node.

        Returns:
            A new Node with children (self, other) and operation Op.MUL.
        """
        other = _as_node(other)
        return Node(self.data * other.data, (self, other), Op.MUL)

    def __rmul__(self, other: float) -> Node:
        return self * other

    def __neg__(self) -> Node:
        return self * -1

    def __sub__(self, other: Node | float) -> Node:
        return self + (-_as_node(other))

    def __rsub__(self, other: float) -> Node:
        return (-self) + other

    def __truediv__(self, other: Node | float) -> Node:
        # The reciprocal shows up as its own POW node in the graph.
        return self * _as_node(other) ** -1

    def __rtruediv__(self, other: float) -> Node:
        return _as_node(other) * self**-1

    def __pow__(self, exponent: int) -> Node:
        """
        Raise this node to an integer power.

        The exponent is stored as a second child leaf so that POW has the same
        binary shape as ADD and MUL. That leaf never receives a gradient.

        Args:
            exponent: Integer exponent.

        Returns:
            A new Node with children (self, Node(exponent)) and operation Op.POW.

        Raises:
            TypeError: If the exponent is not an integer.
        """
        if isinstance(exponent, bool) or not isinstance(exponent, int):
            raise TypeError(
                f"only integer exponents are supported, got {type(exponent).__name__}"
            )
        return Node(_powi(self.data, exponent), (self, Node(exponent)), Op.POW)

    def tanh(self) -> Node:
        """
        Compute the hyperbolic tangent of this node.

        Returns:
            A new Node holding tanh(self.data) with this node as its only child.
        """
        return Node(math.tanh(self.data), (self,), Op.TANH)

    def exp(self) -> Node:
        """
        Compute e raised to the value of this node.

        Overflow produces inf rather than raising.
        """
        return Node(_exp(self.data), (self,), Op.EXP)

    def backward_local(self) -> None:
        """
        Push this node's gradient onto its children using the local rule of its operation.

        Contributions are added to the children's gradients, never assigned.
        A leaf has nothing to propagate. Calling this twice on the same node
        double-counts its contribution, so a backward pass must call it exactly
        once per node.
        """
        if self._op is None:
            return
        _LOCAL_RULES[self._op](self)

    def backward(self) -> None:
        """Run reverse-mode differentiation with this node as the root. See backward()."""
        backward(self)


def _add_backward(out: Node) -> None:
    a, b = out._prev
    a.add_to_gradient(1.0 * out.grad)
    b.add_to_gradient(1.0 * out.grad)


def _mul_backward(out: Node) -> None:
    a, b = out._prev
    a.add_to_gradient(b.data * out.grad)
    b.add_to_gradient(a.data * out.grad)


def _tanh_backward(out: Node) -> None:
    # d(tanh(x))/dx = 1 - tanh²(x)
    (a,) = out._prev
    a.add_to_gradient((1.0 - out.data**2) * out.grad)


def _exp_backward(out: Node) -> None:
    (a,) = out._prev
    a.add_to_gradient(out.data * out.grad)


def _pow_backward(out: Node) -> None:
    # x^n -> n * x^(n-1). The exponent leaf is left untouched.
    base, exponent = out._prev
    n = exponent.data
    base.add_to_gradient(n * _powi(base.data, n - 1) * out.grad)


_LOCAL_RULES: dict[Op, Callable[[Node], None]] = {
    Op.ADD: _add_backward,
    Op.MUL: _mul_backward,
    Op.TANH: _tanh_backward,
    Op.EXP: _exp_backward,
    Op.POW: _pow_backward,
}


def topological_order(root: Node) -> list[Node]:
    """
    Performs a topological sort of the computational graph rooted at root.

    Builds an ordering where every node appears after all of its children and
    every node reachable from root appears exactly once, no matter how many
    parents share it. Visited nodes are tracked by their id, never by value.

    The walk is an iterative depth-first post-order, so long chains (a sum
    over thousands of terms) do not run into the interpreter's recursion
    limit. Children are explored in operand order, which makes the result
    deterministic for a given graph.

    Args:
        root: The node to start from, typically a loss node.

    Returns:
        A list of nodes in topological order, root last. Traversing it in
        reverse visits every parent before its children.
    """
    topo_ordering: list[Node] = []
    visited: set[uuid.UUID] = set()

    # Each entry is (node, expanded). A node is emitted when its expanded
    # marker is popped, i.e. after everything pushed above it.
    stack: list[tuple[Node, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if expanded:
            topo_ordering.append(node)
            continue
        if node.id in visited:
            continue
        visited.add(node.id)
        stack.append((node, True))
        for child in reversed(node._prev):
            if child.id not in visited:
                stack.append((child, False))

    return topo_ordering


def backward(root: Node) -> None:
    """
    Performs backward propagation to compute gradients for all nodes reachable from root.

    The backpropagation process:
    1. Seed root's gradient with 1.0 (d(root)/d(root) = 1).
    2. Get a topological ordering of all nodes (children before parents).
    3. Traverse it in reverse and apply each node's local backward rule.

    Gradients are accumulated, not reset. Callers zero the gradients of the
    nodes they care about before a fresh pass; calling this twice without
    resetting adds the second pass on top of the first.

    Args:
        root: The output node to differentiate.
    """
    root.set_gradient(1.0)

    for node in reversed(topological_order(root)):
        node.backward_local()


def _as_node(value: Node | float) -> Node:
    return value if isinstance(value, Node) else Node(value)


def leaf(value: float, label: str = "") -> Node:
    """Create a leaf node: an input or a trainable parameter."""
    return Node(value, label=label)


def add(a: Node | float, b: Node | float) -> Node:
    return _as_node(a) + b


def sub(a: Node | float, b: Node | float) -> Node:
    return _as_node(a) - b


def mul(a: Node | float, b: Node | float) -> Node:
    return _as_node(a) * b


def div(a: Node | float, b: Node | float) -> Node:
    return _as_node(a) / b


def neg(a: Node | float) -> Node:
    return -_as_node(a)


def pow(a: Node | float, exponent: int) -> Node:
    return _as_node(a) ** exponent


def tanh(a: Node | float) -> Node:
    return _as_node(a).tanh()


def exp(a: Node | float) -> Node:
    return _as_node(a).exp()
