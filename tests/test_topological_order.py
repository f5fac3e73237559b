"""
Tests for topological ordering of the computation graph.
"""

import random

from scalargrad.node import Node, topological_order


def assert_valid_order(root, order):
    position = {node.id: i for i, node in enumerate(order)}
    # Every node appears exactly once.
    assert len(position) == len(order)
    assert order[-1] is root
    for node in order:
        for child in node.children:
            assert position[child.id] < position[node.id]


def reachable(root):
    seen = {}
    stack = [root]
    while stack:
        node = stack.pop()
        if node.id not in seen:
            seen[node.id] = node
            stack.extend(node.children)
    return seen


def random_graph(rng, n_leaves=4, n_ops=40):
    """Build a random DAG where later nodes freely reuse earlier ones."""
    pool = [Node(rng.uniform(-1.0, 1.0)) for _ in range(n_leaves)]
    for _ in range(n_ops):
        kind = rng.choice(["add", "mul", "tanh", "exp", "pow", "sub", "div"])
        a = rng.choice(pool)
        b = rng.choice(pool)
        if kind == "add":
            out = a + b
        elif kind == "mul":
            out = a * b
        elif kind == "tanh":
            out = a.tanh()
        elif kind == "exp":
            out = a.tanh().exp()
        elif kind == "pow":
            out = a ** rng.choice([2, 3])
        elif kind == "sub":
            out = a - b
        else:
            out = a / (b.exp() + 1.0)
        pool.append(out)
    return pool[-1]


# ============================================================================
# ORDER PROPERTIES
# ============================================================================

class TestTopologicalOrder:
    def test_single_leaf(self):
        a = Node(1.0)
        assert topological_order(a) == [a]

    def test_small_graph_order(self):
        x1 = Node(2.0)
        x2 = Node(1.0)
        y = x1 + x2
        y2 = y * x1
        topo = topological_order(y2)
        assert topo == [x1, x2, y, y2]

    def test_neuron_graph_order(self):
        x1, x2 = Node(2.0), Node(0.0)
        w1, w2 = Node(-3.0), Node(1.0)
        b = Node(6.8813735870195432)
        n = x1 * w1 + x2 * w2 + b
        o = n.tanh()
        topo = topological_order(o)
        assert len(topo) == 10
        assert topo[0] is x1
        assert topo[9] is o

    def test_shared_node_emitted_once(self):
        a = Node(3.0)
        b = a + a
        c = b * b
        topo = topological_order(c)
        assert topo == [a, b, c]

    def test_equal_values_are_distinct_vertices(self):
        a = Node(1.0)
        b = Node(1.0)
        c = a + b
        assert topological_order(c) == [a, b, c]

    def test_deep_diamond_stack_stays_linear(self):
        # Each level references the previous one twice; without
        # deduplication the walk would grow as 2**depth.
        x = Node(0.5)
        node = x
        for _ in range(60):
            node = node * node + node
        topo = topological_order(node)
        assert len(topo) == 1 + 2 * 60
        assert_valid_order(node, topo)

    def test_random_graphs(self):
        rng = random.Random(1234)
        for _ in range(25):
            root = random_graph(rng)
            topo = topological_order(root)
            assert_valid_order(root, topo)
            assert {n.id for n in topo} == set(reachable(root))

    def test_order_is_deterministic(self):
        a = Node(1.0)
        b = Node(2.0)
        c = (a * b) + (b * a).tanh()
        assert topological_order(c) == topological_order(c)
