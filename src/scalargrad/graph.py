from __future__ import annotations

import logging

from graphviz import Digraph

from scalargrad.node import Node, topological_order

logger = logging.getLogger(__name__)


def _node_name(node: Node) -> str:
    # A plain identifier, so Graphviz never has to quote it.
    return f"node_{node.id.hex}"


def collect_nodes_and_edges(root: Node) -> tuple[list[Node], list[tuple[Node, Node]]]:
    """
    Collects every node and edge of the computational graph rooted at root.

    Nodes come back in topological order. An edge is emitted once per operand
    slot, so `a + a` yields two (a, sum) edges.

    Args:
        root: The root node of the computational graph.

    Returns:
        A tuple containing:
        - nodes: All reachable nodes, each exactly once.
        - edges: Tuples (child_node, parent_node).
    """
    nodes = topological_order(root)
    edges = [(child, parent) for parent in nodes for child in parent.children]
    return nodes, edges


def draw_graph(root: Node) -> Digraph:
    """
    Visualizes the computational graph using Graphviz.

    Every node is drawn as a record with its label, data and gradient. Operation
    nodes get an extra small node showing the operation, which their operands
    point into.

    Args:
        root: The root node of the computational graph to visualize.

    Returns:
        A Digraph object representing the computational graph.
    """
    graph = Digraph(format="svg", graph_attr={"rankdir": "LR"})

    nodes, edges = collect_nodes_and_edges(root)

    for node in nodes:
        node_id = _node_name(node)
        graph.node(
            name=node_id,
            label=f"{node.label} | data {node.data:.4f} | grad {node.grad:.4f}",
            shape="record",
        )

        if node.op is not None:
            op_node_id = node_id + node.op.name
            graph.node(name=op_node_id, label=node.op.value)
            graph.edge(op_node_id, node_id)

    for child_node, parent_node in edges:
        # Operands feed the parent's operation node, never the record itself.
        graph.edge(_node_name(child_node), _node_name(parent_node) + parent_node.op.name)

    return graph


def render_graph(root: Node, filename: str, view: bool = False) -> str:
    """
    Draw the graph rooted at root and write it to disk.

    Requires the Graphviz `dot` executable on PATH.

    Args:
        root: The root node of the computational graph.
        filename: Output path without extension; ".svg" is appended.
        view: Open the rendered file with the system viewer.

    Returns:
        The path of the rendered file.
    """
    path = draw_graph(root).render(filename, view=view, cleanup=True)
    logger.info(f"Rendered computation graph to {path}")
    return path
