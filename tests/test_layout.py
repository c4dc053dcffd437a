# tests/test_layout.py

from kg_canvas.config.settings import LayoutDirection
from kg_canvas.graph.layout import LayoutOptions, compute_positions, layout
from kg_canvas.graph.schema import EdgeType, NodeType
from kg_canvas.graph.state import Edge, Node

OPTIONS = LayoutOptions(node_width=280, node_height=200, node_sep=100, rank_sep=150)


def test_single_node_is_offset_to_top_left():
    positions = compute_positions(["a"], [], options=OPTIONS)
    assert positions == {"a": (0.0, 0.0)}


def test_chain_is_stacked_top_to_bottom():
    positions = compute_positions(["a", "b", "c"], [("a", "b"), ("b", "c")], options=OPTIONS)

    assert positions["a"] == (0.0, 0.0)
    assert positions["b"] == (0.0, 350.0)
    assert positions["c"] == (0.0, 700.0)


def test_left_right_swaps_axes():
    positions = compute_positions(
        ["a", "b"], [("a", "b")], direction=LayoutDirection.LEFT_RIGHT, options=OPTIONS
    )

    assert positions["a"] == (0.0, 0.0)
    assert positions["b"] == (430.0, 0.0)


def test_children_are_centred_under_parent():
    positions = compute_positions(
        ["p", "c1", "c2"], [("p", "c1"), ("p", "c2")], options=OPTIONS
    )

    # two children side by side span 280 + 100 + 280; the parent is centred on that
    assert positions["c1"] == (0.0, 350.0)
    assert positions["c2"] == (380.0, 350.0)
    assert positions["p"] == (190.0, 0.0)


def test_layout_is_deterministic():
    nodes = ["p1", "p2", "k1", "k2", "k3", "k4"]
    edges = [("p1", "k1"), ("p1", "k2"), ("p2", "k3"), ("p2", "k4"), ("p1", "p2"), ("k4", "k1")]

    assert compute_positions(nodes, edges, options=OPTIONS) == compute_positions(
        nodes, edges, options=OPTIONS
    )


def test_cycles_and_bad_edges_are_tolerated():
    positions = compute_positions(
        ["a", "b", "c"],
        [("a", "b"), ("b", "c"), ("c", "a"), ("a", "a"), ("a", "ghost")],
        options=OPTIONS,
    )

    assert set(positions) == {"a", "b", "c"}
    ys = sorted(y for _, y in positions.values())
    assert ys == [0.0, 350.0, 700.0]


def test_no_two_nodes_overlap():
    nodes = [f"n{i}" for i in range(8)]
    edges = [("n0", f"n{i}") for i in range(1, 6)] + [("n1", "n6"), ("n5", "n7"), ("n0", "n7")]

    positions = compute_positions(nodes, edges, options=OPTIONS)

    boxes = list(positions.values())
    for i, (x1, y1) in enumerate(boxes):
        for x2, y2 in boxes[i + 1:]:
            assert abs(x1 - x2) >= 280 or abs(y1 - y2) >= 200


def test_layout_sets_positions_and_handles_without_mutating_input():
    nodes = [Node(id="p", type=NodeType.PAPER), Node(id="c", type=NodeType.CONCEPT)]
    edges = [Edge(id="e", source="p", target="c", type=EdgeType.CONTAINS)]

    top_bottom = layout(nodes, edges, LayoutDirection.TOP_BOTTOM, OPTIONS)
    left_right = layout(nodes, edges, LayoutDirection.LEFT_RIGHT, OPTIONS)

    assert [(n.source_handle, n.target_handle) for n in top_bottom] == [("bottom", "top")] * 2
    assert [(n.source_handle, n.target_handle) for n in left_right] == [("right", "left")] * 2
    assert top_bottom[1].position.y == 350.0
    assert nodes[0].source_handle is None


def test_empty_graph():
    assert compute_positions([], [], options=OPTIONS) == {}
    assert layout([], [], options=OPTIONS) == []
