import pytest

from toycon.engine.graph import Graph, NodeNotFoundError, PortIndexError
from toycon.engine.nodes import ConstantNode, MathNode, MathOp


def test_fan_in_takes_maximum_of_sources() -> None:
    graph = Graph()
    sources = [graph.spawn(ConstantNode(v)) for v in (0.2, 0.9, 0.5)]
    target = graph.spawn(MathNode(MathOp.ABS))
    for source in sources:
        graph.connect(source, 0, target, 0)

    graph.tick(0.1)

    assert target.inputs[0].get_value() == 0.9
    assert target.outputs[0].value == 0.9


def test_unconnected_input_reads_zero() -> None:
    graph = Graph()
    node = graph.spawn(MathNode(MathOp.ADD))
    assert node.inputs[0].get_value() == 0.0
    assert node.inputs[1].get_value() == 0.0


def test_duplicate_connection_is_added_once() -> None:
    graph = Graph()
    source = graph.spawn(ConstantNode(1.0))
    target = graph.spawn(MathNode(MathOp.ABS))

    assert graph.connect(source, 0, target, 0) is True
    assert graph.connect(source, 0, target, 0) is False
    assert len(target.inputs[0].sources) == 1
    assert list(graph.connections()) == [(source.node_id, 0, target.node_id, 0)]


def test_connect_rejects_out_of_range_slots() -> None:
    graph = Graph()
    source = graph.spawn(ConstantNode(1.0))
    target = graph.spawn(MathNode(MathOp.ABS))

    with pytest.raises(PortIndexError):
        graph.connect(source, 1, target, 0)
    with pytest.raises(PortIndexError):
        graph.connect(source, 0, target, 1)
    with pytest.raises(IndexError):
        graph.connect(source, -1, target, 0)


def test_connect_rejects_nodes_outside_the_graph() -> None:
    graph = Graph()
    member = graph.spawn(ConstantNode(1.0))
    stranger = MathNode(MathOp.ABS)

    with pytest.raises(NodeNotFoundError):
        graph.connect(member, 0, stranger, 0)
    with pytest.raises(KeyError):
        graph.get(99)


def test_removal_scrubs_references() -> None:
    graph = Graph()
    source = graph.spawn(ConstantNode(3.0))
    keep = graph.spawn(ConstantNode(1.0))
    first = graph.spawn(MathNode(MathOp.ADD))
    second = graph.spawn(MathNode(MathOp.ABS))
    graph.connect(source, 0, first, 0)
    graph.connect(keep, 0, first, 1)
    graph.connect(source, 0, second, 0)

    graph.remove(source)

    assert source not in graph
    assert all(src.node_id != source.node_id for port in first.inputs for src in port.sources)
    assert second.inputs[0].sources == []
    assert first.inputs[1].is_connected
    assert all(src_id != source.node_id for src_id, _, _, _ in graph.connections())


def test_list_order_gives_one_tick_latency_on_backward_edges() -> None:
    graph = Graph()
    consumer = graph.spawn(MathNode(MathOp.ABS))
    constant = graph.spawn(ConstantNode(7.0))
    producer = graph.spawn(MathNode(MathOp.ABS))
    graph.connect(constant, 0, producer, 0)
    graph.connect(producer, 0, consumer, 0)

    graph.tick(0.1)
    assert producer.outputs[0].value == 7.0
    assert consumer.outputs[0].value == 0.0

    graph.tick(0.1)
    assert consumer.outputs[0].value == 7.0


def test_forward_edges_see_current_tick() -> None:
    graph = Graph()
    constant = graph.spawn(ConstantNode(2.0))
    doubled = graph.spawn(MathNode(MathOp.ADD))
    graph.connect(constant, 0, doubled, 0)
    graph.connect(constant, 0, doubled, 1)

    graph.tick(0.1)

    assert doubled.outputs[0].value == 4.0
    assert graph.tick_count == 1
    assert graph.snapshot()[doubled.node_id] == [4.0]


def test_ids_are_not_reused_after_removal() -> None:
    graph = Graph()
    first = graph.spawn(ConstantNode(1.0))
    graph.remove(first)
    second = graph.spawn(ConstantNode(2.0))

    assert second.node_id != first.node_id
    assert graph.get(second.node_id) is second
    with pytest.raises(ValueError):
        graph.spawn(second)
