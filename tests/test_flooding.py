import pytest
from meshsim.network.topology import TopologyGraph
from meshsim.network.node import MeshNode
from meshsim.network.delegate import RecordingDelegate
from meshsim.network.message import MeshMessage, MessageCodec
from meshsim.network.packet import Packet, PacketType


def build_mesh(peer_ids, links, auto_flood=True):
    topology = TopologyGraph({"auto_flood": auto_flood})
    nodes = {}
    for peer_id in peer_ids:
        node = MeshNode(topology, peer_id=peer_id, nickname=peer_id.lower())
        node.delegate = RecordingDelegate()
        nodes[peer_id] = node
    for a, b in links:
        nodes[a].simulate_connection(nodes[b])
    return topology, nodes


def test_flood_reaches_whole_component():
    """A broadcast floods a chain longer than the TTL"""
    ids = ["N0", "N1", "N2", "N3", "N4", "N5"]
    links = list(zip(ids, ids[1:]))
    topology, nodes = build_mesh(ids, links)

    nodes["N0"].send("wave", message_id="m1")

    for peer_id in ids[1:]:
        assert nodes[peer_id].delegate.count("m1") == 1


def test_ttl_decrements_and_floors_at_zero():
    """Relayed copies carry ttl - 1, never below zero, and keep flowing"""
    ids = ["N0", "N1", "N2", "N3", "N4", "N5"]
    links = list(zip(ids, ids[1:]))
    topology, nodes = build_mesh(ids, links)
    topology.clear_events()

    nodes["N0"].send("wave", message_id="m1")

    first_ttl = {}
    for event in topology.get_events():
        if event["event"] == "deliver":
            first_ttl.setdefault(event["node"], event["packet"]["ttl"])
    assert first_ttl == {"N1": 3, "N2": 2, "N3": 1, "N4": 0, "N5": 0}


def test_relay_does_not_mutate_original_packet():
    topology, nodes = build_mesh(["A", "B", "C"], [("A", "B"), ("B", "C")])

    nodes["A"].send("hi", message_id="m1")

    assert nodes["A"].sent_packets[0].ttl == 3


def test_flood_disabled_stops_at_first_hop():
    topology, nodes = build_mesh(["A", "B", "C"], [("A", "B"), ("B", "C")], auto_flood=False)

    nodes["A"].send("hi", message_id="m1")

    assert nodes["B"].delegate.count("m1") == 1
    assert nodes["C"].delegate.count("m1") == 0


def test_node_override_disables_relay():
    """A node-level flag wins over the mesh-wide setting"""
    topology, nodes = build_mesh(["A", "B", "C"], [("A", "B"), ("B", "C")])
    nodes["B"].auto_flood = False

    nodes["A"].send("hi", message_id="m1")

    assert nodes["C"].delegate.count("m1") == 0


def test_node_override_enables_relay():
    topology, nodes = build_mesh(["A", "B", "C"], [("A", "B"), ("B", "C")], auto_flood=False)
    nodes["B"].auto_flood = True

    nodes["A"].send("hi", message_id="m1")

    assert nodes["C"].delegate.count("m1") == 1


def test_private_messages_are_not_flooded():
    """Private unicast reaches relays but they do not forward it"""
    topology, nodes = build_mesh(["A", "B", "C", "R"], [("A", "B"), ("B", "C")])

    nodes["A"].send("secret", recipient_id="R", message_id="p1")

    assert nodes["R"].delegate.count("p1") == 1
    assert nodes["B"].delegate.count("p1") == 1
    assert nodes["C"].delegate.count("p1") == 0


def test_no_echo_back_to_author_address():
    """A relay never forwards to the neighbor whose address authored the message"""
    topology, nodes = build_mesh(["A", "B"], [("A", "B")])
    arrivals_at_a = []
    nodes["A"].packet_delivery_handler = arrivals_at_a.append

    nodes["A"].send("hi", message_id="m1")

    # Only the outgoing packet hook fired on A
    assert len(arrivals_at_a) == 1
    assert nodes["A"].sent_packets[0] is arrivals_at_a[0]


def test_suppression_compares_declared_sender():
    """Suppression uses the message's sender address, not the previous hop"""
    topology, nodes = build_mesh(["B", "C", "X"], [("B", "C"), ("B", "X")])
    message = MeshMessage("x", "spoofed", msg_id="s1", timestamp=0, sender_peer_id="X")
    packet = Packet("C", MessageCodec.encode(message), timestamp=0)

    arrivals = {"C": [], "X": []}
    nodes["C"].packet_delivery_handler = arrivals["C"].append
    nodes["X"].packet_delivery_handler = arrivals["X"].append
    nodes["B"].receive_incoming_packet(packet)

    assert len(arrivals["C"]) == 1
    assert arrivals["X"] == []


def test_flood_in_cycle_delivers_once_per_node():
    """Dedup terminates flooding around a ring"""
    ids = ["A", "B", "C", "D", "E"]
    links = list(zip(ids, ids[1:])) + [("E", "A")]
    topology, nodes = build_mesh(ids, links)

    nodes["A"].send("ring", message_id="m1")

    for peer_id in ids[1:]:
        assert nodes[peer_id].delegate.count("m1") == 1
    assert nodes["A"].delegate.count("m1") == 0


def test_dense_mesh_dedup():
    """Fully connected mesh: every node delivers exactly once"""
    ids = [f"N{i}" for i in range(6)]
    links = [(a, b) for i, a in enumerate(ids) for b in ids[i + 1:]]
    topology, nodes = build_mesh(ids, links)

    nodes["N0"].send("storm", message_id="m1")
    topology.drain_deferred()

    for peer_id in ids:
        assert nodes[peer_id].delegate.count("m1") == 1


def test_relay_deliveries_are_recorded():
    topology, nodes = build_mesh(["A", "B", "C"], [("A", "B"), ("B", "C")])
    topology.clear_events()

    nodes["A"].send("hi", message_id="m1")

    deliveries = [(e["node"], e["packet"]["ttl"]) for e in topology.get_events() if e["event"] == "deliver"]
    assert ("B", 3) in deliveries
    assert ("C", 2) in deliveries


def test_topology_change_mid_test():
    """Links added after a flood only affect later messages"""
    topology, nodes = build_mesh(["A", "B", "C"], [("A", "B")])

    nodes["A"].send("first", message_id="m1")
    nodes["B"].simulate_connection(nodes["C"])
    nodes["A"].send("second", message_id="m2")
    nodes["A"].disconnect_from("B")
    nodes["B"].disconnect_from("A")
    nodes["A"].send("third", message_id="m3")

    assert nodes["C"].delegate.count("m1") == 0
    assert nodes["C"].delegate.count("m2") == 1
    assert nodes["B"].delegate.count("m3") == 0
