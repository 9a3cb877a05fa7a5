"""
Topology Graph - undirected adjacency over simulated nodes plus an address registry
"""
from meshsim.network.dispatch import DeferredDispatcher
from meshsim.network.message import NetworkEvent
from meshsim.network.packet import DEFAULT_TTL
from meshsim.utils.logger import Logger

class TopologyGraph:
    """Per-test mesh topology and router.

    Nodes are keyed by identity; ``registry`` maps a peer address to the
    node currently registered under it. Unknown addresses never raise:
    mutations become no-ops and routing delivers to whoever is reachable.
    """

    def __init__(self, config=None):
        config = config or {}
        self.config = config
        self.registry = {}  # peer_id -> node
        self.adjacency = {}  # node -> set of nodes
        self.dispatcher = DeferredDispatcher()
        self.events = []
        self.logger = Logger("meshsim.topology")

        self.auto_flood = config.get("auto_flood", False)
        self.default_ttl = config.get("default_ttl", DEFAULT_TTL)
        self.record_events = config.get("record_events", True)

    # Registration

    def register(self, node, peer_id):
        self.registry[peer_id] = node
        if node not in self.adjacency:
            self.adjacency[node] = set()
        self._record("register", peer_id)
        self.logger.log(f"Node {peer_id} registered")

    def resolve(self, peer_id):
        return self.registry.get(peer_id)

    def is_registered(self, node):
        return node in self.adjacency

    def addresses(self):
        return list(self.registry.keys())

    def nodes(self):
        return list(self.adjacency.keys())

    # Topology

    def connect(self, a_peer_id, b_peer_id):
        a = self.registry.get(a_peer_id)
        b = self.registry.get(b_peer_id)
        if a is None or b is None:
            self.logger.log(f"connect {a_peer_id}<->{b_peer_id} ignored: unregistered address", "debug")
            return
        if b in self.adjacency[a]:
            return
        self.adjacency[a].add(b)
        self.adjacency[b].add(a)
        self._record("link_up", a_peer_id, details={"peer": b_peer_id})

    def disconnect(self, a_peer_id, b_peer_id):
        a = self.registry.get(a_peer_id)
        b = self.registry.get(b_peer_id)
        if a is None or b is None:
            return
        if b not in self.adjacency[a]:
            return
        self.adjacency[a].discard(b)
        self.adjacency[b].discard(a)
        self._record("link_down", a_peer_id, details={"peer": b_peer_id})

    def is_direct_neighbor(self, a, b):
        return b in self.adjacency.get(a, ())

    def neighbors(self, node):
        """Snapshot of the node's neighbors; iteration order is unspecified"""
        return set(self.adjacency.get(node, ()))

    def edges(self):
        """Undirected edges as sorted (peer_id, peer_id) pairs"""
        result = set()
        for node, peers in self.adjacency.items():
            for peer in peers:
                result.add(tuple(sorted((node.peer_id, peer.peer_id))))
        return sorted(result)

    # Routing

    def route_broadcast(self, packet, sender):
        """Hand the packet to every current neighbor of sender"""
        neighbors = self.neighbors(sender)
        self._record("route_broadcast", sender.peer_id, packet, {"fanout": len(neighbors)})
        for neighbor in neighbors:
            self.deliver(neighbor, packet)

    def route_unicast(self, packet, sender, recipient_id):
        """Deliver directly when adjacent, otherwise oracle-deliver and relay.

        When the recipient is not a direct neighbor it still receives the
        packet, and every other neighbor of sender gets a copy to relay.
        """
        target = self.resolve(recipient_id)
        if target is not None and self.is_direct_neighbor(sender, target):
            self._record("route_unicast", sender.peer_id, packet, {"recipient": recipient_id, "direct": True})
            self.deliver(target, packet)
            return

        self._record("route_unicast", sender.peer_id, packet, {"recipient": recipient_id, "direct": False})
        if target is not None:
            self._record("oracle_deliver", recipient_id, packet)
            self.deliver(target, packet)
        else:
            self.logger.log(f"Unicast to unknown address {recipient_id}, relaying only", "debug")

        for neighbor in self.neighbors(sender):
            if neighbor is target:
                continue
            self.deliver(neighbor, packet)

    def drain_deferred(self):
        """Run all queued deferred deliveries (self-echoes)"""
        return self.dispatcher.drain()

    def deliver(self, node, packet):
        """Hand one packet to one node, recording the delivery"""
        self._record("deliver", node.peer_id, packet)
        node.receive_incoming_packet(packet)

    # Events

    def _record(self, event_type, peer_id, packet=None, details=None):
        if not self.record_events:
            return
        self.events.append(NetworkEvent(event_type, len(self.events), peer_id, packet, details))

    def get_events(self):
        """Return all recorded events"""
        return [event.to_dict() for event in self.events]

    def clear_events(self):
        self.events = []
