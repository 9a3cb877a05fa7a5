import threading
import weakref
from meshsim.crypto.keys import KeyPair
from meshsim.crypto.signatures import PacketSigner
from meshsim.network.message import MeshMessage, MessageCodec
from meshsim.network.packet import Packet
from meshsim.utils.logger import Logger

DEFAULT_PEER_ID = "MOCK1234"
DEFAULT_NICKNAME = "MockUser"

class MeshNode:
    """One simulated mesh participant.

    The node holds a non-owning reference to the topology the test created;
    the test keeps the graph alive. Node identity is the instance itself.

    Flooding follows ``topology.auto_flood`` unless ``auto_flood`` is set on
    the node. Relay is bounded by the dedup cache only: TTL is decremented on
    each hop but never stops propagation.
    """

    def __init__(self, topology, peer_id=None, nickname=None, key_pair=None, sign_packets=False):
        self._topology = weakref.proxy(topology)
        self.peer_id = peer_id or DEFAULT_PEER_ID
        self.nickname = nickname or DEFAULT_NICKNAME
        self.delegate = None
        self.auto_flood = None  # None = inherit from topology

        # Test observation
        self.sent_messages = []  # (message, packet)
        self.sent_packets = []
        self.connected_peers = set()
        self.message_delivery_handler = None
        self.packet_delivery_handler = None

        # Dedup
        self.seen_message_ids = set()
        self._seen_lock = threading.Lock()

        # Optional packet signatures
        if key_pair is None and sign_packets:
            key_pair = KeyPair()
        self.key_pair = key_pair
        self.signer = PacketSigner(topology.config.get("mesh_id", "testmesh"))

        self.logger = Logger("meshsim.node")

        if peer_id is not None:
            self.register()

    @property
    def topology(self):
        return self._topology

    @property
    def flooding_enabled(self):
        if self.auto_flood is not None:
            return self.auto_flood
        return self._topology.auto_flood

    def set_nickname(self, nickname):
        self.nickname = nickname

    def register(self):
        """Register this node on the topology under its current peer_id"""
        self._topology.register(self, self.peer_id)

    def _register_if_needed(self):
        if not self._topology.is_registered(self):
            self.register()

    def neighbors(self):
        return self._topology.neighbors(self)

    # Sending

    def send(self, content, recipient_id=None, message_id=None, timestamp=None, mentions=None):
        """Send a public broadcast, or a private unicast when recipient_id is given"""
        message = MeshMessage(
            sender=self.nickname,
            content=content,
            msg_id=message_id,
            timestamp=timestamp,
            is_private=recipient_id is not None,
            sender_peer_id=self.peer_id,
            mentions=mentions
        )
        if not self._send_message(message, recipient_id):
            return None
        return message

    def send_private_message(self, content, recipient_id, recipient_nickname, message_id=None):
        """Private unicast that also names the recipient"""
        message = MeshMessage(
            sender=self.nickname,
            content=content,
            msg_id=message_id,
            is_private=True,
            recipient_nickname=recipient_nickname,
            sender_peer_id=self.peer_id
        )
        if not self._send_message(message, recipient_id):
            return None
        return message

    def _send_message(self, message, recipient_id):
        payload = MessageCodec.encode(message)
        if payload is None:
            self.logger.log(f"[Node {self.peer_id}] Could not encode message {message.msg_id}", "warning")
            return False

        packet = Packet(
            self.peer_id,
            payload,
            recipient_id=recipient_id,
            ttl=self._topology.default_ttl
        )
        if self.key_pair is not None:
            packet.signature = self.signer.sign_packet(self.key_pair.private_key, packet)

        self._register_if_needed()

        self.sent_messages.append((message, packet))
        self.sent_packets.append(packet)

        # Local echo runs only when the harness drains the dispatcher
        self._topology.dispatcher.submit(self._deliver_local_echo, message)

        if self.packet_delivery_handler:
            self.packet_delivery_handler(packet)

        if recipient_id is None:
            self._topology.route_broadcast(packet, self)
        else:
            self._topology.route_unicast(packet, self, recipient_id)
        return True

    def _deliver_local_echo(self, message):
        if self.delegate:
            self.delegate.on_message_received(message)

    # Receiving

    def receive_incoming_packet(self, packet):
        """Entry point for packets fanned out by the topology"""
        message = MessageCodec.decode(packet.payload)
        if message is None:
            self.logger.log(f"[Node {self.peer_id}] Undecodable payload from {packet.sender_id}", "warning")
        elif self._mark_seen(message.msg_id):
            self._deliver(message)
            if self.flooding_enabled and packet.is_broadcast and not message.is_private:
                self._relay(packet, message)
        else:
            self.logger.log(f"[Node {self.peer_id}] Duplicate {message.msg_id} dropped", "debug")

        if self.packet_delivery_handler:
            self.packet_delivery_handler(packet)

    def _mark_seen(self, msg_id):
        """Record msg_id; True only the first time it is seen"""
        with self._seen_lock:
            if msg_id in self.seen_message_ids:
                return False
            self.seen_message_ids.add(msg_id)
            return True

    def has_seen(self, msg_id):
        with self._seen_lock:
            return msg_id in self.seen_message_ids

    def reset_seen(self):
        with self._seen_lock:
            self.seen_message_ids.clear()

    def _deliver(self, message):
        if self.delegate:
            self.delegate.on_message_received(message)
        if self.message_delivery_handler:
            self.message_delivery_handler(message)

    def _relay(self, packet, message):
        relay = packet.with_ttl(max(packet.ttl - 1, 0))
        for neighbor in self.neighbors():
            # No immediate echo back to the author's address
            if message.sender_peer_id is not None and neighbor.peer_id == message.sender_peer_id:
                continue
            self.logger.log(f"[Node {self.peer_id}] Relay {message.msg_id} to {neighbor.peer_id} (ttl={relay.ttl})", "debug")
            self._topology.deliver(neighbor, relay)

    def simulate_incoming_message(self, message):
        """Deliver an already decoded message, bypassing dedup and routing"""
        self._deliver(message)

    # Connections

    def connect_to(self, peer_id):
        self.register()
        self._topology.connect(self.peer_id, peer_id)
        self.connected_peers.add(peer_id)
        if self.delegate:
            self.delegate.on_peer_connected(peer_id)
            self.delegate.on_peer_list_updated(list(self.connected_peers))

    def disconnect_from(self, peer_id):
        self._topology.disconnect(self.peer_id, peer_id)
        self.connected_peers.discard(peer_id)
        if self.delegate:
            self.delegate.on_peer_disconnected(peer_id)
            self.delegate.on_peer_list_updated(list(self.connected_peers))

    def simulate_connection(self, other):
        """Link two nodes and mark each as connected on both sides"""
        self.connect_to(other.peer_id)
        other.connect_to(self.peer_id)

    def emergency_disconnect_all(self):
        """Forget every connected peer; topology links are left as they are"""
        self.connected_peers.clear()
        if self.delegate:
            self.delegate.on_peer_list_updated([])

    def is_connected(self, peer_id):
        return peer_id in self.connected_peers

    def list_peers(self):
        return list(self.connected_peers)

    def peer_nickname(self, peer_id):
        return f"MockPeer_{peer_id}"

    def fingerprint(self):
        """Public key fingerprint, or None for a node that does not sign"""
        if self.key_pair is None:
            return None
        return self.key_pair.fingerprint()

    def peer_nicknames(self):
        return {peer: self.peer_nickname(peer) for peer in self.connected_peers}

    def __repr__(self):
        return f"MeshNode({self.peer_id})"
