import time
from enum import Enum

DEFAULT_TTL = 3

class PacketType(Enum):
    """Packet type discriminators"""
    MESSAGE = 0x01

class Packet:
    """Routed envelope around an opaque payload.

    The mesh only reads and rewrites ``recipient_id`` and ``ttl``; every
    other field is passed through untouched.
    """
    
    def __init__(self, sender_id, payload, recipient_id=None, timestamp=None,
                 signature=None, ttl=DEFAULT_TTL, packet_type=PacketType.MESSAGE):
        self.packet_type = packet_type  # PacketType
        self.sender_id = sender_id
        self.recipient_id = recipient_id  # None = broadcast
        self.timestamp = timestamp if timestamp is not None else int(time.time() * 1000)
        self.payload = payload  # bytes
        self.signature = signature
        self.ttl = ttl
    
    @property
    def is_broadcast(self):
        return self.recipient_id is None
    
    def copy(self):
        return Packet(
            self.sender_id,
            self.payload,
            recipient_id=self.recipient_id,
            timestamp=self.timestamp,
            signature=self.signature,
            ttl=self.ttl,
            packet_type=self.packet_type
        )
    
    def with_ttl(self, ttl):
        """Copy of this packet carrying a different TTL"""
        relay = self.copy()
        relay.ttl = ttl
        return relay
    
    def to_dict(self):
        return {
            "type": self.packet_type.name,
            "sender": self.sender_id,
            "recipient": self.recipient_id,
            "timestamp": self.timestamp,
            "ttl": self.ttl,
            "payload_size": len(self.payload) if self.payload is not None else 0,
            "signed": self.signature is not None
        }
    
    def __repr__(self):
        target = self.recipient_id or "*"
        return f"Packet({self.packet_type.name}, {self.sender_id}->{target}, ttl={self.ttl})"
