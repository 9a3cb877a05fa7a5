import json
import time
import uuid

class MeshMessage:
    """Chat message carried in a packet payload"""
    
    def __init__(self, sender, content, msg_id=None, timestamp=None,
                 is_relay=False, original_sender=None, is_private=False,
                 recipient_nickname=None, sender_peer_id=None, mentions=None):
        self.msg_id = msg_id or str(uuid.uuid4())
        self.sender = sender  # nickname
        self.content = content
        self.timestamp = timestamp if timestamp is not None else time.time()
        self.is_relay = is_relay
        self.original_sender = original_sender
        self.is_private = is_private
        self.recipient_nickname = recipient_nickname
        self.sender_peer_id = sender_peer_id  # address
        self.mentions = list(mentions) if mentions else None
    
    def to_dict(self):
        return {
            "id": self.msg_id,
            "sender": self.sender,
            "content": self.content,
            "timestamp": self.timestamp,
            "is_relay": self.is_relay,
            "original_sender": self.original_sender,
            "is_private": self.is_private,
            "recipient_nickname": self.recipient_nickname,
            "sender_peer_id": self.sender_peer_id,
            "mentions": self.mentions
        }
    
    @staticmethod
    def from_dict(data):
        return MeshMessage(
            sender=data["sender"],
            content=data["content"],
            msg_id=data["id"],
            timestamp=data["timestamp"],
            is_relay=data.get("is_relay", False),
            original_sender=data.get("original_sender"),
            is_private=data.get("is_private", False),
            recipient_nickname=data.get("recipient_nickname"),
            sender_peer_id=data.get("sender_peer_id"),
            mentions=data.get("mentions")
        )
    
    def __repr__(self):
        kind = "private" if self.is_private else "public"
        return f"MeshMessage({self.msg_id[:8]}, {kind}, from={self.sender_peer_id})"

class MessageCodec:
    """Payload codec: canonical JSON, failures come back as None"""
    
    @staticmethod
    def encode(message):
        try:
            text = json.dumps(message.to_dict(), sort_keys=True, separators=(',', ':'))
        except (TypeError, ValueError):
            return None
        return text.encode('utf-8')
    
    @staticmethod
    def decode(payload):
        if not isinstance(payload, (bytes, bytearray)):
            return None
        try:
            data = json.loads(payload.decode('utf-8'))
            if not MessageCodec._well_formed(data):
                return None
            return MeshMessage.from_dict(data)
        except (UnicodeDecodeError, ValueError, KeyError, TypeError):
            return None
    
    @staticmethod
    def _well_formed(data):
        """Fields the mesh hashes or compares must have the expected types"""
        if not isinstance(data, dict):
            return False
        if not isinstance(data.get("id"), str) or not data["id"]:
            return False
        if not isinstance(data.get("is_private", False), bool):
            return False
        sender_peer_id = data.get("sender_peer_id")
        if sender_peer_id is not None and not isinstance(sender_peer_id, str):
            return False
        mentions = data.get("mentions")
        if mentions is not None:
            if not isinstance(mentions, list) or not all(isinstance(m, str) for m in mentions):
                return False
        return True

class NetworkEvent:
    """One routing event recorded by the topology"""
    
    def __init__(self, event_type, seq, peer_id, packet=None, details=None):
        self.event_type = event_type  # "register", "link_up", "deliver", ...
        self.seq = seq
        self.peer_id = peer_id
        self.packet = packet
        self.details = details or {}
    
    def to_dict(self):
        return {
            "event": self.event_type,
            "seq": self.seq,
            "node": self.peer_id,
            "packet": self.packet.to_dict() if self.packet else None,
            "details": self.details
        }
