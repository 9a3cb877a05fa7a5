import base64
import json
from cryptography.exceptions import InvalidSignature

class PacketSigner:
    """Signs and verifies packets with domain separation.

    The signed bytes cover every packet field except ``ttl`` and
    ``signature``: relays rewrite the TTL, and a relayed copy must still
    verify against the originator's key.
    """
    
    DOMAIN_PACKET = "PACKET"
    
    def __init__(self, mesh_id="testmesh"):
        self.mesh_id = mesh_id
    
    def _create_message(self, domain, data):
        """Format: DOMAIN:mesh_id:data"""
        message_str = f"{domain}:{self.mesh_id}:{json.dumps(data, sort_keys=True, separators=(',', ':'))}"
        return message_str.encode('utf-8')
    
    @staticmethod
    def signable_fields(packet):
        return {
            "type": packet.packet_type.value,
            "sender_id": packet.sender_id,
            "recipient_id": packet.recipient_id,
            "timestamp": packet.timestamp,
            "payload": base64.b64encode(packet.payload).decode('ascii')
        }
    
    def sign_packet(self, private_key, packet):
        """Return the signature bytes for a packet"""
        message = self._create_message(self.DOMAIN_PACKET, self.signable_fields(packet))
        return private_key.sign(message)
    
    def verify_packet(self, public_key, packet):
        """Verify a packet's signature; unsigned packets never verify"""
        if packet.signature is None:
            return False
        message = self._create_message(self.DOMAIN_PACKET, self.signable_fields(packet))
        try:
            public_key.verify(packet.signature, message)
            return True
        except InvalidSignature:
            return False
