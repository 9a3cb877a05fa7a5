import hashlib
from cryptography.hazmat.primitives.asymmetric import ed25519
from cryptography.hazmat.primitives import serialization

class KeyPair:
    """Ed25519 identity of a mesh node, used to sign outgoing packets"""
    
    def __init__(self, private_key=None):
        self.private_key = private_key or ed25519.Ed25519PrivateKey.generate()
        self.public_key = self.private_key.public_key()
    
    @staticmethod
    def from_seed(seed):
        """Deterministic key pair derived from a seed string.

        Scenario configs name a seed per node so signed runs, and the logs
        that record their fingerprints, are reproducible.
        """
        private_bytes = hashlib.sha256(f"meshsim-key:{seed}".encode('utf-8')).digest()
        return KeyPair(ed25519.Ed25519PrivateKey.from_private_bytes(private_bytes))
    
    def get_public_key_bytes(self):
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw
        )
    
    def fingerprint(self):
        """SHA-256 hex digest of the raw public key"""
        return hashlib.sha256(self.get_public_key_bytes()).hexdigest()
