"""
Cryptography layer - Keys, Packet signatures
"""

from .keys import KeyPair
from .signatures import PacketSigner

__all__ = ['KeyPair', 'PacketSigner']
