"""
Network layer - Topology, Nodes, Packets, Messages
"""

from .topology import TopologyGraph
from .node import MeshNode
from .packet import Packet, PacketType, DEFAULT_TTL
from .message import MeshMessage, MessageCodec, NetworkEvent
from .delegate import MeshDelegate, RecordingDelegate
from .dispatch import DeferredDispatcher

__all__ = [
    'TopologyGraph', 'MeshNode', 'Packet', 'PacketType', 'DEFAULT_TTL',
    'MeshMessage', 'MessageCodec', 'NetworkEvent',
    'MeshDelegate', 'RecordingDelegate', 'DeferredDispatcher'
]
