class MeshDelegate:
    """Observer interface a node reports to. Every hook is a no-op by default."""
    
    def on_message_received(self, message):
        pass
    
    def on_peer_connected(self, peer_id):
        pass
    
    def on_peer_disconnected(self, peer_id):
        pass
    
    def on_peer_list_updated(self, peers):
        pass

class RecordingDelegate(MeshDelegate):
    """Delegate that keeps every callback for later assertions"""
    
    def __init__(self):
        self.messages = []
        self.connected = []
        self.disconnected = []
        self.peer_lists = []
    
    def on_message_received(self, message):
        self.messages.append(message)
    
    def on_peer_connected(self, peer_id):
        self.connected.append(peer_id)
    
    def on_peer_disconnected(self, peer_id):
        self.disconnected.append(peer_id)
    
    def on_peer_list_updated(self, peers):
        self.peer_lists.append(sorted(peers))
    
    def contents(self):
        return [m.content for m in self.messages]
    
    def count(self, msg_id):
        return sum(1 for m in self.messages if m.msg_id == msg_id)
