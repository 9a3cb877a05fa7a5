import threading
from collections import deque

class DeferredDispatcher:
    """Queue of callbacks that run only when the harness drains it.

    Used for the sender's local echo, so ``send()`` always returns before
    the echo is observed.
    """
    
    def __init__(self):
        self._queue = deque()
        self._lock = threading.Lock()
    
    def submit(self, callback, *args):
        with self._lock:
            self._queue.append((callback, args))
    
    def pending(self):
        with self._lock:
            return len(self._queue)
    
    def drain(self):
        """Run queued callbacks in submission order, including ones queued while draining.

        Returns the number of callbacks run.
        """
        count = 0
        while True:
            with self._lock:
                if not self._queue:
                    return count
                callback, args = self._queue.popleft()
            callback(*args)
            count += 1
