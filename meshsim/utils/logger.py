import hashlib
import json
import logging
import os

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class Logger:
    """Logging utility for the whole simulator"""

    def __init__(self, name, log_file=None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)

        # Many nodes share one logger name; attach handlers only once
        if not self.logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            self.logger.addHandler(console_handler)

        if log_file and not self._has_file_handler(log_file):
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            self.logger.addHandler(file_handler)

    def _has_file_handler(self, log_file):
        path = os.path.abspath(log_file)
        return any(
            isinstance(handler, logging.FileHandler) and handler.baseFilename == path
            for handler in self.logger.handlers
        )

    def log(self, message, level="info"):
        """Log message"""
        if level == "debug":
            self.logger.debug(message)
        elif level == "info":
            self.logger.info(message)
        elif level == "warning":
            self.logger.warning(message)
        elif level == "error":
            self.logger.error(message)


class DeterministicLogger:
    """Scenario event log with reproducible output.

    Events are numbered by sequence instead of wall-clock time so two runs of
    the same scenario produce byte-identical files and equal hashes.
    """

    def __init__(self, filename):
        self.filename = filename
        self.events = []

    def log_event(self, event_type, data):
        """Log one event"""
        event = {
            "seq": len(self.events),
            "type": event_type,
            "data": data
        }
        self.events.append(event)

    def save(self):
        """Save logs to file"""
        with open(self.filename, 'w', encoding='utf-8') as f:
            json.dump(self.events, f, indent=2, sort_keys=True)

    def load(self):
        """Load logs from file"""
        with open(self.filename, 'r', encoding='utf-8') as f:
            self.events = json.load(f)

    def get_hash(self):
        """SHA-256 of the whole log"""
        content = json.dumps(self.events, sort_keys=True)
        return hashlib.sha256(content.encode('utf-8')).hexdigest()
