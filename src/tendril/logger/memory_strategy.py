from collections import deque

from .log_storage_strategy import LogStorageStrategy


class MemoryStrategy(LogStorageStrategy):
    """
    Keeps the most recent log records in memory.

    For embedding hosts and tests that inspect what was logged.
    """

    def __init__(self, max_records=500):
        self.records = deque(maxlen=max_records)

    def store_log(self, message, priority, timestamp):
        self.records.append((timestamp, priority, message))

    def flush_logs(self):
        self.records.clear()

    def messages(self, priority=None):
        """Return logged messages, optionally filtered by priority name."""
        return [m for (_, p, m) in self.records if priority is None or p == priority]
