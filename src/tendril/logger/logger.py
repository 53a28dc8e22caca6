import os
import threading
from datetime import datetime
from enum import Enum

from .local_file_strategy import LocalFileStrategy


class Logger:
    """
    Process-wide logger for the tendril package.
    Static class: call Logger.initialize() once from an entry point; until a
    storage strategy is set every Logger.log() call is a no-op.
    """

    class LogPriority(Enum):
        DEBUG = 1
        INFO = 2
        WARNING = 3
        ERROR = 4
        CRITICAL = 5

    is_logging_enabled = True
    log_storage_strategy = None
    minimum_priority = LogPriority.DEBUG
    _log_lock = threading.Lock()
    _strategy_lock = threading.Lock()
    _initialize_lock = threading.Lock()

    # INITIALIZE LOGGER
    @classmethod
    def initialize(cls, file_location=None):
        """
        Installs the default file storage strategy if none is set.

        Parameters:
        file_location (str): Optional path; defaults to $TENDRIL_LOG_PATH or /tmp/tendril_logs.txt.
        """
        with cls._initialize_lock:
            if cls.log_storage_strategy is None:
                if file_location is None:
                    file_location = os.getenv("TENDRIL_LOG_PATH", "/tmp/tendril_logs.txt")
                cls.set_log_storage_strategy(LocalFileStrategy(file_location))
                cls.log(f"Logger initialized with file storage at {file_location}.", cls.LogPriority.INFO)

    # LOG WITH MESSAGE AND PRIORITY
    @classmethod
    def log(cls, message, priority=LogPriority.DEBUG):
        """
        Stores a message through the active storage strategy.

        Parameters:
        message (str): The log message.
        priority (LogPriority): Defaults to DEBUG.
        """
        with cls._log_lock:
            if not cls.is_logging_enabled or cls.log_storage_strategy is None:
                return
            if priority.value < cls.minimum_priority.value:
                return
            cls.log_storage_strategy.store_log(
                message, priority.name, datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            )

    @classmethod
    def set_log_storage_strategy(cls, log_storage_strategy):
        with cls._strategy_lock:
            cls.log_storage_strategy = log_storage_strategy

    @classmethod
    def set_minimum_priority(cls, priority):
        cls.minimum_priority = priority

    @classmethod
    def reset(cls):
        """Drop the storage strategy and restore defaults (used by tests)."""
        with cls._strategy_lock:
            cls.log_storage_strategy = None
        cls.is_logging_enabled = True
        cls.minimum_priority = cls.LogPriority.DEBUG

    @classmethod
    def flush_logs(cls):
        if cls.is_logging_enabled and cls.log_storage_strategy:
            cls.log_storage_strategy.flush_logs()

    @classmethod
    def disable_logging(cls):
        cls.log("Logging disabled", cls.LogPriority.INFO)
        cls.is_logging_enabled = False

    @classmethod
    def enable_logging(cls):
        cls.is_logging_enabled = True
        cls.log("Logging enabled", cls.LogPriority.INFO)
