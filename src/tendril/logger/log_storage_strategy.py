class LogStorageStrategy:
    """
    Base class for log storage strategies.
    Subclasses decide where a formatted log record ends up.
    """
    # STORE LOG WITH MESSAGE PRIORITY AND TIMESTAMP
    def store_log(self, message, priority, timestamp):
        """
        Stores a log message with the given priority and timestamp.

        Parameters:
        message (str): The log message to be stored.
        priority (str): Name of the priority level (e.g. "WARNING").
        timestamp (str): The timestamp of the log message.

        Raises:
        NotImplementedError: If this method is not overridden in a subclass.
        """
        raise NotImplementedError()

    # FLUSHES ALL STORED LOGS
    def flush_logs(self):
        """
        Discards all stored logs.

        Raises:
        NotImplementedError: If this method is not overridden in a subclass.
        """
        raise NotImplementedError()
