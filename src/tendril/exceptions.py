class SurfaceUnavailableError(Exception):
    """No usable drawing surface was supplied at initialization."""
    def __init__(self, message="No usable drawing surface available."):
        super().__init__(message)


class LifecycleError(Exception):
    """Operation not allowed in the current lifecycle state."""
    def __init__(self, message="Invalid lifecycle transition attempted."):
        super().__init__(message)


class UnknownPresetError(KeyError):
    """Preset name not registered."""
    def __init__(self, name, available=()):
        self.name = name
        self.available = tuple(available)
        super().__init__(f"Unknown preset '{name}'. Available: {', '.join(self.available)}")
