class SessionUnavailable(RuntimeError):
    """Raised when the inference runtime cannot run in this environment."""


class ModelLoadError(RuntimeError):
    """Raised when model or label files are missing or unsupported."""
