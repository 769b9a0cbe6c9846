"""Exception types raised by notegraph."""


class NoteGraphError(Exception):
    """Base class for notegraph errors."""


class VaultLoadError(NoteGraphError):
    """Raised when a note vault cannot be read."""


class DanglingEdgeError(NoteGraphError):
    """Raised when a network contains an edge whose endpoint is not a node."""
