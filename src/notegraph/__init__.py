"""notegraph: link graph analytics for markdown note collections."""

__version__ = "0.1.0"
