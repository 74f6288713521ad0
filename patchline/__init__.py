"""patchline: offline, file-based software patches."""

__version__ = "0.1.0"
