"""Room governance service for a collaborative whiteboard."""

__version__ = "1.0.0"
