"""Resize Pipeline - batch image resizing with local/remote routing and analytics."""

__version__ = "0.1.0"
