"""pici - install packages from a custom package file."""

__version__ = "0.1.0"
