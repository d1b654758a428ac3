"""Configurable base64 engines with streaming encoder and decoder wrappers."""

__version__ = "0.1.0"
__all__ = ["engine", "reader", "writer", "string_writer"]