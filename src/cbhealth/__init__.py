"""Couchbase cluster health reporting."""

__version__ = "0.3.0"
