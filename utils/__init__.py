"""Shared helpers: Result container and timed log contexts."""
