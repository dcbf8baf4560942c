"""Shared service utilities: HTTP session and low-level API clients."""
