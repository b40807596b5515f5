"""Shared helpers: tracing."""
