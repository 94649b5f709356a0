"""
Lambda-style entry points.

Each module exposes ``handler(event, context) -> dict`` and returns the
envelope ``{"status", "result"}`` or ``{"status", "error"}``.
"""
