"""Intentra hook agent: normalize AI coding assistant hook events into scans."""

__version__ = "0.1.0"
