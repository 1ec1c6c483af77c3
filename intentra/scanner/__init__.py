"""Aggregate a session's buffered events into one scan."""
