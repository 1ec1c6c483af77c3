"""Scan delivery to the Intentra API."""
