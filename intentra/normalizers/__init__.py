"""Per-tool hook event normalization."""
