"""Native event tables for each supported coding assistant."""
