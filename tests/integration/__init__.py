"""Integration tests: CLI, page operations and config sessions against the in-memory host."""
