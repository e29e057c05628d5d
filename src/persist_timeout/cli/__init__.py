"""Command-line interface for inspecting persisted timeouts."""
