"""Service initialization helpers."""
