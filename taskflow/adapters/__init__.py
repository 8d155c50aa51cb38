"""Adapters isolating third-party frameworks."""
