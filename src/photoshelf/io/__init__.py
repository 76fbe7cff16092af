"""Filesystem scanning and metadata extraction."""
