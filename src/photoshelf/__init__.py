"""Folder-native photo and video catalog with cached square previews."""

__version__ = "0.3.0"
