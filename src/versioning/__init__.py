"""Coordinates, version ordering and Maven version ranges."""
