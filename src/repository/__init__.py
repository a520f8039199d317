"""Repository scanning and the on-disk index of staged artifacts."""
