"""Effective-model pipeline, graph resolution, artifact location and manifests."""
