"""Descriptor (POM) parsing: raw models and the identity-only reader."""
