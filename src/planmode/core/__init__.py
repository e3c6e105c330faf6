"""Core resolution, installation, and consistency-verification subsystem."""
