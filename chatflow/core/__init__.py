"""Core configuration, exceptions and dependency wiring."""
