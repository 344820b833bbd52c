"""Default implementations of the engine's external collaborators."""
