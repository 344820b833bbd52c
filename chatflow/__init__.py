"""Chatflow - conversational workflow engine for messaging channels."""

__version__ = "0.1.0"
