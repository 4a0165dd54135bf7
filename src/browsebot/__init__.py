"""Conversational browser assistant core: provider adapters, tools, conversation engine."""

__version__ = "0.1.0"
