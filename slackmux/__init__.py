"""Slack webhook multiplexer."""

__version__ = "0.1.0"
