"""Command dispatch, in-memory guild data, autopost settings, anime subscriptions, feeds, emoji stats and filters for a chat guild bot."""

__version__ = "0.1.0"