"""Telegram community bot building blocks: Bot API client, webhook app, template replies, commands and statistics."""

__version__ = "0.1.0"