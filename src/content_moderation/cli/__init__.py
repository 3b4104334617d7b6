"""
CLI module for content moderation.

Provides the command-line tool for moderating text through the fallback chain.
"""

from content_moderation.cli.moderate import main as moderate_main

__all__ = ["moderate_main"]
