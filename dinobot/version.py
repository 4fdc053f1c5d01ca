"""
Application version information.

Version format: MAJOR.MINOR
- MAJOR: Breaking changes (0 while the bot is in beta)
- MINOR: Incremented with each release

Version is displayed on server startup and in GET / endpoint.
"""

__version__ = "0.1"
