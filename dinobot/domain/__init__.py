"""
Domain layer - messages, attachments, feed items and registrations.

Plain dataclasses with no dependencies on infrastructure or frameworks.
"""
