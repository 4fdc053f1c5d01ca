"""
Services package for business logic.
"""
from dinobot.services.dino_responder import DinoResponder
from dinobot.services.feed_relay import FeedRelay, RelayReport

__all__ = ['DinoResponder', 'FeedRelay', 'RelayReport']
