"""Core module containing interfaces."""

from dinobot.core.interfaces import IBotPoster, IRegistrationRepository

__all__ = ["IBotPoster", "IRegistrationRepository"]
