"""Common data models and utilities for the application."""

from .outcome import Outcome, OutcomeStatus
from .user import AccessLevel, Capabilities, User, capabilities_of

__all__ = [
    "AccessLevel",
    "Capabilities",
    "Outcome",
    "OutcomeStatus",
    "User",
    "capabilities_of",
]
