"""Exception types raised by HabitPulse services."""

from __future__ import annotations


class HabitPulseError(Exception):
    """Base class for errors raised by the service layer."""


class ValidationError(HabitPulseError, ValueError):
    """Input rejected before any computation or store access."""


class NotFoundError(HabitPulseError, LookupError):
    """A habit or user does not exist for the requesting owner."""


__all__ = ["HabitPulseError", "NotFoundError", "ValidationError"]
