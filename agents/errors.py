# arw/agents/errors.py
from __future__ import annotations


class ReviewError(Exception):
    """Base class for errors raised to callers of the review pipeline."""


class ValidationError(ReviewError):
    """Input rejected before any provider call (e.g. empty document text)."""


class ConfigurationError(ValidationError):
    """Generation client is not usable, typically a missing API key."""


class ConcurrentRunError(ReviewError):
    """A run was requested while another is still in progress on the same executor."""
