"""Exception types raised by the string art generator."""

from __future__ import annotations


class StringArtError(Exception):
    """Base class for all string art errors."""


class ConfigurationError(StringArtError, ValueError):
    """An option is out of range or inconsistent with another option.

    Raised while the run configuration is built, before any pins are laid
    out or lines rasterised.
    """


class UpstreamDecodeError(StringArtError):
    """The source image exists but could not be decoded."""
