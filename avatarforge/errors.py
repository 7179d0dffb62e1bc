"""Exceptions raised by AvatarForge."""


class AvatarForgeError(Exception):
    """Base class for all AvatarForge errors."""


class ContextUnavailable(AvatarForgeError):
    """A surface could not provide a 2D drawing context."""


class DegenerateMeasurement(AvatarForgeError):
    """The glyph scan found no ink pixels (empty or invisible text)."""
