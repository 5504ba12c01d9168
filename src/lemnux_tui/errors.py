"""
Exception classes for Lemnux.

Page fetch failures share the FetchError base so the feed controller can
hold any of them in its Failed state. ThumbnailError is kept apart: a
broken thumbnail only ever affects its own card.
"""


class LemnuxError(Exception):
    """Base exception for all Lemnux errors."""
    pass


class ConfigurationError(LemnuxError):
    """Raised when no instance is selected or settings are unusable."""
    pass


# =============================================================================
# Remote API Errors
# =============================================================================

class FetchError(LemnuxError):
    """Base exception for failed requests to the Lemmy API."""
    pass


class TransportError(FetchError):
    """Raised when the server cannot be reached or answers with an error status."""
    pass


class AuthError(FetchError):
    """Raised when a token is missing, expired or rejected, or a login fails."""
    pass


class DecodeError(FetchError):
    """Raised when a response payload is not what the API promises."""
    pass


# =============================================================================
# Image Errors
# =============================================================================

class ThumbnailError(LemnuxError):
    """Raised when a thumbnail cannot be downloaded or decoded."""
    pass
