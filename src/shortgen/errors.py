"""Custom exceptions for shortgen."""


class ShortgenError(Exception):
    """Base exception for shortgen."""

    pass


class ValidationError(ShortgenError):
    """Bad input. Never retried, surfaced before any remote call."""

    pass


class AuthError(ShortgenError):
    """Not authenticated, or the session is no longer valid."""

    pass


class RemoteFailure(ShortgenError):
    """A remote provider reported a terminal failure."""

    def __init__(self, message: str, details: object = None):
        super().__init__(message)
        self.details = details


class GenerationTimeout(ShortgenError):
    """Polling ceiling exceeded before the remote job reached a terminal state."""

    pass


class JobCanceled(ShortgenError):
    """Local waiting was stopped by a cancellation signal."""

    pass


class UploadFailure(ShortgenError):
    """The chunked transfer failed or did not yield a video id."""

    pass


class ProcessingIncomplete(ShortgenError):
    """Upload succeeded but host-side processing could not be confirmed.

    Soft: logged, never raised out of the upload pipeline.
    """

    pass


class TransientPollError(ShortgenError):
    """Network blip during polling. Absorbed by the poll loop."""

    pass


class MediaProcessingError(ShortgenError):
    """FFmpeg post-processing failed."""

    pass
