"""Service interfaces (Protocols) for shortgen.

These protocols define the contracts of the external collaborators the
orchestration core talks to. Concrete implementations live next to this
module; tests substitute fakes.
"""

import asyncio
from contextlib import AbstractAsyncContextManager
from pathlib import Path
from typing import Any, Protocol

from shortgen.models.generation import GenerationRequest, PredictionState
from shortgen.models.media import EditInstructions
from shortgen.models.upload import TransferResult


class SessionHandle(Protocol):
    """An authenticated session usable for API calls."""

    @property
    def access_token(self) -> str:
        ...

    @property
    def is_valid(self) -> bool:
        ...


class IAuthenticator(Protocol):
    """Interface for obtaining and revoking an authenticated session."""

    async def authenticate(self, force_reauth: bool = False) -> SessionHandle:
        """Return a usable session, creating one if needed.

        Args:
            force_reauth: Discard any cached session first.

        Returns:
            The session handle

        Raises:
            AuthError: If no session can be established.
        """
        ...

    async def revoke(self) -> None:
        """Revoke and forget the current session."""
        ...

    def is_authenticated(self) -> bool:
        """True if a valid session is held."""
        ...

    def in_flight(self) -> AbstractAsyncContextManager[None]:
        """Hold the session for one upload; revocation waits for release."""
        ...


class IGenerationProvider(Protocol):
    """Interface for a remote video generation service."""

    async def create_prediction(self, request: GenerationRequest) -> PredictionState:
        """Submit a generation request.

        Args:
            request: Validated generation parameters

        Returns:
            Initial state including the remote job id
        """
        ...

    async def get_prediction(self, prediction_id: str) -> PredictionState:
        """Fetch the current state of a remote job."""
        ...


class IResumableTransfer(Protocol):
    """Interface for a chunked, resumable video transfer."""

    async def upload(
        self,
        path: Path,
        resource: dict[str, Any],
        chunk_size: int,
        cancel: asyncio.Event | None = None,
    ) -> TransferResult:
        """Stream a file to the host in fixed-size chunks.

        Args:
            path: Local file to send
            resource: Host-side metadata body
            chunk_size: Bytes per chunk
            cancel: Optional cancellation signal, checked between chunks

        Returns:
            TransferResult with the assigned resource id on completion
        """
        ...


class IVideoStatusSource(Protocol):
    """Interface for reading host-side processing status."""

    async def get_upload_status(self, video_id: str) -> str | None:
        """Return the host's upload status for a video (None if unknown)."""
        ...


class IMediaProcessor(Protocol):
    """Interface for local media post-processing."""

    async def process(self, input_path: Path, instructions: EditInstructions) -> Path:
        """Apply edits and return the output path.

        Raises:
            MediaProcessingError: If processing fails.
        """
        ...
