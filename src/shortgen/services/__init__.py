"""Services module for shortgen."""

from shortgen.services.auth import OAuthAuthenticator
from shortgen.services.generation import GenerationPoller
from shortgen.services.interfaces import (
    IAuthenticator,
    IGenerationProvider,
    IMediaProcessor,
    IResumableTransfer,
    IVideoStatusSource,
)
from shortgen.services.media import FFmpegMediaProcessor
from shortgen.services.processing import ProcessingPoller
from shortgen.services.replicate import ReplicateClient
from shortgen.services.upload import UploadPipeline
from shortgen.services.youtube import YouTubeClient

__all__ = [
    "IAuthenticator",
    "IGenerationProvider",
    "IMediaProcessor",
    "IResumableTransfer",
    "IVideoStatusSource",
    "FFmpegMediaProcessor",
    "GenerationPoller",
    "OAuthAuthenticator",
    "ProcessingPoller",
    "ReplicateClient",
    "UploadPipeline",
    "YouTubeClient",
]
