"""Per-account wiring of clients, pollers and the upload dispatcher."""

from __future__ import annotations

from dataclasses import dataclass

from shortgen.config import Settings
from shortgen.jobs.dispatcher import ScheduledUploadDispatcher
from shortgen.polling import IntervalPolicy
from shortgen.services.auth import OAuthAuthenticator
from shortgen.services.generation import GenerationPoller
from shortgen.services.media import FFmpegMediaProcessor
from shortgen.services.processing import ProcessingPoller
from shortgen.services.replicate import ReplicateClient
from shortgen.services.upload import UploadPipeline
from shortgen.services.youtube import YouTubeClient


@dataclass
class AccountContext:
    """Everything bound to one provider key and one video-host account.

    Build one per account and pass it explicitly; nothing here is global.
    """

    settings: Settings
    replicate: ReplicateClient
    authenticator: OAuthAuthenticator
    youtube: YouTubeClient
    generation: GenerationPoller
    processing: ProcessingPoller
    uploads: UploadPipeline
    media: FFmpegMediaProcessor
    dispatcher: ScheduledUploadDispatcher

    @classmethod
    def from_settings(cls, settings: Settings) -> AccountContext:
        """Construct the default HTTP-backed collaborators.

        Credentials are not checked here; missing ones surface as
        ValidationError/AuthError on first use.
        """
        replicate = ReplicateClient(
            api_key=settings.replicate_api_key,
            base_url=settings.replicate_base_url,
            model=settings.replicate_model,
            timeout=settings.http_timeout,
        )
        authenticator = OAuthAuthenticator(
            client_id=settings.youtube_client_id,
            client_secret=settings.youtube_client_secret,
            refresh_token=settings.youtube_refresh_token,
            timeout=settings.http_timeout,
        )
        youtube = YouTubeClient(authenticator, timeout=settings.http_timeout)
        generation = GenerationPoller(
            replicate,
            policy=IntervalPolicy(
                max_attempts=settings.generation_max_attempts,
                quick_checks=settings.generation_quick_checks,
            ),
        )
        processing = ProcessingPoller(youtube, max_attempts=settings.processing_max_attempts)
        uploads = UploadPipeline(authenticator, youtube, processing)
        media = FFmpegMediaProcessor(
            ffmpeg_path=settings.ffmpeg_path,
            ffprobe_path=settings.ffprobe_path,
            output_dir=settings.output_dir,
            temp_dir=settings.temp_dir,
        )
        dispatcher = ScheduledUploadDispatcher(
            uploads,
            authenticator=authenticator,
            media_processor=media,
            interval=settings.dispatch_interval_seconds,
        )
        return cls(
            settings=settings,
            replicate=replicate,
            authenticator=authenticator,
            youtube=youtube,
            generation=generation,
            processing=processing,
            uploads=uploads,
            media=media,
            dispatcher=dispatcher,
        )
