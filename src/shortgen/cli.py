"""shortgen command-line interface with subcommands.

Usage:
    shortgen-cli generate "a sunset over the sea" [--duration 5] [--resolution 1080p] [--download out.mp4]
    shortgen-cli upload <video> --title "My video" [--tags a,b] [--visibility private]
    shortgen-cli account
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx

from shortgen.config import settings
from shortgen.context import AccountContext
from shortgen.errors import ShortgenError
from shortgen.models.generation import GenerationRequest
from shortgen.models.status import ProgressReport
from shortgen.models.upload import UploadJob, VideoMetadata


def _print_progress(report: ProgressReport) -> None:
    bar_width = 30
    filled = int(bar_width * report.percentage / 100)
    bar = "=" * filled + "-" * (bar_width - filled)
    print(
        f"\r  [{bar}] {report.percentage:3d}% {report.status_label} ({report.eta_text})",
        end="",
        flush=True,
    )


async def _download(url: str, dest: Path) -> None:
    """Stream a generated video to disk."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    async with httpx.AsyncClient(timeout=settings.http_timeout, follow_redirects=True) as client:
        async with client.stream("GET", url) as response:
            response.raise_for_status()
            with open(dest, "wb") as f:
                async for chunk in response.aiter_bytes():
                    f.write(chunk)


# --- generate subcommand ---

async def cmd_generate(args: argparse.Namespace) -> None:
    """Generate a video and wait for it."""
    context = AccountContext.from_settings(settings)
    settings.require_replicate_api_key()

    request = GenerationRequest(
        prompt=settings.combine_prompts(args.prompt),
        duration=args.duration,
        resolution=args.resolution,
        aspect_ratio=args.aspect_ratio,
        camera_fixed=args.camera_fixed,
        seed=args.seed,
        image=args.image,
    )

    print(f"Generating: {request.prompt}")
    print(f"  model: {settings.replicate_model}")
    print(f"  {request.duration}s {request.resolution} {request.aspect_ratio}")

    job = await context.generation.generate(request, on_progress=_print_progress)
    print()  # newline after progress bar

    url = job.output.reference if job.output else ""
    print(f"\nDone: {url}")

    if args.download:
        dest = Path(args.download).resolve()
        print(f"Downloading to {dest}")
        await _download(url, dest)
        print(f"  saved: {dest}")


# --- upload subcommand ---

async def cmd_upload(args: argparse.Namespace) -> None:
    """Upload a local video to YouTube."""
    video_path = Path(args.input).resolve()
    if not video_path.exists():
        print(f"Error: file not found: {video_path}", file=sys.stderr)
        sys.exit(1)

    settings.require_youtube_credentials()
    context = AccountContext.from_settings(settings)
    await context.authenticator.authenticate()

    metadata = VideoMetadata(
        title=args.title or settings.default_video_title,
        description=args.description if args.description is not None else settings.default_video_description,
        tags=args.tags if args.tags is not None else settings.default_video_tags,
        visibility=args.visibility or settings.default_visibility,
    )

    print(f"Uploading: {video_path.name}")
    print(f"  title: {metadata.title}")
    print(f"  visibility: {metadata.visibility}")

    url = await context.uploads.upload(
        UploadJob(source_path=video_path, metadata=metadata),
        on_progress=_print_progress,
    )
    print()
    print(f"\nDone: {url}")


# --- account subcommand ---

async def cmd_account(args: argparse.Namespace) -> None:
    """Show Replicate credit and YouTube channel information."""
    context = AccountContext.from_settings(settings)

    if settings.replicate_api_key:
        balance = await context.replicate.get_credit_balance()
        shown = f"${balance:.2f}" if balance is not None else "unavailable"
        print(f"Replicate credit: {shown}")
    else:
        print("Replicate: no API key configured")

    if settings.youtube_client_id and settings.youtube_refresh_token:
        await context.authenticator.authenticate()
        channel = await context.youtube.get_channel_info()
        print(f"YouTube channel: {channel.title} ({channel.channel_url})")
        print(f"  subscribers: {channel.subscriber_count}  videos: {channel.video_count}")
    else:
        print("YouTube: not configured")


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="shortgen-cli",
        description="shortgen - generate short videos and publish them to YouTube",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- generate ---
    p_gen = subparsers.add_parser("generate", help="Generate a video from a prompt")
    p_gen.add_argument("prompt", type=str, help="Prompt (joined after BASE_PROMPT)")
    p_gen.add_argument("--duration", type=int, default=5, help="Seconds, 2-12 (default: 5)")
    p_gen.add_argument("--resolution", choices=["480p", "720p", "1080p"], default="1080p", help="Resolution (default: 1080p)")
    p_gen.add_argument("--aspect-ratio", default="16:9", help="Aspect ratio (default: 16:9)")
    p_gen.add_argument("--camera-fixed", action="store_true", help="Lock the camera")
    p_gen.add_argument("--seed", type=int, help="Random seed")
    p_gen.add_argument("--image", type=str, help="Reference image URL")
    p_gen.add_argument("--download", type=str, help="Save the result to this path")

    # --- upload ---
    p_up = subparsers.add_parser("upload", help="Upload a video to YouTube")
    p_up.add_argument("input", type=str, help="Video file")
    p_up.add_argument("--title", type=str, help="Video title")
    p_up.add_argument("--description", type=str, help="Video description")
    p_up.add_argument("--tags", type=str, help="Comma-separated tags")
    p_up.add_argument("--visibility", type=str, help="public, unlisted or private")

    # --- account ---
    subparsers.add_parser("account", help="Show credit balance and channel info")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "generate": cmd_generate,
        "upload": cmd_upload,
        "account": cmd_account,
    }
    try:
        asyncio.run(commands[args.command](args))
    except ShortgenError as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
