"""YouTube Data API client: resumable uploads and video status."""

import asyncio
import logging
import re
from pathlib import Path
from typing import Any

import httpx

from shortgen.errors import AuthError, JobCanceled, RemoteFailure
from shortgen.models.upload import ChannelInfo, TransferResult, TransferStatus, VideoSummary
from shortgen.services.interfaces import IAuthenticator

logger = logging.getLogger(__name__)

UPLOAD_URL = "https://www.googleapis.com/upload/youtube/v3/videos"
API_URL = "https://www.googleapis.com/youtube/v3"

# Resumable upload chunks must be a multiple of 256 KiB.
MIN_CHUNK_SIZE = 256 * 1024
DEFAULT_CHUNK_SIZE = MIN_CHUNK_SIZE * 4

_RANGE_RE = re.compile(r"bytes=(\d+)-(\d+)")


def watch_url(video_id: str) -> str:
    """Public watch URL for a video id."""
    return f"https://www.youtube.com/watch?v={video_id}"


def _next_offset(range_header: str | None) -> int:
    """Offset of the first byte the server has not yet persisted."""
    if not range_header:
        return 0
    match = _RANGE_RE.search(range_header)
    if not match:
        return 0
    return int(match.group(2)) + 1


class YouTubeClient:
    """Async client for the parts of the YouTube Data API shortgen uses.

    Implements the resumable upload protocol: a session is opened with the
    video resource, then the file is sent in chunks with ``Content-Range``.
    ``308 Resume Incomplete`` carries the persisted ``Range``; ``200``/``201``
    carries the created video resource. After a transport error or a 5xx the
    client asks the server for the persisted range and resumes from there.
    """

    def __init__(
        self,
        authenticator: IAuthenticator,
        upload_url: str = UPLOAD_URL,
        api_url: str = API_URL,
        timeout: float = 30.0,
        max_chunk_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._auth = authenticator
        self.upload_url = upload_url
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.max_chunk_retries = max_chunk_retries
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _auth_headers(self) -> dict[str, str]:
        session = await self._auth.authenticate()
        return {"Authorization": f"Bearer {session.access_token}"}

    # ------------------------------------------------------------------
    # Resumable upload
    # ------------------------------------------------------------------

    async def upload(
        self,
        path: Path,
        resource: dict[str, Any],
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        cancel: asyncio.Event | None = None,
    ) -> TransferResult:
        """Upload a video file in chunks.

        Args:
            path: Local video file
            resource: Video resource body (snippet + status)
            chunk_size: Bytes per chunk (multiple of 256 KiB)
            cancel: Checked before every chunk

        Returns:
            TransferResult; ``resource_id`` is the new video id on completion

        Raises:
            JobCanceled: ``cancel`` was set between chunks.
            httpx.RequestError: Transport kept failing after retries.
        """
        path = Path(path)
        total = path.stat().st_size
        headers = await self._auth_headers()

        async with self._client() as client:
            session_url, error = await self._open_session(client, headers, resource, total)
            if session_url is None:
                return TransferResult(status=TransferStatus.FAILED, error=error)

            offset = 0
            failures = 0
            resync = False
            with open(path, "rb") as f:
                while True:
                    if cancel is not None and cancel.is_set():
                        raise JobCanceled("Upload canceled")

                    try:
                        if resync:
                            response = await client.put(
                                session_url,
                                headers={**headers, "Content-Range": f"bytes */{total}"},
                            )
                        else:
                            f.seek(offset)
                            chunk = f.read(chunk_size)
                            end = offset + len(chunk) - 1
                            response = await client.put(
                                session_url,
                                headers={**headers, "Content-Range": f"bytes {offset}-{end}/{total}"},
                                content=chunk,
                            )
                    except httpx.RequestError as e:
                        failures += 1
                        if failures > self.max_chunk_retries:
                            raise
                        logger.warning(
                            "Chunk at offset %d failed (%d/%d): %s",
                            offset,
                            failures,
                            self.max_chunk_retries,
                            e,
                        )
                        resync = True
                        continue

                    was_resync, resync = resync, False

                    if response.status_code in (200, 201):
                        video = response.json()
                        logger.info("Upload completed: video id=%s", video.get("id"))
                        return TransferResult(
                            status=TransferStatus.COMPLETED,
                            resource_id=video.get("id"),
                            bytes_sent=total,
                        )

                    if response.status_code == 308:
                        new_offset = _next_offset(response.headers.get("Range"))
                        if new_offset > offset:
                            failures = 0
                        elif not was_resync:
                            failures += 1
                            if failures > self.max_chunk_retries:
                                return TransferResult(
                                    status=TransferStatus.FAILED,
                                    error=f"Upload made no progress at offset {offset}",
                                    bytes_sent=offset,
                                )
                            logger.warning(
                                "Chunk at offset %d was not persisted (%d/%d)",
                                offset,
                                failures,
                                self.max_chunk_retries,
                            )
                        offset = new_offset
                        logger.debug("Persisted %d/%d bytes", offset, total)
                        continue

                    if response.status_code >= 500:
                        failures += 1
                        if failures <= self.max_chunk_retries:
                            logger.warning(
                                "Chunk at offset %d got %s, resuming (%d/%d)",
                                offset,
                                response.status_code,
                                failures,
                                self.max_chunk_retries,
                            )
                            resync = True
                            continue

                    return TransferResult(
                        status=TransferStatus.FAILED,
                        error=f"{response.status_code} - {response.text}",
                        bytes_sent=offset,
                    )

    async def _open_session(
        self,
        client: httpx.AsyncClient,
        headers: dict[str, str],
        resource: dict[str, Any],
        total: int,
    ) -> tuple[str | None, str | None]:
        """Start a resumable session. Returns (session_url, error)."""
        response = await client.post(
            self.upload_url,
            params={"uploadType": "resumable", "part": "snippet,status"},
            headers={
                **headers,
                "X-Upload-Content-Length": str(total),
                "X-Upload-Content-Type": "video/*",
            },
            json=resource,
        )
        if response.status_code == 401:
            raise AuthError("YouTube rejected the access token")
        if response.status_code != 200:
            return None, f"Could not start upload session: {response.status_code} - {response.text}"

        location = response.headers.get("Location")
        if not location:
            return None, "Upload session response had no Location header"
        return location, None

    # ------------------------------------------------------------------
    # Read-only calls
    # ------------------------------------------------------------------

    async def get_upload_status(self, video_id: str) -> str | None:
        """Return ``status.uploadStatus`` for a video, or None if not listed yet."""
        headers = await self._auth_headers()
        async with self._client() as client:
            response = await client.get(
                f"{self.api_url}/videos",
                params={"part": "status,processingDetails", "id": video_id},
                headers=headers,
            )
            response.raise_for_status()
            items = response.json().get("items") or []

        if not items:
            return None
        video = items[0]
        upload_status = (video.get("status") or {}).get("uploadStatus")
        processing_status = (video.get("processingDetails") or {}).get("processingStatus")
        logger.debug("Video %s: upload=%s processing=%s", video_id, upload_status, processing_status)
        return upload_status

    async def get_channel_info(self) -> ChannelInfo:
        """Return the authenticated user's channel.

        Raises:
            RemoteFailure: If no channel is linked to the account.
        """
        headers = await self._auth_headers()
        async with self._client() as client:
            response = await client.get(
                f"{self.api_url}/channels",
                params={"part": "snippet,statistics", "mine": "true"},
                headers=headers,
            )
            response.raise_for_status()
            items = response.json().get("items") or []

        if not items:
            raise RemoteFailure("No YouTube channel is linked to this account")

        channel = items[0]
        snippet = channel.get("snippet") or {}
        stats = channel.get("statistics") or {}
        thumbnail = ((snippet.get("thumbnails") or {}).get("default") or {}).get("url")
        return ChannelInfo(
            channel_id=channel["id"],
            title=snippet.get("title", ""),
            channel_url=f"https://www.youtube.com/channel/{channel['id']}",
            thumbnail_url=thumbnail,
            subscriber_count=int(stats.get("subscriberCount", 0)),
            video_count=int(stats.get("videoCount", 0)),
        )

    async def list_my_videos(self, max_results: int = 10) -> list[VideoSummary]:
        """Most recent uploads of the authenticated channel."""
        headers = await self._auth_headers()
        async with self._client() as client:
            response = await client.get(
                f"{self.api_url}/channels",
                params={"part": "contentDetails", "mine": "true"},
                headers=headers,
            )
            response.raise_for_status()
            items = response.json().get("items") or []
            if not items:
                return []
            uploads_id = items[0]["contentDetails"]["relatedPlaylists"]["uploads"]

            response = await client.get(
                f"{self.api_url}/playlistItems",
                params={"part": "snippet", "playlistId": uploads_id, "maxResults": max_results},
                headers=headers,
            )
            response.raise_for_status()
            entries = response.json().get("items") or []

        videos = []
        for entry in entries:
            snippet = entry.get("snippet") or {}
            videos.append(
                VideoSummary(
                    video_id=(snippet.get("resourceId") or {}).get("videoId", ""),
                    title=snippet.get("title", ""),
                    description=snippet.get("description", ""),
                    published_at=snippet.get("publishedAt"),
                )
            )
        return videos
