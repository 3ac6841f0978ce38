"""
HTTP handlers for submitting jobs, polling them and collecting their files.
"""

import json
import logging
from urllib.parse import quote

import aiofiles
from aiohttp import hdrs, web

from ytdl_api.exceptions import ArtifactMissingError, JobNotFoundError, RetrieverError
from ytdl_api.models.job import JobStatus
from ytdl_api.models.requests import DownloadRequest
from ytdl_api.utils.formatting import format_size
from ytdl_api.utils.path import is_youtube_url

from .state import HTTP_EVENTS, JOB_MANAGER, client_key

log = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 256 * 1024

routes = web.RouteTableDef()


def content_disposition(filename: str) -> str:
    """Builds an attachment header, adding an RFC 5987 form for non-ASCII names."""
    if filename.isascii():
        return f'attachment; filename="{filename}"'
    fallback = filename.encode("ascii", "replace").decode("ascii").replace("?", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@routes.get("/")
async def index(request: web.Request) -> web.Response:
    return web.json_response(
        {"status": "ok", "message": "YouTube Downloader API is running"}
    )


@routes.post("/api/download")
async def create_download(request: web.Request) -> web.Response:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return web.json_response({"error": "Request body must be JSON"}, status=400)

    body = DownloadRequest.model_validate(payload)
    job_id = request.app[JOB_MANAGER].submit(
        client_key(request), body.locator, body.format, body.quality, title=body.title
    )
    return web.json_response({"jobId": job_id, "status": "processing"})


@routes.get("/api/download/{job_id}/progress")
async def download_progress(request: web.Request) -> web.Response:
    view = request.app[JOB_MANAGER].store.get(request.match_info["job_id"])
    if view is None:
        raise JobNotFoundError("Download not found")
    return web.json_response(view.to_dict())


@routes.get("/api/download/{job_id}")
async def fetch_artifact(request: web.Request) -> web.StreamResponse:
    """Streams a completed job's file, then cleans the job up."""
    job_id = request.match_info["job_id"]
    store = request.app[JOB_MANAGER].store

    view = store.get(job_id)
    if view is None:
        raise JobNotFoundError("Download not found")
    if view.status in (JobStatus.PENDING, JobStatus.RUNNING):
        return web.json_response(
            {
                "error": "Download not ready",
                "status": view.status.value,
                "progress": view.progress,
            },
            status=400,
        )
    if view.status is JobStatus.FAILED:
        return web.json_response(
            {"error": "Download failed", "message": view.error}, status=400
        )

    artifact = store.claim_artifact(job_id)
    if artifact is None:
        raise ArtifactMissingError("File not found or has been deleted")

    response = web.StreamResponse(
        headers={
            hdrs.CONTENT_TYPE: artifact.mime_type,
            hdrs.CONTENT_DISPOSITION: content_disposition(artifact.filename),
        }
    )
    sent = 0
    completed = False
    try:
        async with aiofiles.open(artifact.path, "rb") as f:
            await response.prepare(request)
            while chunk := await f.read(STREAM_CHUNK_SIZE):
                await response.write(chunk)
                sent += len(chunk)
        await response.write_eof()
        completed = True
        log.info(f"Job {job_id} streamed ({format_size(sent)})")
    except OSError as e:
        log.error(f"Error streaming file of job {job_id}: {e}")
        if not response.prepared:
            return web.json_response({"error": "Failed to stream file"}, status=500)
    finally:
        store.scheduler.fire_now(job_id)
        request.app[HTTP_EVENTS].artifact_streamed(job_id, sent, completed)
    return response


@routes.get("/api/info")
async def video_info(request: web.Request) -> web.Response:
    url = request.query.get("url", "").strip()
    if not url:
        return web.json_response(
            {"error": 'Query parameter "url" is required'}, status=400
        )
    if not is_youtube_url(url):
        return web.json_response(
            {"error": "Only YouTube URLs are supported"}, status=400
        )

    try:
        info = await request.app[JOB_MANAGER].fetch_info(url)
    except RetrieverError as e:
        return web.json_response(
            {"error": "Failed to get video information", "message": str(e)},
            status=400,
        )
    return web.json_response({"videos": [info.to_dict()]})
