import asyncio
import functools
import os
import re
from collections import deque
from contextlib import ExitStack
from enum import Enum
from typing import AsyncIterator, Callable, Dict, List, NamedTuple, Tuple

import aiofiles
from fastapi import HTTPException, Request

from clipfetch.config.settings import config
from clipfetch.core.logging import log_error, log_info
from clipfetch.i18n import i18n
from clipfetch.models.internal import MediaTarget, RetrievalIntent
from clipfetch.services.format import FormatDecision
from clipfetch.services.info import MetadataService
from clipfetch.services.tools import (
    FFmpegCommandBuilder,
    SubprocessExecutor,
    ToolNotFoundError,
    YTDLPCommandBuilder,
)
from clipfetch.services.workspace import TempWorkspace
from clipfetch.utils.filename import content_disposition, sanitize_filename
from clipfetch.utils.locale import safe_url_for_log

PROGRESS_RE = re.compile(r"\[download\]\s+(\d+(?:\.\d+)?)%")
LINE_SPLIT_RE = re.compile(rb"[\r\n]")
TRIM_MARKER = "_trimmed"


class RetrievalState(str, Enum):
    VALIDATING = "validating"
    FETCHING_METADATA = "fetching_metadata"
    DOWNLOADING = "downloading"
    TRIMMING = "trimming"
    STREAMING = "streaming"
    CLEANED = "cleaned"
    FAILED = "failed"


class PreparedMedia(NamedTuple):
    body: AsyncIterator[bytes]
    headers: Dict[str, str]
    media_type: str
    filename: str
    workspace: TempWorkspace


async def _drain(stream: asyncio.StreamReader, on_line: Callable[[str], None]) -> None:
    """Read a pipe to EOF, splitting on CR as well as LF (progress bars)"""
    pending = b""
    while True:
        chunk = await stream.read(4096)
        if not chunk:
            break
        pending += chunk
        *lines, pending = LINE_SPLIT_RE.split(pending)
        for line in lines:
            if line.strip():
                on_line(line.decode(errors="replace").strip())
    if pending.strip():
        on_line(pending.decode(errors="replace").strip())


class DownloadService:
    """Download, optionally trim, then stream a single media file"""

    @staticmethod
    async def _run_tool(
        cmd: List[str],
        tool: str,
        timeout: float,
        request: Request,
        locale: str
    ) -> Tuple[int, str]:
        """Run a tool while consuming both pipes; returns (exit code, stderr tail)"""
        _ = functools.partial(i18n.get, locale=locale)

        try:
            process = await SubprocessExecutor.spawn(cmd)
        except ToolNotFoundError as e:
            raise HTTPException(status_code=500, detail=_("error.tool_error", tool=tool, reason=e.reason))

        stderr_lines = deque(maxlen=config.download.stderr_max_lines)
        last_bucket = [-1]

        def on_stdout(line: str) -> None:
            progress = PROGRESS_RE.search(line)
            if progress:
                percent = float(progress.group(1))
                bucket = int(percent // 10)
                if bucket != last_bucket[0]:
                    last_bucket[0] = bucket
                    log_info(request, f"Download progress: {percent:.1f}%")

        def on_stderr(line: str) -> None:
            stderr_lines.append(line)
            on_stdout(line)

        try:
            await asyncio.wait_for(
                asyncio.gather(
                    _drain(process.stdout, on_stdout),
                    _drain(process.stderr, on_stderr),
                    process.wait(),
                ),
                timeout=timeout
            )
        except asyncio.TimeoutError:
            await SubprocessExecutor.terminate(process)
            raise HTTPException(status_code=504, detail=_("error.timeout", tool=tool, seconds=timeout))
        except BaseException:
            await SubprocessExecutor.terminate(process)
            raise

        return process.returncode, "\n".join(stderr_lines)

    @staticmethod
    async def _download(
        intent: RetrievalIntent,
        target: MediaTarget,
        workspace: TempWorkspace,
        request: Request,
        locale: str
    ) -> str:
        _ = functools.partial(i18n.get, locale=locale)
        stem = workspace.reserve()

        cmd = YTDLPCommandBuilder.build_download_command(
            intent.url,
            target.format_str,
            output_template=f"{stem}.%(ext)s",
            merge_format=None if intent.audio_only else target.ext,
            audio_format=target.ext if target.extract_audio else None,
            bitrate=intent.bitrate if target.extract_audio else None
        )
        log_info(request, f"Downloading with format {target.format_str} to {stem}")

        returncode, stderr = await DownloadService._run_tool(
            cmd, "yt-dlp", config.tools.download_timeout, request, locale
        )
        if returncode != 0:
            raise HTTPException(status_code=500, detail=_("error.download_failed", reason=stderr))

        path = workspace.locate(stem)
        if not path:
            raise HTTPException(status_code=500, detail=_("error.file_not_found"))
        return path

    @staticmethod
    async def _trim(
        intent: RetrievalIntent,
        source_path: str,
        workspace: TempWorkspace,
        request: Request,
        locale: str
    ) -> str:
        _ = functools.partial(i18n.get, locale=locale)
        source_stem, ext = os.path.splitext(source_path)
        output_path = workspace.reserve("trim") + ext

        cmd = FFmpegCommandBuilder.build_trim_command(source_path, output_path, intent.start, intent.end)
        log_info(request, f"Trimming {os.path.basename(source_path)} start={intent.start} end={intent.end}")

        returncode, stderr = await DownloadService._run_tool(
            cmd, "ffmpeg", config.tools.trim_timeout, request, locale
        )
        if returncode != 0:
            raise HTTPException(status_code=500, detail=_("error.trim_failed", reason=stderr))
        if not os.path.isfile(output_path):
            raise HTTPException(status_code=500, detail=_("error.trimmed_not_found"))

        workspace.discard(source_stem)
        return output_path

    @staticmethod
    async def _stream(path: str, workspace: TempWorkspace, request: Request) -> AsyncIterator[bytes]:
        """Single pass over the file; the workspace goes away however this ends"""
        try:
            async with aiofiles.open(path, "rb") as f:
                while True:
                    chunk = await f.read(config.download.chunk_size)
                    if not chunk:
                        break
                    yield chunk
        except OSError as e:
            # Headers are already committed; the client sees a truncated body
            log_error(request, f"Stream error: {e}")
            raise
        finally:
            workspace.cleanup()
            log_info(request, f"State: {RetrievalState.CLEANED.value}")

    @staticmethod
    async def retrieve(intent: RetrievalIntent, request: Request, locale: str = None) -> PreparedMedia:
        """
        FetchingMetadata -> Downloading -> [Trimming] -> Streaming.

        Any failure before streaming removes every temp file created so far
        and propagates as an HTTPException. On success the workspace is owned
        by the returned body generator.
        """
        stage = RetrievalState.FETCHING_METADATA
        log_info(request, f"State: {stage.value} for {safe_url_for_log(intent.url)}")

        metadata = await MetadataService.fetch(intent.url, locale)
        MetadataService.check_duration(metadata, locale)

        target = FormatDecision.decide(intent)
        title = sanitize_filename(metadata.title)

        try:
            with ExitStack() as stack:
                workspace = stack.enter_context(TempWorkspace())

                stage = RetrievalState.DOWNLOADING
                log_info(request, f"State: {stage.value}")
                path = await DownloadService._download(intent, target, workspace, request, locale)

                ext = os.path.splitext(path)[1].lstrip(".") or target.ext
                filename = f"{title}_{target.label}.{ext}"

                if intent.wants_trim:
                    stage = RetrievalState.TRIMMING
                    log_info(request, f"State: {stage.value}")
                    path = await DownloadService._trim(intent, path, workspace, request, locale)
                    filename = f"{title}_{target.label}{TRIM_MARKER}.{ext}"

                file_size = os.path.getsize(path)
                stack.pop_all()
        except BaseException:
            log_error(request, f"State: {RetrievalState.FAILED.value} during {stage.value}")
            raise

        log_info(request, f"State: {RetrievalState.STREAMING.value} ({file_size / 1024 / 1024:.1f} MB)")

        headers = {
            'Content-Disposition': content_disposition(filename),
            'Content-Length': str(file_size),
            'Cache-Control': 'no-cache',
            'X-Content-Type-Options': 'nosniff',
        }

        return PreparedMedia(
            body=DownloadService._stream(path, workspace, request),
            headers=headers,
            media_type=FormatDecision.media_type_for(ext, intent.audio_only),
            filename=filename,
            workspace=workspace
        )
