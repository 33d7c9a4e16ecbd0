from typing import List, NamedTuple, Optional
import asyncio
import logging
from clipfetch.config.settings import config
from clipfetch.core.state import state
from clipfetch.utils.timestamps import format_timestamp

logger = logging.getLogger(__name__)

class CompletedProcess(NamedTuple):
    """Subprocess result"""
    returncode: int
    stdout: bytes
    stderr: bytes

class ToolNotFoundError(Exception):
    """The external executable could not be started"""

    def __init__(self, tool: str, reason: str):
        self.tool = tool
        self.reason = reason
        super().__init__(f"{tool}: {reason}")

class SubprocessExecutor:
    """Execute external tools with consistent error handling"""

    @staticmethod
    async def spawn(cmd: List[str]) -> asyncio.subprocess.Process:
        """Start a child with piped stdout/stderr and no stdin"""
        logger.debug(f"Spawning: {' '.join(cmd)}")
        try:
            return await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL
            )
        except OSError as e:
            raise ToolNotFoundError(cmd[0], e.strerror or str(e)) from e

    @staticmethod
    async def terminate(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()

    @staticmethod
    async def run(cmd: List[str], timeout: float) -> CompletedProcess:
        """
        Run a tool to completion and capture all of its output.
        The child is killed if the timeout expires or the caller is cancelled.
        """
        process = await SubprocessExecutor.spawn(cmd)

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout
            )
        except BaseException:
            await SubprocessExecutor.terminate(process)
            raise

        return CompletedProcess(
            returncode=process.returncode,
            stdout=stdout,
            stderr=stderr
        )

class YTDLPCommandBuilder:
    """Build yt-dlp commands"""

    @staticmethod
    def build_info_command(url: str) -> List[str]:
        return [
            config.tools.ytdlp_path,
            '--dump-json',
            '--no-warnings',
            '--no-playlist',
            url,
        ]

    @staticmethod
    def build_download_command(
        url: str,
        format_str: str,
        output_template: str,
        merge_format: Optional[str] = None,
        audio_format: Optional[str] = None,
        bitrate: Optional[int] = None
    ) -> List[str]:
        """Build command for downloading to a file"""
        cmd = [
            config.tools.ytdlp_path,
            '-f', format_str,
            '--no-playlist',
            '--newline',
        ]

        if merge_format:
            cmd.extend(['--merge-output-format', merge_format])

        if audio_format:
            cmd.extend(['--extract-audio', '--audio-format', audio_format])
            if bitrate:
                cmd.extend(['--audio-quality', f'{bitrate}K'])

        cmd.extend(['-o', output_template, url])
        return cmd

    @staticmethod
    def build_version_command() -> List[str]:
        return [config.tools.ytdlp_path, '--version']

class FFmpegCommandBuilder:
    """Build ffmpeg commands"""

    @staticmethod
    def build_trim_command(
        input_path: str,
        output_path: str,
        start: Optional[float],
        end: Optional[float]
    ) -> List[str]:
        """
        Stream-copy trim. Input seeking resets timestamps to zero, so the
        window is expressed as a duration when a start is given.
        """
        cmd = [config.tools.ffmpeg_path, '-hide_banner', '-nostdin', '-y']

        if start:
            cmd.extend(['-ss', format_timestamp(start)])

        cmd.extend(['-i', input_path])

        if end is not None:
            if start:
                cmd.extend(['-t', format_timestamp(end - start)])
            else:
                cmd.extend(['-to', format_timestamp(end)])

        cmd.extend(['-c', 'copy', output_path])
        return cmd

    @staticmethod
    def build_version_command() -> List[str]:
        return [config.tools.ffmpeg_path, '-version']

async def probe_versions() -> None:
    """Record tool versions in runtime state"""
    probes = (
        ("ytdlp_version", YTDLPCommandBuilder.build_version_command()),
        ("ffmpeg_version", FFmpegCommandBuilder.build_version_command()),
    )
    for attr, cmd in probes:
        try:
            result = await SubprocessExecutor.run(cmd, timeout=config.tools.version_timeout)
        except (ToolNotFoundError, asyncio.TimeoutError) as e:
            logger.warning(f"Could not probe {cmd[0]}: {e}")
            continue
        if result.returncode == 0:
            lines = result.stdout.decode(errors="replace").strip().splitlines()
            if lines:
                setattr(state, attr, lines[0].strip())
