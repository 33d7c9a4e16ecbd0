import json
import os
import stat
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from clipfetch.config.settings import config
from clipfetch.main import app
from clipfetch.services.tools import SubprocessExecutor

FAKE_YTDLP = '''#!{python}
import json, sys, time
with open({behavior!r}) as f:
    b = json.load(f)
args = sys.argv[1:]
if "--version" in args:
    print("2024.12.13")
    sys.exit(0)
if "--dump-json" in args:
    if b.get("info_sleep"):
        time.sleep(b["info_sleep"])
    if b.get("info_exit"):
        sys.stderr.write(b.get("info_stderr", "ERROR: Video unavailable"))
        sys.exit(b["info_exit"])
    sys.stdout.write(b["info_raw"] if "info_raw" in b else json.dumps(b["info"]))
    sys.exit(0)
if b.get("download_exit"):
    sys.stderr.write("ERROR: unable to download video data\\n")
    sys.exit(b["download_exit"])
template = args[args.index("-o") + 1]
ext = "webm"
if "--audio-format" in args:
    ext = args[args.index("--audio-format") + 1]
elif "--merge-output-format" in args:
    ext = args[args.index("--merge-output-format") + 1]
ext = b.get("output_ext", ext)
print("[download]  50.0% of 4.00KiB", flush=True)
if b.get("leave_part"):
    with open(template.replace("%(ext)s", ext + ".part"), "wb") as f:
        f.write(b"partial")
print("[download] 100.0% of 4.00KiB", flush=True)
if not b.get("skip_output"):
    with open(template.replace("%(ext)s", ext), "wb") as f:
        f.write(b"x" * b.get("size", 4096))
'''

FAKE_FFMPEG = '''#!{python}
import json, sys
with open({behavior!r}) as f:
    b = json.load(f)
args = sys.argv[1:]
if "-version" in args:
    print("ffmpeg version 6.1-fake Copyright (c) the FFmpeg developers")
    sys.exit(0)
if b.get("trim_exit"):
    sys.stderr.write("Invalid data found when processing input\\n")
    sys.exit(b["trim_exit"])
src = args[args.index("-i") + 1]
out = args[-1]
if not b.get("skip_trim_output"):
    with open(src, "rb") as s, open(out, "wb") as d:
        d.write(s.read()[:1024])
'''

DEFAULT_INFO = {
    "id": "dQw4w9WgXcQ",
    "title": "Test Clip",
    "duration": 212,
    "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
    "uploader": "Uploader",
    "upload_date": "20091025",
    "formats": [],
}


class FakeTools:
    """Fake yt-dlp/ffmpeg executables plus a record of spawned commands"""

    def __init__(self, root: Path):
        self.root = root
        self.work_dir = root / "work"
        self.behavior_path = root / "behavior.json"
        self.calls = []
        self.behavior = {"info": dict(DEFAULT_INFO)}
        self._save()
        self.ytdlp = self._write_script("yt-dlp", FAKE_YTDLP)
        self.ffmpeg = self._write_script("ffmpeg", FAKE_FFMPEG)

    def _write_script(self, name: str, template: str) -> str:
        path = self.root / name
        path.write_text(template.format(python=sys.executable, behavior=str(self.behavior_path)))
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    def _save(self) -> None:
        self.behavior_path.write_text(json.dumps(self.behavior))

    def configure(self, **kwargs) -> None:
        self.behavior.update(kwargs)
        self._save()

    def set_info(self, **fields) -> None:
        self.behavior["info"] = {**DEFAULT_INFO, **fields}
        self._save()

    def tool_calls(self, name: str):
        return [cmd for cmd in self.calls if os.path.basename(cmd[0]) == name]

    def download_calls(self):
        return [cmd for cmd in self.tool_calls("yt-dlp") if "--dump-json" not in cmd]

    def leftovers(self):
        if not self.work_dir.exists():
            return []
        return sorted(p.name for p in self.work_dir.iterdir())


@pytest.fixture
def anyio_backend():
    return 'asyncio'


@pytest.fixture
def fake_tools(tmp_path, monkeypatch):
    tools = FakeTools(tmp_path)
    monkeypatch.setattr(config.tools, "ytdlp_path", tools.ytdlp)
    monkeypatch.setattr(config.tools, "ffmpeg_path", tools.ffmpeg)
    monkeypatch.setattr(config.download, "temp_dir", str(tools.work_dir))

    original_spawn = SubprocessExecutor.spawn

    async def recording_spawn(cmd):
        tools.calls.append(list(cmd))
        return await original_spawn(cmd)

    monkeypatch.setattr(SubprocessExecutor, "spawn", staticmethod(recording_spawn))
    return tools


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
