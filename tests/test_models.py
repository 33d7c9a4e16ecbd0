import pytest
from pydantic import ValidationError

from clipfetch.models.internal import Mode
from clipfetch.models.request import DownloadRequest
from clipfetch.services.format import FormatDecision
from clipfetch.services.tools import FFmpegCommandBuilder, YTDLPCommandBuilder
from clipfetch.utils.filename import content_disposition, sanitize_filename
from clipfetch.utils.timestamps import format_timestamp, parse_timestamp

URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def test_defaults():
    intent = DownloadRequest(url=URL).to_intent()
    assert intent.mode == Mode.VIDEO
    assert intent.quality == 720
    assert intent.container == "mp4"
    assert intent.bitrate == 192
    assert not intent.wants_trim


def test_intent_is_immutable():
    intent = DownloadRequest(url=URL).to_intent()
    with pytest.raises(ValidationError):
        intent.quality = 1080


@pytest.mark.parametrize("raw,expected", [("720p", 720), ("1080", 1080), ("480P", 480)])
def test_quality_forms(raw, expected):
    assert DownloadRequest(url=URL, quality=raw).quality == expected


@pytest.mark.parametrize("kwargs", [
    {"quality": "hd"},
    {"quality": "50p"},
    {"bitrate": "5"},
    {"container": "avi"},
    {"mode": "video", "container": "mp3"},
    {"start": "00:02:00", "end": "00:01:00"},
    {"start": "1:2:3:4"},
    {"end": "-5"},
])
def test_rejected_parameters(kwargs):
    with pytest.raises(ValidationError):
        DownloadRequest(url=URL, **kwargs)


def test_trim_window_parsed_to_seconds():
    intent = DownloadRequest(url=URL, start="00:01:00", end="00:02:00").to_intent()
    assert intent.start == 60
    assert intent.end == 120
    assert intent.wants_trim


@pytest.mark.parametrize("raw,expected", [
    ("00:01:00", 60.0),
    ("1:02:03", 3723.0),
    ("02:30", 150.0),
    ("90", 90.0),
    ("12.5", 12.5),
    ("00:00:01.250", 1.25),
    ("", None),
    (None, None),
])
def test_parse_timestamp(raw, expected):
    assert parse_timestamp(raw) == expected


def test_parse_timestamp_rejects_garbage():
    with pytest.raises(ValueError):
        parse_timestamp("-ss")


def test_format_timestamp():
    assert format_timestamp(60) == "00:01:00"
    assert format_timestamp(3723.5) == "01:02:03.500"


def test_video_format_selector():
    intent = DownloadRequest(url=URL, quality="480p", container="webm").to_intent()
    target = FormatDecision.decide(intent)
    assert target.format_str == "bestvideo[height<=480]+bestaudio/best[height<=480]"
    assert target.ext == "webm"
    assert target.media_type == "video/webm"
    assert target.label == "480p"


def test_audio_mp3_target():
    intent = DownloadRequest(url=URL, mode="audio", container="mp3", bitrate="128").to_intent()
    target = FormatDecision.decide(intent)
    assert target.format_str == "bestaudio"
    assert target.media_type == "audio/mpeg"
    assert target.extract_audio
    assert target.label == "128kbps"


def test_audio_with_video_container_falls_back_to_webm():
    intent = DownloadRequest(url=URL, mode="audio", container="mp4").to_intent()
    target = FormatDecision.decide(intent)
    assert target.ext == "webm"
    assert target.media_type == "audio/webm"
    assert not target.extract_audio


def test_download_command_for_mp3():
    cmd = YTDLPCommandBuilder.build_download_command(
        URL, "bestaudio", "/tmp/x.%(ext)s", audio_format="mp3", bitrate=192
    )
    assert cmd[cmd.index("-f") + 1] == "bestaudio"
    assert cmd[cmd.index("--audio-format") + 1] == "mp3"
    assert cmd[cmd.index("--audio-quality") + 1] == "192K"
    assert "--merge-output-format" not in cmd
    assert cmd[-3:] == ["-o", "/tmp/x.%(ext)s", URL]


def test_trim_command_uses_duration_after_input_seek():
    cmd = FFmpegCommandBuilder.build_trim_command("in.mp4", "out.mp4", 60, 120)
    assert cmd[cmd.index("-ss") + 1] == "00:01:00"
    assert cmd.index("-ss") < cmd.index("-i")
    assert cmd[cmd.index("-t") + 1] == "00:01:00"
    assert cmd[cmd.index("-c") + 1] == "copy"
    assert cmd[-1] == "out.mp4"


def test_trim_command_end_only():
    cmd = FFmpegCommandBuilder.build_trim_command("in.mp4", "out.mp4", None, 30)
    assert "-ss" not in cmd
    assert cmd[cmd.index("-to") + 1] == "00:00:30"


def test_trim_command_start_only():
    cmd = FFmpegCommandBuilder.build_trim_command("in.mp4", "out.mp4", 15, None)
    assert cmd[cmd.index("-ss") + 1] == "00:00:15"
    assert "-t" not in cmd and "-to" not in cmd


@pytest.mark.parametrize("title,expected", [
    ("Never Gonna Give You Up", "Never Gonna Give You Up"),
    ("a/b:c*d?", "a_b_c_d_"),
    ("  spaced    out  ", "spaced out"),
    ("日本語", "___"),
    ("", "video"),
])
def test_sanitize_filename(title, expected):
    assert sanitize_filename(title) == expected


def test_sanitize_filename_truncates():
    assert len(sanitize_filename("x" * 300)) == 100


def test_content_disposition():
    value = content_disposition("Test Clip_720p.mp4")
    assert value.startswith('attachment; filename="Test Clip_720p.mp4"')
    assert "filename*=UTF-8''Test%20Clip_720p.mp4" in value
