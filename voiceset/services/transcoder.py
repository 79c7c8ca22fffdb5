"""Transcoder: normalizes audio with ffmpeg and reads metrics with ffprobe."""

import json
import logging
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import ffmpeg

from voiceset.config import Settings
from voiceset.services.errors import TranscodeError

logger = logging.getLogger(__name__)


@dataclass
class TranscodeResult:
    """Normalized audio plus the metrics measured on it."""

    data: bytes
    duration_sec: float
    sample_rate: int
    channels: int


class Transcoder(Protocol):
    """Input bytes in, normalized bytes and metrics out."""

    def transcode(self, data: bytes, suffix: str = "") -> TranscodeResult:
        ...


def parse_stream_info(info: dict) -> tuple[float, int, int]:
    """
    Extract (duration_sec, sample_rate, channels) from ffprobe JSON output.

    Raises:
        TranscodeError: if no audio stream or a required field is missing.
    """
    audio_streams = [
        s for s in info.get("streams", []) if s.get("codec_type") == "audio"
    ]
    if not audio_streams:
        raise TranscodeError("No audio stream found in transcoder output")
    stream = audio_streams[0]

    duration = info.get("format", {}).get("duration") or stream.get("duration")
    try:
        return float(duration), int(stream["sample_rate"]), int(stream["channels"])
    except (KeyError, TypeError, ValueError) as e:
        raise TranscodeError(f"Unreadable transcoder metrics: {e}") from e


class FFmpegTranscoder:
    """Runs ffmpeg/ffprobe as subprocesses via ffmpeg-python."""

    def __init__(self, settings: Settings):
        self._ffmpeg = settings.ffmpeg_binary
        self._ffprobe = settings.ffprobe_binary
        self._sample_rate = settings.target_sample_rate
        self._channels = settings.target_channels
        self._timeout = settings.transcode_timeout_sec

    def transcode(self, data: bytes, suffix: str = "") -> TranscodeResult:
        """
        Resample ``data`` to mono PCM WAV at the target rate and measure it.

        Args:
            data: Raw audio bytes in any format ffmpeg can decode
            suffix: Extension hint for the input file (e.g. ".webm")

        Returns:
            TranscodeResult with the normalized WAV bytes and its metrics
        """
        with tempfile.TemporaryDirectory(prefix="voiceset-") as tmpdir:
            input_path = Path(tmpdir) / f"input{suffix}"
            output_path = Path(tmpdir) / "normalized.wav"
            input_path.write_bytes(data)

            self._run_ffmpeg(input_path, output_path)
            info = self._read_stream_info(output_path)
            duration_sec, sample_rate, channels = parse_stream_info(info)

            return TranscodeResult(
                data=output_path.read_bytes(),
                duration_sec=duration_sec,
                sample_rate=sample_rate,
                channels=channels,
            )

    def _run_ffmpeg(self, input_path: Path, output_path: Path) -> None:
        stream = (
            ffmpeg.input(str(input_path))
            .output(
                str(output_path),
                ac=self._channels,
                ar=self._sample_rate,
                acodec="pcm_s16le",
                format="wav",
            )
            .global_args("-hide_banner", "-nostdin")
            .overwrite_output()
        )
        try:
            process = stream.run_async(cmd=self._ffmpeg, pipe_stdout=True, pipe_stderr=True)
        except OSError as e:
            raise TranscodeError(f"Could not start {self._ffmpeg}: {e}") from e

        try:
            _, stderr = process.communicate(timeout=self._timeout)
        except subprocess.TimeoutExpired as e:
            process.kill()
            process.communicate()
            raise TranscodeError(f"ffmpeg timed out after {self._timeout}s") from e

        if process.returncode != 0:
            tail = stderr.decode("utf-8", errors="replace").strip().splitlines()[-5:]
            logger.warning(f"ffmpeg exited with {process.returncode}: {' | '.join(tail)}")
            raise TranscodeError(f"ffmpeg failed with exit code {process.returncode}")

    def _read_stream_info(self, path: Path) -> dict:
        args = [self._ffprobe, "-show_format", "-show_streams", "-of", "json", str(path)]
        try:
            process = subprocess.Popen(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except OSError as e:
            raise TranscodeError(f"Could not start {self._ffprobe}: {e}") from e

        try:
            out, err = process.communicate(timeout=self._timeout)
        except subprocess.TimeoutExpired as e:
            process.kill()
            process.communicate()
            raise TranscodeError(f"ffprobe timed out after {self._timeout}s") from e

        if process.returncode != 0:
            message = err.decode("utf-8", errors="replace").strip()
            raise TranscodeError(f"ffprobe failed: {message}")
        try:
            return json.loads(out.decode("utf-8"))
        except ValueError as e:
            raise TranscodeError(f"ffprobe output unreadable: {e}") from e
