"""Notification chime with a synthesized fallback tone."""

from __future__ import annotations

import io
import logging
import math
import os
import shutil
import struct
import subprocess
import tempfile
import wave
from pathlib import Path
from typing import Callable, Protocol, Sequence

from kitchen.config import SOUND_PATH
from kitchen.errors import AudioUnavailable

logger = logging.getLogger(__name__)

_PLAYER_OVERRIDE_ENV = "KITCHEN_AUDIO_PLAYER"
_PLAYER_CANDIDATES = ("afplay", "paplay", "aplay")

# Fallback tone tuning.
_TONE_FREQUENCY_HZ = 800.0
_TONE_DURATION_S = 0.5
_TONE_ATTACK_S = 0.1
# Decay ends at 1/30 of the peak, matching a 0.3 -> 0.01 gain ramp.
_TONE_DECAY_FLOOR = 1 / 30
_TONE_SAMPLE_RATE = 22050

# A player that fails (busy device, unsupported codec) exits inside this window.
_PLAYER_STARTUP_S = 0.25
_CACHE_ENV = "XDG_CACHE_HOME"

Runner = Callable[[Sequence[str]], None]


class ChimeStrategy(Protocol):
    name: str

    def play(self, volume: int) -> None:
        """Produce sound or raise AudioUnavailable."""


def _spawn(argv: Sequence[str]) -> None:
    """
    Start the player and watch it through a short startup window.

    A player still running when the window closes is playing; one that has
    already exited non-zero raises AudioUnavailable.
    """
    try:
        proc = subprocess.Popen(
            list(argv),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as exc:
        raise AudioUnavailable(f"could not start {argv[0]}: {exc}") from exc
    try:
        returncode = proc.wait(timeout=_PLAYER_STARTUP_S)
    except subprocess.TimeoutExpired:
        return
    if returncode != 0:
        raise AudioUnavailable(f"{argv[0]} exited with status {returncode}")


def resolve_player_command() -> str | None:
    """
    Resolve an audio player executable.

    Resolution order:
    1. KITCHEN_AUDIO_PLAYER (if set)
    2. afplay (macOS), paplay (PulseAudio), aplay (ALSA)
    """
    override = os.environ.get(_PLAYER_OVERRIDE_ENV, "").strip()
    candidates = ([override] if override else []) + list(_PLAYER_CANDIDATES)
    for candidate in candidates:
        found = shutil.which(candidate)
        if found:
            return found
    return None


def player_argv(player: str, path: Path, volume: int) -> list[str]:
    """Build the player command line, passing volume where the player supports it."""
    name = Path(player).name
    if name == "afplay":
        return [player, "-v", f"{volume / 100:.2f}", str(path)]
    if name == "paplay":
        return [player, f"--volume={int(65536 * volume / 100)}", str(path)]
    return [player, str(path)]


def render_tone(volume: int, frequency: float = _TONE_FREQUENCY_HZ, sample_rate: int = _TONE_SAMPLE_RATE) -> bytes:
    """Render a short sine chime with a linear attack and exponential decay as WAV bytes."""
    peak = max(0, min(100, volume)) / 100
    total = int(_TONE_DURATION_S * sample_rate)
    attack = int(_TONE_ATTACK_S * sample_rate)
    decay_len = max(1, total - attack)
    frames = bytearray()
    for idx in range(total):
        if idx < attack:
            gain = peak * idx / attack
        else:
            gain = peak * _TONE_DECAY_FLOOR ** ((idx - attack) / decay_len)
        sample = gain * math.sin(2 * math.pi * frequency * idx / sample_rate)
        frames += struct.pack("<h", int(sample * 32767))

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(bytes(frames))
    return buffer.getvalue()


def _check_wav(path: Path) -> None:
    try:
        with wave.open(str(path), "rb") as wav:
            if wav.getnframes() <= 0:
                raise AudioUnavailable(f"sound file is empty: {path}")
    except (wave.Error, EOFError) as exc:
        raise AudioUnavailable(f"unsupported sound file {path}: {exc}") from exc


def default_cache_dir() -> Path:
    """Per-user cache directory for rendered tones."""
    base = os.environ.get(_CACHE_ENV, "").strip()
    root = Path(base) if base else Path.home() / ".cache"
    return root / "kitchen-display"


class SoundFileChime:
    """Primary chime: the configured sound asset through a system player."""

    name = "sound_file"

    def __init__(
        self,
        path: str | Path = SOUND_PATH,
        player: str | None = None,
        runner: Runner = _spawn,
    ) -> None:
        self.path = Path(path)
        self.player = player
        self.runner = runner

    def _check_asset(self) -> None:
        if not self.path.is_file():
            raise AudioUnavailable(f"sound asset not found: {self.path}")
        if self.path.suffix.lower() == ".wav":
            _check_wav(self.path)

    def play(self, volume: int) -> None:
        self._check_asset()
        player = self.player or resolve_player_command()
        if player is None:
            raise AudioUnavailable("no audio player available")
        self.runner(player_argv(player, self.path, volume))


class SynthesizedChime:
    """Fallback chime: an 800 Hz tone rendered on the fly."""

    name = "synthesized"

    def __init__(
        self,
        player: str | None = None,
        runner: Runner = _spawn,
        cache_dir: str | Path | None = None,
    ) -> None:
        self.player = player
        self.runner = runner
        self.cache_dir = Path(cache_dir) if cache_dir else default_cache_dir()

    def _tone_file(self, volume: int) -> Path:
        path = self.cache_dir / f"kitchen-chime-{volume}.wav"
        if path.is_file():
            try:
                _check_wav(path)
                return path
            except AudioUnavailable as exc:
                logger.info("re-rendering cached tone: %s", exc)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".kitchen-chime-", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(render_tone(volume))
                os.replace(tmp_name, path)
            except OSError:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise AudioUnavailable(f"could not write fallback tone: {exc}") from exc
        return path

    def play(self, volume: int) -> None:
        player = self.player or resolve_player_command()
        if player is None:
            raise AudioUnavailable("no audio player available")
        # Volume is baked into the samples; the player runs at full scale.
        self.runner(player_argv(player, self._tone_file(volume), 100))


class BellChime:
    """Last resort: the terminal bell."""

    name = "bell"

    def __init__(self, bell: Callable[[], None]) -> None:
        self.bell = bell

    def play(self, volume: int) -> None:
        try:
            self.bell()
        except Exception as exc:
            raise AudioUnavailable(f"terminal bell failed: {exc}") from exc


class ChimePlayer:
    """Tries each strategy in order until one produces sound."""

    def __init__(self, strategies: Sequence[ChimeStrategy]) -> None:
        self.strategies = list(strategies)

    def add_strategy(self, strategy: ChimeStrategy) -> None:
        self.strategies.append(strategy)

    def play(self, volume: int) -> str | None:
        """Return the name of the strategy that played, or None if all failed."""
        for strategy in self.strategies:
            try:
                strategy.play(volume)
            except AudioUnavailable as exc:
                logger.info("chime strategy %s unavailable: %s", strategy.name, exc)
                continue
            except Exception:
                logger.exception("chime strategy %s failed", strategy.name)
                continue
            return strategy.name
        logger.warning("all chime strategies failed; notification is silent")
        return None


def default_chime(sound_path: str | Path = SOUND_PATH) -> ChimePlayer:
    return ChimePlayer([SoundFileChime(sound_path), SynthesizedChime()])
