"""
Tests for the chime strategies and the fallback tone.
"""
import io
import sys
import wave
from pathlib import Path
from unittest.mock import patch

import pytest

from kitchen.audio import (
    BellChime,
    ChimePlayer,
    SoundFileChime,
    SynthesizedChime,
    _spawn,
    default_cache_dir,
    player_argv,
    render_tone,
    resolve_player_command,
)
from kitchen.errors import AudioUnavailable


class TestRenderTone:
    def test_produces_half_second_mono_wav(self):
        data = render_tone(70, sample_rate=8000)
        with wave.open(io.BytesIO(data), "rb") as wav:
            assert wav.getnchannels() == 1
            assert wav.getsampwidth() == 2
            assert wav.getframerate() == 8000
            assert wav.getnframes() == 4000

    def test_zero_volume_is_silent(self):
        data = render_tone(0, sample_rate=8000)
        with wave.open(io.BytesIO(data), "rb") as wav:
            frames = wav.readframes(wav.getnframes())
        assert set(frames) == {0}


class TestPlayerArgv:
    def test_afplay_gets_volume_fraction(self):
        assert player_argv("/usr/bin/afplay", Path("a.wav"), 50) == ["/usr/bin/afplay", "-v", "0.50", "a.wav"]

    def test_paplay_gets_scaled_volume(self):
        assert player_argv("paplay", Path("a.wav"), 100) == ["paplay", "--volume=65536", "a.wav"]

    def test_other_players_get_path_only(self):
        assert player_argv("aplay", Path("a.wav"), 30) == ["aplay", "a.wav"]


class TestSoundFileChime:
    def test_missing_asset_is_unavailable(self, tmp_path):
        chime = SoundFileChime(tmp_path / "missing.wav", player="aplay", runner=lambda argv: None)
        with pytest.raises(AudioUnavailable):
            chime.play(70)

    def test_invalid_wav_is_unavailable(self, tmp_path):
        path = tmp_path / "broken.wav"
        path.write_bytes(b"not a wav file")
        chime = SoundFileChime(path, player="aplay", runner=lambda argv: None)
        with pytest.raises(AudioUnavailable):
            chime.play(70)

    def test_plays_valid_asset(self, tmp_path):
        path = tmp_path / "chime.wav"
        path.write_bytes(render_tone(70, sample_rate=8000))
        commands = []
        SoundFileChime(path, player="aplay", runner=commands.append).play(70)
        assert commands == [["aplay", str(path)]]


class TestSynthesizedChime:
    def test_writes_tone_and_plays_it(self, tmp_path):
        commands = []
        SynthesizedChime(player="aplay", runner=commands.append, cache_dir=tmp_path).play(40)

        tone = tmp_path / "kitchen-chime-40.wav"
        assert tone.is_file()
        assert commands == [["aplay", str(tone)]]

    def test_corrupt_cached_tone_is_rendered_again(self, tmp_path):
        """A truncated file left under the tone name is replaced, not played."""
        stale = tmp_path / "kitchen-chime-40.wav"
        stale.write_bytes(b"RIFF\x00\x00")
        commands = []

        SynthesizedChime(player="aplay", runner=commands.append, cache_dir=tmp_path).play(40)

        with wave.open(str(stale), "rb") as wav:
            assert wav.getnframes() > 0
        assert commands == [["aplay", str(stale)]]
        assert [p.name for p in tmp_path.iterdir()] == ["kitchen-chime-40.wav"]

    def test_valid_cached_tone_is_reused(self, tmp_path):
        cached = tmp_path / "kitchen-chime-40.wav"
        cached.write_bytes(render_tone(40, sample_rate=8000))
        before = cached.read_bytes()

        SynthesizedChime(player="aplay", runner=lambda argv: None, cache_dir=tmp_path).play(40)

        assert cached.read_bytes() == before

    def test_default_cache_dir_is_per_user(self, tmp_path):
        with patch.dict("os.environ", {"XDG_CACHE_HOME": str(tmp_path)}):
            assert default_cache_dir() == tmp_path / "kitchen-display"
            assert SynthesizedChime(player="aplay").cache_dir == tmp_path / "kitchen-display"

    def test_runner_failure_propagates_as_unavailable(self, tmp_path):
        def runner(argv):
            raise AudioUnavailable("player crashed")

        with pytest.raises(AudioUnavailable):
            SynthesizedChime(player="aplay", runner=runner, cache_dir=tmp_path).play(40)


class TestSpawn:
    """The player is watched long enough to catch an immediate failure."""

    def test_non_zero_exit_is_unavailable(self):
        with patch("kitchen.audio._PLAYER_STARTUP_S", 10):
            with pytest.raises(AudioUnavailable):
                _spawn([sys.executable, "-c", "import sys; sys.exit(3)"])

    def test_clean_exit_is_played(self):
        with patch("kitchen.audio._PLAYER_STARTUP_S", 10):
            _spawn([sys.executable, "-c", "pass"])

    def test_still_running_after_window_is_played(self):
        with patch("kitchen.audio._PLAYER_STARTUP_S", 0.01):
            _spawn([sys.executable, "-c", "import time; time.sleep(1)"])

    def test_missing_executable_is_unavailable(self, tmp_path):
        with pytest.raises(AudioUnavailable):
            _spawn([str(tmp_path / "no-such-player")])


class TestChimePlayer:
    """Strategies are tried in order until one plays."""

    def test_failing_player_falls_back_to_synthesized_tone(self, tmp_path):
        """A primary player that exits non-zero hands over to the fallback tone."""
        asset = tmp_path / "chime.wav"
        asset.write_bytes(render_tone(70, sample_rate=8000))
        fallback = []
        # The interpreter rejects a WAV file as a script and exits non-zero.
        player = ChimePlayer(
            [
                SoundFileChime(asset, player=sys.executable),
                SynthesizedChime(player="aplay", runner=fallback.append, cache_dir=tmp_path / "cache"),
            ]
        )

        with patch("kitchen.audio._PLAYER_STARTUP_S", 10):
            assert player.play(70) == "synthesized"
        assert len(fallback) == 1

    def test_falls_through_to_bell(self, tmp_path):
        rings = []
        player = ChimePlayer(
            [
                SoundFileChime(tmp_path / "missing.wav", player="aplay", runner=lambda argv: None),
                BellChime(lambda: rings.append(1)),
            ]
        )
        assert player.play(70) == "bell"
        assert rings == [1]

    def test_first_working_strategy_wins(self, tmp_path):
        commands = []
        rings = []
        player = ChimePlayer(
            [
                SynthesizedChime(player="aplay", runner=commands.append, cache_dir=tmp_path),
                BellChime(lambda: rings.append(1)),
            ]
        )
        assert player.play(70) == "synthesized"
        assert rings == []

    def test_all_failing_returns_none(self):
        def broken_bell():
            raise RuntimeError("no terminal")

        assert ChimePlayer([BellChime(broken_bell)]).play(70) is None

    def test_add_strategy_appends(self):
        rings = []
        player = ChimePlayer([])
        player.add_strategy(BellChime(lambda: rings.append(1)))
        assert player.play(10) == "bell"


class TestResolvePlayerCommand:
    def test_override_wins(self):
        with patch.dict("os.environ", {"KITCHEN_AUDIO_PLAYER": "mpv"}):
            with patch("kitchen.audio.shutil.which", side_effect=lambda name: f"/usr/bin/{name}") as which:
                assert resolve_player_command() == "/usr/bin/mpv"
        which.assert_called_once_with("mpv")

    def test_first_installed_candidate(self):
        installed = {"paplay": "/usr/bin/paplay", "aplay": "/usr/bin/aplay"}
        with patch.dict("os.environ", {"KITCHEN_AUDIO_PLAYER": ""}):
            with patch("kitchen.audio.shutil.which", side_effect=installed.get):
                assert resolve_player_command() == "/usr/bin/paplay"

    def test_none_when_nothing_installed(self):
        with patch.dict("os.environ", {"KITCHEN_AUDIO_PLAYER": ""}):
            with patch("kitchen.audio.shutil.which", return_value=None):
                assert resolve_player_command() is None
