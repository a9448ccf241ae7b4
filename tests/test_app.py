"""Tests for the command line entry point and its exit codes."""

import os
import stat
import sys

import pytest
from PIL import Image

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import app
from nether.encoder import FFMPEG_ENV_VAR
from nether.errors import RenderCancelled

SMALL = ["--width", "6", "--height", "4", "--fps", "5", "--duration", "1", "--workers", "2"]


def fake_ffmpeg(tmp_path, body):
    script = tmp_path / "fake-ffmpeg"
    script.write_text("#!/bin/sh\n" + body + "\n")
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return str(script)


class TestMain:
    """Tests for app.main()."""

    def test_render_without_encoding(self, tmp_path, capsys):
        frames = tmp_path / "out" / "frames"
        code = app.main(SMALL + ["--output-dir", str(frames), "--no-encode"])
        assert code == 0
        assert sorted(p.name for p in frames.iterdir()) == [f"frame_{i:04d}.ppm" for i in range(5)]
        assert "[OK]" in capsys.readouterr().out

    def test_configuration_error_exit_code(self, tmp_path, capsys):
        code = app.main(["--width", "0", "--output-dir", str(tmp_path)])
        assert code == 2
        assert "[CONFIG ERROR]" in capsys.readouterr().err

    def test_blank_output_dir(self, capsys):
        assert app.main(["--output-dir", "  "]) == 2

    def test_zero_frames_is_configuration_error(self, tmp_path, capsys):
        frames = tmp_path / "frames"
        code = app.main(["--fps", "1", "--duration", "0.4", "--output-dir", str(frames)])
        assert code == 2
        assert "[CONFIG ERROR]" in capsys.readouterr().err
        assert not frames.exists()

    def test_output_dir_blocked_by_file(self, tmp_path, capsys):
        blocker = tmp_path / "frames"
        blocker.write_text("x")
        code = app.main(SMALL + ["--output-dir", str(blocker), "--no-encode"])
        assert code == 3
        assert "[IO ERROR]" in capsys.readouterr().err

    @pytest.mark.skipif(sys.platform == "win32", reason="uses /bin/sh scripts")
    def test_encoder_failure_exit_code(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv(FFMPEG_ENV_VAR, fake_ffmpeg(tmp_path, 'echo "boom"\nexit 7'))
        code = app.main(SMALL + ["--output-dir", str(tmp_path / "frames"),
                                 "--output", str(tmp_path / "out.mp4")])
        captured = capsys.readouterr()
        assert code == 4
        assert "[FFMPEG] boom" in captured.out
        assert "[ENCODER ERROR]" in captured.err
        assert "7" in captured.err

    @pytest.mark.skipif(sys.platform == "win32", reason="uses /bin/sh scripts")
    def test_full_run_with_encoder(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv(FFMPEG_ENV_VAR, fake_ffmpeg(tmp_path, 'echo "encoded"'))
        code = app.main(SMALL + ["--output-dir", str(tmp_path / "frames"),
                                 "--output", str(tmp_path / "out.mp4")])
        out = capsys.readouterr().out
        assert code == 0
        assert "[FFMPEG] encoded" in out
        assert "video created" in out

    def test_cancelled_exit_code(self, tmp_path, monkeypatch, capsys):
        def cancelled(config, encode=True):
            raise RenderCancelled(3, 10)

        monkeypatch.setattr(app, "run", cancelled)
        assert app.main(SMALL + ["--output-dir", str(tmp_path)]) == 130
        assert "[INTERRUPTED]" in capsys.readouterr().err

    def test_unexpected_error_exit_code(self, tmp_path, monkeypatch, capsys):
        def broken(config, encode=True):
            raise RuntimeError("kaboom")

        monkeypatch.setattr(app, "run", broken)
        assert app.main(SMALL + ["--output-dir", str(tmp_path)]) == 1
        assert "[FATAL]" in capsys.readouterr().err

    def test_preview_single_frame(self, tmp_path):
        target = tmp_path / "preview.png"
        code = app.main(SMALL + ["--frame", "2", "--preview", str(target)])
        assert code == 0
        with Image.open(target) as img:
            assert img.size == (6, 4)
