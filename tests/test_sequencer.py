"""Unit tests for the frame sequencer: ordering, progress, cancellation and resume."""

import dataclasses
import logging
import os
import sys
import threading

import pytest

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import nether.sequencer as sequencer_module
from nether.config import PipelineConfig
from nether.errors import FrameWriteError, RenderCancelled
from nether.renderer import expected_ppm_size, read_ppm
from nether.sequencer import FrameSequencer, render_all


def make_config(tmp_path, **overrides):
    settings = dict(width=6, height=4, fps=10, duration=1.2,
                    output_dir=str(tmp_path), workers=1)
    settings.update(overrides)
    return PipelineConfig(**settings)


def frame_files(directory):
    return sorted(p.name for p in directory.iterdir() if p.name.endswith(".ppm"))


class TestRenderAll:
    """Tests for rendering a complete sequence."""

    def test_renders_every_frame_in_order(self, tmp_path):
        config = make_config(tmp_path)
        paths = render_all(config)
        assert config.total_frames == 12
        assert [p.name for p in paths] == [f"frame_{i:04d}.ppm" for i in range(12)]
        assert frame_files(tmp_path) == [p.name for p in paths]
        size = expected_ppm_size(6, 4)
        assert all(p.stat().st_size == size for p in paths)

    def test_parallel_output_matches_sequential(self, tmp_path):
        seq_dir = tmp_path / "seq"
        par_dir = tmp_path / "par"
        seq_dir.mkdir()
        par_dir.mkdir()
        seq_paths = render_all(make_config(seq_dir, workers=1))
        par_paths = render_all(make_config(par_dir, workers=4))
        assert [p.name for p in par_paths] == [p.name for p in seq_paths]
        for a, b in zip(seq_paths, par_paths):
            assert a.read_bytes() == b.read_bytes()

    def test_frames_differ_over_time(self, tmp_path):
        paths = render_all(make_config(tmp_path))
        assert (read_ppm(paths[0]) != read_ppm(paths[-1])).any()

    def test_progress_callback(self, tmp_path):
        calls = []
        render_all(make_config(tmp_path, workers=3),
                   progress_callback=lambda done, total, index: calls.append((done, total, index)))
        assert len(calls) == 12
        assert [c[0] for c in calls] == list(range(1, 13))
        assert all(c[1] == 12 for c in calls)
        assert sorted(c[2] for c in calls) == list(range(12))

    def test_progress_log_cadence(self, tmp_path, caplog):
        with caplog.at_level(logging.INFO, logger="nether.sequencer"):
            render_all(make_config(tmp_path))
        frame_lines = [r.getMessage() for r in caplog.records
                       if r.getMessage().startswith("Rendered frame")]
        assert [line.split()[2] for line in frame_lines] == ["0/11", "10/11", "11/11"]

    def test_is_generating_resets(self, tmp_path):
        sequencer = FrameSequencer(make_config(tmp_path))
        sequencer.render_all()
        assert not sequencer.is_generating


class TestCancellation:
    """Tests for cooperative cancellation between frames."""

    @pytest.mark.parametrize("k", [0, 3, 7])
    def test_cancel_after_frame_k(self, tmp_path, k):
        sequencer = FrameSequencer(make_config(tmp_path))

        def on_progress(done, total, index):
            if index == k:
                sequencer.stop()

        with pytest.raises(RenderCancelled) as exc_info:
            sequencer.render_all(on_progress)

        assert exc_info.value.next_index == k + 1
        assert isinstance(exc_info.value, InterruptedError)
        assert frame_files(tmp_path) == [f"frame_{i:04d}.ppm" for i in range(k + 1)]

    def test_shared_stop_event(self, tmp_path):
        event = threading.Event()
        event.set()
        with pytest.raises(RenderCancelled) as exc_info:
            render_all(make_config(tmp_path), stop_event=event)
        assert exc_info.value.next_index == 0
        assert frame_files(tmp_path) == []

    def test_cancel_after_last_frame_is_success(self, tmp_path):
        sequencer = FrameSequencer(make_config(tmp_path))

        def on_progress(done, total, index):
            if index == total - 1:
                sequencer.stop()

        assert len(sequencer.render_all(on_progress)) == 12

    def test_parallel_cancel_leaves_contiguous_prefix(self, tmp_path):
        sequencer = FrameSequencer(make_config(tmp_path, workers=3))

        def on_progress(done, total, index):
            if done == 4:
                sequencer.stop()

        with pytest.raises(RenderCancelled) as exc_info:
            sequencer.render_all(on_progress)

        next_index = exc_info.value.next_index
        assert 4 <= next_index < 12
        assert frame_files(tmp_path) == [f"frame_{i:04d}.ppm" for i in range(next_index)]


class TestFailures:
    """Tests for frame write failures."""

    def test_write_failure_aborts_sequence(self, tmp_path):
        # A directory squatting on frame 2's path makes its write fail
        (tmp_path / "frame_0002.ppm").mkdir()
        with pytest.raises(FrameWriteError) as exc_info:
            render_all(make_config(tmp_path))

        err = exc_info.value
        assert err.index == 2
        assert "frame_0002.ppm" in str(err)
        assert isinstance(err, OSError)
        assert isinstance(err.__cause__, OSError)
        assert not (tmp_path / "frame_0003.ppm").exists()


class TestResume:
    """Tests for keeping complete frames already on disk."""

    def test_resume_only_renders_missing_or_truncated(self, tmp_path, monkeypatch):
        config = make_config(tmp_path)
        paths = render_all(config)

        with open(paths[2], "r+b") as f:
            f.truncate(5)
        paths[7].unlink()

        rendered = []
        original = sequencer_module.render_frame_file

        def spy(cfg, index, renderer=None):
            rendered.append(index)
            return original(cfg, index, renderer)

        monkeypatch.setattr(sequencer_module, "render_frame_file", spy)
        resumed = render_all(dataclasses.replace(config, resume=True))

        assert sorted(rendered) == [2, 7]
        assert resumed == paths
        size = expected_ppm_size(6, 4)
        assert all(p.stat().st_size == size for p in resumed)

    def test_without_resume_everything_is_rendered(self, tmp_path, monkeypatch):
        config = make_config(tmp_path)
        render_all(config)

        rendered = []
        original = sequencer_module.render_frame_file

        def spy(cfg, index, renderer=None):
            rendered.append(index)
            return original(cfg, index, renderer)

        monkeypatch.setattr(sequencer_module, "render_frame_file", spy)
        render_all(config)
        assert sorted(rendered) == list(range(12))
