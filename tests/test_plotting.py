"""Tests for 4B profile and swing-window figures."""

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd
import pytest

from fourb.plotting import plot_4b_profile, plot_swing_window
from fourb.session import neutral_session_record, score_capture
from fourb.window import detect_swing_window


class TestPlot4bProfile:

    def test_returns_figure(self, kinematics, energy):
        fig = plot_4b_profile(score_capture(kinematics, energy))
        assert isinstance(fig, plt.Figure)
        assert len(fig.axes[0].patches) == 4
        plt.close(fig)

    def test_neutral_record(self):
        fig = plot_4b_profile(neutral_session_record(), figsize=(6, 3))
        assert "composite 50" in fig.axes[0].get_title()
        plt.close(fig)

    def test_save(self, kinematics, energy, tmp_path):
        fig = plot_4b_profile(score_capture(kinematics, energy))
        path = tmp_path / "profile.png"
        fig.savefig(path)
        plt.close(fig)
        assert path.stat().st_size > 0


class TestPlotSwingWindow:

    def test_two_panels(self, kinematics, energy, config):
        window = detect_swing_window(kinematics, energy, config["window"])
        fig = plot_swing_window(kinematics, energy, window)
        assert len(fig.axes) == 2
        assert len(fig.axes[0].lines) >= 2
        plt.close(fig)

    def test_missing_energy(self, kinematics, config):
        window = detect_swing_window(kinematics, None, config["window"])
        fig = plot_swing_window(kinematics, pd.DataFrame(), window, fps=240.0)
        assert "low confidence" in fig.axes[0].get_title()
        plt.close(fig)
