"""Tests for angular velocity, X-factor and consistency extraction."""

import numpy as np
import pandas as pd
import pytest

from fourb.kinematics import (
    angular_velocity,
    consistency_cv,
    extract_kinematics,
    x_factor_series,
)

from conftest import FPS, make_kinematics

WINDOW = {"stride_frame": 40, "contact_frame": 160}


class TestAngularVelocity:

    def test_backward_difference(self):
        v = angular_velocity([0.0, 1.0, 3.0, 2.0], fps=10.0)
        np.testing.assert_allclose(v, [0.0, 10.0, 20.0, -10.0])

    def test_first_sample_zero(self):
        assert angular_velocity([5.0, 6.0], fps=100.0)[0] == 0.0

    def test_spikes_zeroed(self):
        v = angular_velocity([0.0, 1.0, 50.0, 51.0], fps=100.0, max_velocity=3000.0)
        np.testing.assert_allclose(v, [0.0, 100.0, 0.0, 100.0])

    def test_single_sample(self):
        np.testing.assert_array_equal(angular_velocity([3.0], fps=240.0), [0.0])

    def test_recovers_integrated_profile(self):
        df = make_kinematics()
        v = angular_velocity(df["pelvis_rot"].to_numpy(), FPS)
        assert v[140] == pytest.approx(650.0)


class TestXFactor:

    def test_absolute_separation(self):
        np.testing.assert_allclose(x_factor_series([10.0, 5.0, 30.0], [0.0, 20.0, 30.0]), [10.0, 15.0, 0.0])

    def test_mismatched_lengths_truncated(self):
        assert x_factor_series([1.0, 2.0, 3.0], [0.0, 0.0]).size == 2


class TestConsistencyCv:

    def test_population_cv(self):
        series = np.array([0.0, 20.0, 40.0])
        w = {"stride_frame": 0, "contact_frame": 2}
        assert consistency_cv([series], w) == pytest.approx(100.0 / 3.0)

    def test_low_velocity_samples_excluded(self):
        series = np.array([5.0, -20.0, 40.0, 9.0])
        w = {"stride_frame": 0, "contact_frame": 3}
        assert consistency_cv([series], w) == pytest.approx(100.0 / 3.0)

    def test_mean_over_series(self):
        a = np.array([20.0, 40.0])
        b = np.array([30.0, 30.0])
        w = {"stride_frame": 0, "contact_frame": 1}
        assert consistency_cv([a, b], w) == pytest.approx((100.0 / 3.0 + 0.0) / 2)

    def test_series_with_one_sample_ignored(self):
        a = np.array([20.0, 40.0])
        b = np.array([0.0, 30.0])
        w = {"stride_frame": 0, "contact_frame": 1}
        assert consistency_cv([a, b, None], w) == pytest.approx(100.0 / 3.0)

    def test_unavailable(self):
        w = {"stride_frame": 0, "contact_frame": 2}
        assert consistency_cv([np.zeros(3), None], w) is None


class TestExtractKinematics:

    def test_peaks_in_window(self, kinematics, config):
        m = extract_kinematics(kinematics, WINDOW, FPS, config)
        assert m["pelvis_velocity"] == pytest.approx(650.0)
        assert m["torso_velocity"] == pytest.approx(900.0)
        assert m["x_factor"] > 0
        assert m["stretch_rate"] > 0
        assert m["consistency_cv"] is not None
        assert m["has_pelvis"] and m["has_torso"]

    def test_peak_outside_window_excluded(self, config):
        kin = make_kinematics(pelvis_frame=190)
        m = extract_kinematics(kin, WINDOW, FPS, config)
        assert m["pelvis_velocity"] < 650.0

    def test_radians_input_converted(self, config):
        deg = extract_kinematics(make_kinematics(), WINDOW, FPS, config)
        rad = extract_kinematics(make_kinematics(radians=True), WINDOW, FPS, config)
        assert rad["pelvis_velocity"] == pytest.approx(deg["pelvis_velocity"])
        assert rad["x_factor"] == pytest.approx(deg["x_factor"])

    def test_missing_torso(self, config):
        kin = make_kinematics().drop(columns=["torso_rot"])
        m = extract_kinematics(kin, WINDOW, FPS, config)
        assert m["torso_velocity"] == 0.0
        assert m["x_factor"] == 0.0
        assert m["stretch_rate"] == 0.0
        assert not m["has_torso"]

    def test_empty_table(self, config):
        m = extract_kinematics(pd.DataFrame(), WINDOW, FPS, config)
        assert m["pelvis_velocity"] == 0.0
        assert m["consistency_cv"] is None

    def test_implausible_velocity_zeroed(self, config):
        kin = make_kinematics(pelvis_peak=4000.0)
        m = extract_kinematics(kin, WINDOW, FPS, config)
        assert m["pelvis_velocity"] <= 3000.0
