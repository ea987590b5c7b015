"""Tests for kinetic-energy and momentum extraction."""

import numpy as np
import pandas as pd
import pytest

from fourb.energy import extract_energetics, safe_ratio

from conftest import make_energy

WINDOW = {"stride_frame": 40, "contact_frame": 160}


class TestSafeRatio:

    def test_regular(self):
        assert safe_ratio(3.0, 4.0) == pytest.approx(0.75)

    @pytest.mark.parametrize("den", [0.0, 0.01, -0.005, None])
    def test_near_zero_denominator(self, den):
        assert safe_ratio(5.0, den) == 0.0

    def test_custom_epsilon(self):
        assert safe_ratio(1.0, 0.5, min_denominator=1.0) == 0.0


class TestExtractEnergetics:

    def test_peaks_and_transfer(self, energy, config):
        m = extract_energetics(energy, WINDOW, config)
        assert m["bat_ke"] == pytest.approx(400.0)
        assert m["total_ke"] == pytest.approx(1000.0)
        assert m["legs_ke"] == pytest.approx(300.0)
        assert m["torso_ke"] == pytest.approx(350.0)
        assert m["arms_ke"] == pytest.approx(250.0)
        assert m["transfer_efficiency"] == pytest.approx(40.0)
        assert m["has_bat"] and m["has_total"] and m["has_legs"]

    def test_momentum_ratios(self, energy, config):
        m = extract_energetics(energy, WINDOW, config)
        assert m["tp_ratio"] == pytest.approx(m["torso_momentum"] / m["pelvis_momentum"])
        assert m["at_ratio"] == pytest.approx(m["arms_momentum"] / m["torso_momentum"])
        assert m["torso_momentum"] == pytest.approx(30.0, rel=1e-3)

    def test_peak_frames(self, energy, config):
        m = extract_energetics(energy, WINDOW, config)
        assert m["legs_peak_frame"] == 130
        assert m["arms_peak_frame"] == 150

    def test_legs_from_left_right_sum(self, config):
        df = make_energy().drop(columns=["legs_kinetic_energy"])
        df["lleg_kinetic_energy"] = np.full(len(df), 40.0)
        df["rleg_kinetic_energy"] = np.full(len(df), 60.0)
        m = extract_energetics(df, WINDOW, config)
        assert m["legs_ke"] == pytest.approx(100.0)
        assert m["has_legs"]

    def test_arms_from_single_side(self, config):
        df = make_energy().drop(columns=["arms_kinetic_energy"])
        df["larm_ke"] = np.full(len(df), 75.0)
        m = extract_energetics(df, WINDOW, config)
        assert m["arms_ke"] == pytest.approx(75.0)

    def test_missing_bat(self, config):
        m = extract_energetics(make_energy(with_bat=False), WINDOW, config)
        assert m["bat_ke"] == 0.0
        assert not m["has_bat"]
        assert m["transfer_efficiency"] == 0.0

    def test_tiny_bat_signal_not_counted(self, config):
        m = extract_energetics(make_energy(bat_peak=0.5), WINDOW, config)
        assert not m["has_bat"]

    def test_zero_total_guards_transfer(self, config):
        m = extract_energetics(make_energy(total_peak=0.0), WINDOW, config)
        assert m["transfer_efficiency"] == 0.0

    def test_empty_table(self, config):
        m = extract_energetics(pd.DataFrame(), WINDOW, config)
        assert m["bat_ke"] == 0.0
        assert m["legs_peak_frame"] is None
        assert not m["has_legs"]

    def test_signals_read_from_kinematics_table(self, kinematics, config):
        kin = kinematics.copy()
        kin["bat_ke"] = np.full(len(kin), 12.0)
        m = extract_energetics(pd.DataFrame(), WINDOW, config, kinematics=kin)
        assert m["bat_ke"] == pytest.approx(12.0)
