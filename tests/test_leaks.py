"""Tests for kinetic-chain leak classification."""

import pytest

from fourb.leaks import LEAK_MESSAGES, detect_leak


def _swing(bat_ke=300.0, legs=120, arms=150, torso_ke=300.0, arms_ke=250.0, transfer=45.0):
    return {
        "bat_ke": bat_ke,
        "legs_peak_frame": legs,
        "arms_peak_frame": arms,
        "torso_ke": torso_ke,
        "arms_ke": arms_ke,
        "transfer_efficiency": transfer,
    }


class TestDetectLeak:

    def test_empty_is_unknown(self):
        assert detect_leak([]) == {"type": "unknown", "caption": "", "training": ""}

    def test_clean_transfer(self):
        leak = detect_leak([_swing()] * 4)
        assert leak["type"] == "clean_transfer"
        assert leak["caption"] == LEAK_MESSAGES["clean_transfer"]["caption"]
        assert leak["training"] == "Keep doing what you're doing."

    def test_no_bat_delivery_checked_first(self):
        swings = [_swing(bat_ke=5.0, legs=160, arms=150)] * 2 + [_swing()]
        assert detect_leak(swings)["type"] == "no_bat_delivery"

    def test_half_without_bat_is_not_majority(self):
        swings = [_swing(bat_ke=5.0), _swing()]
        assert detect_leak(swings)["type"] != "no_bat_delivery"

    def test_late_legs(self):
        swings = [_swing(legs=170, arms=150)] * 3 + [_swing()]
        leak = detect_leak(swings)
        assert leak["type"] == "late_legs"
        assert leak["training"] == "Get to the ground earlier."

    def test_torso_bypass(self):
        assert detect_leak([_swing(torso_ke=400.0, arms_ke=100.0)] * 3)["type"] == "torso_bypass"

    def test_early_arms(self):
        # one in order, one late, two unknown: proper 25%, late legs 25%
        swings = [_swing(), _swing(legs=170), _swing(legs=None), _swing(arms=None)]
        assert detect_leak(swings)["type"] == "early_arms"

    def test_low_transfer_is_unknown(self):
        assert detect_leak([_swing(transfer=20.0)] * 3)["type"] == "unknown"

    def test_equal_peak_frames_count_as_proper(self):
        assert detect_leak([_swing(legs=150, arms=150)] * 2)["type"] == "clean_transfer"

    @pytest.mark.parametrize("leak_type", sorted(LEAK_MESSAGES))
    def test_messages_have_caption_and_training(self, leak_type):
        msg = LEAK_MESSAGES[leak_type]
        assert set(msg) == {"caption", "training"}
        if leak_type != "unknown":
            assert msg["caption"] and msg["training"]
