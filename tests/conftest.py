"""Shared test fixtures for the fourb test suite.

Provides synthetic capture generators with known peaks: rotation
angles are integrated from Gaussian velocity profiles, so the backward
difference recovers the velocity exactly, and energy signals are
Gaussian bumps peaking at chosen frames.
"""

import numpy as np
import pandas as pd
import pytest


FPS = 240.0
N_FRAMES = 200


def gaussian(n_frames, peak_frame, peak_value, sigma=12.0):
    """Gaussian bump of height *peak_value* centred on *peak_frame*."""
    i = np.arange(n_frames, dtype=float)
    return peak_value * np.exp(-0.5 * ((i - peak_frame) / sigma) ** 2)


def make_kinematics(
    n_frames=N_FRAMES,
    fps=FPS,
    pelvis_peak=650.0,
    pelvis_frame=140,
    torso_peak=900.0,
    torso_frame=150,
    radians=False,
    extra_columns=None,
):
    """Inverse-kinematics table with known peak angular velocities."""
    pelvis_vel = gaussian(n_frames, pelvis_frame, pelvis_peak)
    torso_vel = gaussian(n_frames, torso_frame, torso_peak)
    pelvis = np.cumsum(pelvis_vel) / fps
    torso = np.cumsum(torso_vel) / fps
    if radians:
        pelvis = np.radians(pelvis)
        torso = np.radians(torso)
    df = pd.DataFrame({
        "time": np.arange(n_frames) / fps,
        "pelvis_rot": pelvis,
        "torso_rot": torso,
    })
    for name, values in (extra_columns or {}).items():
        df[name] = values
    return df


def make_energy(
    n_frames=N_FRAMES,
    fps=FPS,
    bat_peak=400.0,
    bat_frame=160,
    total_peak=1000.0,
    total_frame=155,
    legs_peak=300.0,
    legs_frame=130,
    torso_peak=350.0,
    torso_frame=145,
    arms_peak=250.0,
    arms_frame=150,
    with_bat=True,
    with_total=True,
):
    """Momentum/energy table with Gaussian KE bumps at chosen frames."""
    df = pd.DataFrame({"time": np.arange(n_frames) / fps})
    if with_bat:
        df["bat_kinetic_energy"] = gaussian(n_frames, bat_frame, bat_peak, sigma=10.0)
    if with_total:
        df["total_kinetic_energy"] = gaussian(n_frames, total_frame, total_peak, sigma=15.0)
    df["legs_kinetic_energy"] = gaussian(n_frames, legs_frame, legs_peak)
    df["torso_kinetic_energy"] = gaussian(n_frames, torso_frame, torso_peak)
    df["arms_kinetic_energy"] = gaussian(n_frames, arms_frame, arms_peak)
    df["lowertorso_angular_momentum_z"] = gaussian(n_frames, 140, 20.0)
    df["torso_angular_momentum_z"] = gaussian(n_frames, 148, 30.0)
    df["arms_angular_momentum_z"] = gaussian(n_frames, 152, 15.0)
    return df


def to_csv_text(df):
    """Render a DataFrame as CSV text."""
    return df.to_csv(index=False)


def make_multi_swing(tables, ids, id_column="org_movement_id"):
    """Concatenate per-swing tables with a movement-id column."""
    parts = []
    for movement_id, df in zip(ids, tables):
        part = df.copy()
        part.insert(0, id_column, movement_id)
        parts.append(part)
    return pd.concat(parts, ignore_index=True)


def make_record(body=50, bat=50, brain=50, ball=50, cv=12.0, **overrides):
    """Hand-made swing record with every numeric field set.

    The composite and labels are derived from the category scores, as
    in a scored swing; pass them in *overrides* to make them stale.
    """
    from fourb.constants import METRIC_FIELDS
    from fourb.scoring import composite_score, consistency_grade_for, grade_for, weakest_link

    composite = composite_score(body, bat, brain, ball)

    record = {
        "movement_id": "m",
        "fps": FPS,
        "frame_count": N_FRAMES,
        "window": {"stride_frame": 40, "contact_frame": 160, "confidence": "high", "method": "bat_ke_peak"},
        "brain_score": brain,
        "body_score": body,
        "bat_score": bat,
        "ball_score": ball,
        "composite_score": composite,
        "ground_flow_score": body,
        "core_flow_score": body,
        "upper_flow_score": bat,
        "grade": grade_for(composite),
        "weakest_link": weakest_link({"brain_score": brain, "body_score": body,
                                      "bat_score": bat, "ball_score": ball}),
        "consistency_grade": consistency_grade_for(cv),
        "has_bat": True,
        "legs_peak_frame": 130,
        "arms_peak_frame": 150,
        "warnings": [],
    }
    for field in METRIC_FIELDS:
        record[field] = 0.0
    record["consistency_cv"] = cv
    record.update(overrides)
    return record


@pytest.fixture
def kinematics():
    return make_kinematics()


@pytest.fixture
def energy():
    return make_energy()


@pytest.fixture
def config():
    from fourb.config import build_threshold_config
    return build_threshold_config()
