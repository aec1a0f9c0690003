from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest  # type: ignore[import]

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from link_position_interface.core.config import default_config  # noqa: E402
from link_position_interface.core.transform_resolver import TransformResolver  # noqa: E402
from link_position_interface.plugins.robots.planar_arm import create_planar_arm_item  # noqa: E402

ARM_LENGTHS = (0.4, 0.3, 0.1)
ARM_POSTURE = (0.3, -0.8, 0.4)


def make_arm(name="PlanarArm", joint_limits=None):
    item = create_planar_arm_item(name, ARM_LENGTHS, joint_limits)
    item.body().set_joint_positions(ARM_POSTURE)
    item.body().calc_forward_kinematics()
    return item


@pytest.fixture
def arm_item():
    return make_arm()


@pytest.fixture
def limited_arm_item():
    # Only the elbow-up branch of the default posture is within the elbow limits
    return make_arm(joint_limits=[(-np.pi, np.pi), (-2.5, 0.3), (-np.pi, np.pi)])


@pytest.fixture
def hand(arm_item):
    return arm_item.body().link("HAND")


@pytest.fixture
def resolver(arm_item, hand):
    resolver = TransformResolver(default_config())
    resolver.set_target_body_and_link(arm_item, hand)
    yield resolver
    resolver.release()
