from __future__ import annotations

import numpy as np
import pytest  # type: ignore[import]

from link_position_interface.core.contracts import SE3, FrameType
from link_position_interface.core.transform_resolver import default_frame_name_providers
from link_position_interface.plugins.robots.planar_arm import (
    ELBOW_DOWN,
    ELBOW_UP,
    PlanarArmKinematicsKit,
    PoseMarker,
    create_planar_arm_item,
)
from link_position_interface.plugins.robots.planar_arm.model import rot_z


def test_forward_kinematics_at_zero():
    item = create_planar_arm_item("Arm", (0.4, 0.3, 0.1))
    hand = item.body().link("HAND")
    assert hand.T.p == pytest.approx([0.8, 0.0, 0.0])
    assert [joint.name for joint in item.body().joints] == ["SHOULDER", "ELBOW", "WRIST"]


def test_ik_reaches_current_pose_on_nearest_branch(arm_item, hand):
    ik = arm_item.arm_ik
    T = hand.T
    arm_item.body().set_joint_positions([0.25, -0.75, 0.45])

    assert ik.calc_inverse_kinematics(T)

    assert np.allclose(arm_item.body().joint_positions(), [0.3, -0.8, 0.4], atol=1e-9)
    assert hand.T.is_close(T, atol=1e-9)


def test_preferred_configuration_selects_branch(arm_item, hand):
    ik = arm_item.arm_ik
    T = hand.T

    ik.configuration.set_preferred_configuration_type(ELBOW_DOWN)
    assert ik.calc_inverse_kinematics(T)
    ik.configuration.reset_preferred_configuration_type()

    q = arm_item.body().joint_positions()
    assert q[1] == pytest.approx(0.8)
    assert hand.T.is_close(T, atol=1e-9)
    assert ik.configuration.current_configuration_types() == [ELBOW_DOWN]


def test_unreachable_or_off_plane_targets_fail(arm_item, hand):
    ik = arm_item.arm_ik
    q = arm_item.body().joint_positions()

    assert not ik.calc_inverse_kinematics(SE3.from_xyz_rpy([2.0, 0.0, 0.0], [0.0, 0.0, 0.0]))
    assert not ik.calc_inverse_kinematics(SE3.from_xyz_rpy([0.5, 0.0, 0.1], [0.0, 0.0, 0.0]))
    assert not ik.calc_inverse_kinematics(SE3.from_xyz_rpy([0.5, 0.0, 0.0], [0.3, 0.0, 0.0]))

    assert np.allclose(arm_item.body().joint_positions(), q)


def test_configuration_handler_declares_elbow_states(arm_item):
    handler = arm_item.arm_ik.configuration
    assert handler.num_configuration_types() == 2
    assert [handler.configuration_type_id(i) for i in range(2)] == [ELBOW_UP, ELBOW_DOWN]
    assert handler.configuration_target_names() == ["Elbow"]
    assert handler.configuration_state_names(ELBOW_UP) == ["Up"]
    assert handler.configuration_state_names(ELBOW_DOWN) == ["Down"]
    assert handler.current_configuration_types() == [ELBOW_UP]


def test_attitude_is_reduced_to_yaw_for_arm_links(arm_item, hand):
    R = rot_z(0.5) @ np.array([[1.0, 0.0, 0.0],
                               [0.0, np.cos(0.3), -np.sin(0.3)],
                               [0.0, np.sin(0.3), np.cos(0.3)]])

    assert np.allclose(hand.calc_R_from_attitude(R), rot_z(0.5))
    assert np.allclose(arm_item.body().root_link.calc_R_from_attitude(R), R)


def test_kits_exist_for_links_with_preset_ik(arm_item, hand):
    body = arm_item.body()

    assert arm_item.get_current_link_kinematics_kit(body.link("FOREARM")) is None

    kit = arm_item.get_current_link_kinematics_kit(hand)
    assert kit is arm_item.get_current_link_kinematics_kit(hand)
    assert kit.base_link() is body.root_link
    assert kit.joint_path() is arm_item.arm_ik
    assert kit.configuration_handler() is arm_item.arm_ik.configuration

    root_kit = arm_item.get_current_link_kinematics_kit(body.root_link)
    assert root_kit.base_link() is None
    assert root_kit.joint_path() is None
    assert root_kit.configuration_handler() is None
    assert root_kit.frame_set(FrameType.WORLD) is kit.frame_set(FrameType.WORLD)


def test_custom_ik_disabled_hides_configurations(arm_item, hand):
    kit = arm_item.get_current_link_kinematics_kit(hand)
    kit.set_custom_ik_disabled(True)
    assert kit.configuration_handler() is None
    assert kit.inverse_kinematics() is arm_item.arm_ik


def test_kit_current_frames_fall_back_to_default(arm_item, hand):
    kit = arm_item.get_current_link_kinematics_kit(hand)
    updates = []
    kit.sig_frame_update.connect(lambda: updates.append(True))

    kit.set_current_frame(FrameType.LINK, 9)
    assert kit.current_link_frame() is kit.frame_set(FrameType.LINK).frame_at(0)

    kit.set_current_base_frame_type(FrameType.BODY)
    assert kit.current_base_frame_id().to_int() == 0
    assert updates == []

    kit.notify_frame_update()
    assert updates == [True]


def test_kit_default_frame_names_are_registered(arm_item, hand):
    kit = arm_item.get_current_link_kinematics_kit(hand)
    provider = default_frame_name_providers.lookup(kit)
    assert provider(kit) == ("World Origin", "BASE Origin", "HAND Origin")

    root_kit = arm_item.get_current_link_kinematics_kit(arm_item.body().root_link)
    assert isinstance(root_kit, PlanarArmKinematicsKit)
    assert provider(root_kit) == ("World Origin", "Origin", "BASE Origin")


def test_cancelled_edit_restores_body(arm_item, hand):
    changes = []
    arm_item.sig_kinematic_state_changed.connect(lambda: changes.append(True))
    T = hand.T

    arm_item.begin_kinematic_state_edit()
    arm_item.body().set_joint_positions([1.0, 1.0, 1.0])
    arm_item.body().calc_forward_kinematics()
    arm_item.cancel_kinematic_state_edit()

    assert hand.T.is_close(T, atol=1e-12)
    assert changes == [True]
    assert not arm_item.is_doing_kinematic_state_edit()


def test_attach_to_parent_body(arm_item, hand):
    gripper = create_planar_arm_item("Gripper", (0.05, 0.05, 0.02))
    gripper.attach_to(arm_item, hand)

    assert gripper.is_attached_to_parent_body()
    assert gripper.parent_body_item() is arm_item
    assert gripper.body().parent_body_link() is hand
    assert gripper.body().root_link.T.is_close(hand.T)

    gripper.attach_to(None)
    assert not gripper.is_attached_to_parent_body()
    assert gripper.body().parent_body_link() is None


def test_pose_marker_editability():
    marker = PoseMarker("Waypoint")
    moved = []
    marker.sig_position_changed.connect(moved.append)
    T = SE3.from_xyz_rpy([0.1, 0.0, 0.0], [0.0, 0.0, 0.0])

    assert marker.set_position(T)
    marker.editable = False
    assert not marker.set_position(SE3.identity())

    assert marker.position().is_close(T)
    assert len(moved) == 1


def test_factory_validates_arguments():
    with pytest.raises(ValueError):
        create_planar_arm_item("Arm", (0.4, 0.3))
    with pytest.raises(ValueError):
        create_planar_arm_item("Arm", (0.4, 0.3, 0.1), [(-1.0, 1.0)])
