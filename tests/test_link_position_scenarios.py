from __future__ import annotations

import numpy as np

from link_position_interface.core.config import load_config, project_config_path
from link_position_interface.core.contracts import (
    NOT_SOLVED, SOLVED, SE3, CoordinateMode, FrameComboType, FrameType,
)
from link_position_interface.core.coordinate_frame import CoordinateFrame
from link_position_interface.core.transform_resolver import TransformResolver
from link_position_interface.plugins.robots.planar_arm import ELBOW_DOWN, ELBOW_UP

from conftest import make_arm


def test_move_tool_then_switch_configuration():
    item = make_arm()
    body = item.body()
    resolver = TransformResolver(load_config(str(project_config_path())))
    labels = []
    resolver.sig_configuration_label_changed.connect(labels.append)

    # Picking the forearm targets the hand, shown in body coordinates
    resolver.set_target_body_and_link(item, body.link("FOREARM"))
    assert resolver.target_label == "PlanarArm / HAND"
    assert resolver.coordinate_mode == CoordinateMode.BODY

    # Tool frame on the hand, persisted and reloaded
    tool = CoordinateFrame(1)
    tool.set_note("Tool")
    tool.set_position(SE3.from_xyz_rpy([0.05, 0.0, 0.0], [0.0, 0.0, 0.0]))
    kit = resolver.kinematics_kit
    kit.frame_set(FrameType.LINK).append(tool)
    assert resolver.frame_candidates[FrameComboType.LINK].labels == ["0: HAND Origin", "1: Tool"]
    assert resolver.on_frame_candidate_selected(FrameComboType.LINK, 1)

    record = item.frame_sets.write()
    assert record["link"]["frames"][0]["note"] == "Tool"

    # Move the tool tip 2 cm along x of the body frame
    T = resolver.display_position
    goal = SE3(p=T.p + np.array([0.02, 0.0, 0.0]), q=T.q)
    assert resolver.apply_position_input(goal)
    assert resolver.result == SOLVED
    assert resolver.display_position.is_close(goal, atol=1e-9)

    # Both elbow branches reach the new pose; switch to the other one
    configuration = resolver.open_configuration_resolver()
    assert [row.feasible for row in configuration.candidates] == [True, True]
    assert resolver.current_configuration_types == [ELBOW_UP]
    assert configuration.apply_configuration(ELBOW_DOWN)
    assert resolver.display_position.is_close(goal, atol=1e-9)
    assert labels[-1] == "Down"

    # Closing the table without keeping the change
    assert configuration.cancel()
    assert resolver.configuration_label == "Up"
    assert resolver.display_position.is_close(goal, atol=1e-9)

    # Unreachable input leaves everything as it was
    q = body.joint_positions()
    assert not resolver.apply_position_input(SE3(p=[3.0, 0.0, 0.0], q=[0.0, 0.0, 0.0, 1.0]))
    assert resolver.result == NOT_SOLVED
    assert np.allclose(body.joint_positions(), q)

    resolver.release()


def test_frame_sets_reload_into_new_item():
    item = make_arm()
    frames = item.frame_sets.frame_list(FrameType.BODY)
    table = CoordinateFrame("table")
    table.set_note("Table")
    table.set_position(SE3.from_xyz_rpy([0.2, 0.0, 0.0], [0.0, 0.0, 0.3]))
    frames.append(table)

    copy = make_arm("Copy")
    assert copy.frame_sets.read(item.frame_sets.write())

    loaded = copy.frame_sets.frame_list(FrameType.BODY).find_frame("table")
    assert loaded.note == "Table"
    assert loaded.T.is_close(table.T, atol=1e-9)

    resolver = TransformResolver()
    resolver.set_target_body_and_link(copy, copy.body().link("HAND"))
    assert resolver.frame_candidates[FrameComboType.BASE].labels == ["0: BASE Origin", "table"]
