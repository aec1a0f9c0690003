from __future__ import annotations

import numpy as np
import pytest  # type: ignore[import]

from link_position_interface.core.body_state import BodyStateSnapshot
from link_position_interface.core.config import default_config
from link_position_interface.core.configuration_resolver import (
    ConfigurationResolver,
    ConfigurationState,
    SolverLease,
)
from link_position_interface.core.contracts import SE3, SOLVED, SortOrder
from link_position_interface.core.transform_resolver import TransformResolver
from link_position_interface.plugins.robots.planar_arm import ELBOW_DOWN, ELBOW_UP


class NoTargetOwner:
    kinematics_kit = None
    target_body_item = None

    def find_body_ik_solution(self, T_input, is_raw_T):
        return False


def open_resolver(item):
    resolver = TransformResolver(default_config())
    resolver.set_target_body_and_link(item, item.body().link("HAND"))
    return resolver, resolver.open_configuration_resolver()


@pytest.fixture
def configuration(resolver):
    configuration = resolver.open_configuration_resolver()
    assert configuration is not None
    return configuration


def test_table_is_built_from_handler(configuration):
    assert configuration.state == ConfigurationState.TRIALED
    assert configuration.title == "ARM configuration"
    assert configuration.header_labels == ["No", "Elbow"]
    rows = configuration.ordered_candidates()
    assert [(row.number, row.type_id, row.state_labels) for row in rows] == [
        (1, ELBOW_UP, ["Up"]),
        (2, ELBOW_DOWN, ["Down"]),
    ]
    assert all(row.feasible for row in rows)


def test_trials_are_repeatable_and_non_destructive(configuration, arm_item, hand):
    body = arm_item.body()
    before = BodyStateSnapshot.store(body, hand)

    assert configuration.update_configuration_states()
    first = [row.feasible for row in configuration.candidates]
    after_first = BodyStateSnapshot.store(body, hand)
    assert configuration.update_configuration_states()
    second = [row.feasible for row in configuration.candidates]

    assert first == second
    assert after_first.is_close(before, atol=1e-12)
    assert BodyStateSnapshot.store(body, hand).is_close(before, atol=1e-12)
    assert arm_item.arm_ik.configuration.preferred_type is None


def test_limit_violation_is_infeasible(limited_arm_item):
    resolver, configuration = open_resolver(limited_arm_item)

    assert configuration.find_candidate(ELBOW_UP).feasible
    assert not configuration.find_candidate(ELBOW_DOWN).feasible

    configuration.set_feasible_only(True)
    visible = configuration.visible_candidates()
    assert [row.type_id for row in visible] == [ELBOW_UP]
    assert visible[0].state_labels == ["Up"]

    configuration.set_feasible_only(False)
    assert len(configuration.visible_candidates()) == 2
    resolver.release()


def test_table_follows_solved_input(limited_arm_item):
    resolver, configuration = open_resolver(limited_arm_item)
    hand = limited_arm_item.body().link("HAND")
    T0 = configuration.T0
    updates = []
    configuration.sig_updated.connect(lambda: updates.append(True))

    T = resolver.display_position
    goal = SE3(p=T.p + np.array([0.02, 0.0, 0.0]), q=T.q)
    assert resolver.apply_position_input(goal)

    assert updates
    assert not configuration.T0.is_close(T0, atol=1e-6)
    assert configuration.T0.is_close(hand.T, atol=1e-12)
    assert configuration.state == ConfigurationState.TRIALED
    assert [row.feasible for row in configuration.candidates] == [True, False]
    assert [row.type_id for row in configuration.visible_candidates()] == [ELBOW_UP, ELBOW_DOWN]
    resolver.release()


def test_apply_does_not_retrial_while_solving(configuration, arm_item):
    updates = []
    configuration.sig_updated.connect(lambda: updates.append(True))

    assert configuration.apply_configuration(ELBOW_DOWN)

    assert updates == []
    assert not configuration.is_solver_in_use()


def test_sort_toggling(configuration):
    assert configuration.sort_by_column(1) == SortOrder.ASCENDING
    assert [row.state_labels[0] for row in configuration.ordered_candidates()] == ["Down", "Up"]

    assert configuration.sort_by_column(1) == SortOrder.DESCENDING
    assert [row.state_labels[0] for row in configuration.ordered_candidates()] == ["Up", "Down"]

    assert configuration.sort_by_column(0) == SortOrder.ASCENDING
    assert [row.number for row in configuration.ordered_candidates()] == [1, 2]
    assert configuration.sort_by_column(1) == SortOrder.ASCENDING

    assert configuration.sort_by_column(5) is None


def test_sort_keeps_feasible_filter(limited_arm_item):
    resolver, configuration = open_resolver(limited_arm_item)
    configuration.set_feasible_only(True)

    configuration.sort_by_column(0)
    configuration.sort_by_column(0)

    assert [row.type_id for row in configuration.ordered_candidates()] == [ELBOW_DOWN, ELBOW_UP]
    assert [row.type_id for row in configuration.visible_candidates()] == [ELBOW_UP]
    resolver.release()


def test_apply_configuration_switches_branch(resolver, configuration, arm_item, hand):
    T = hand.T

    assert configuration.apply_configuration(ELBOW_DOWN)

    q = arm_item.body().joint_positions()
    assert q[1] == pytest.approx(0.8)
    assert hand.T.is_close(T, atol=1e-9)
    assert resolver.result == SOLVED
    assert resolver.configuration_label == "Down"
    assert arm_item.arm_ik.configuration.preferred_type is None


def test_apply_unknown_configuration(configuration):
    assert not configuration.apply_configuration(99)


def test_cancel_restores_session_state(configuration, arm_item, hand):
    q0 = arm_item.body().joint_positions()
    changes = []
    arm_item.sig_kinematic_state_changed.connect(lambda: changes.append(True))

    configuration.apply_configuration(ELBOW_DOWN)
    configuration.update_configuration_states()
    assert configuration.cancel()

    assert np.allclose(arm_item.body().joint_positions(), q0)
    assert changes
    assert configuration.state == ConfigurationState.TRIALED


def test_signal_fires_on_table_changes(configuration):
    updates = []
    configuration.sig_updated.connect(lambda: updates.append(True))

    configuration.update_configuration_states()
    configuration.sort_by_column(0)
    configuration.set_feasible_only(True)

    assert len(updates) == 3


def test_empty_resolver_refuses_every_operation():
    configuration = ConfigurationResolver(NoTargetOwner())

    assert not configuration.update_configuration_types()
    assert configuration.state == ConfigurationState.EMPTY
    assert not configuration.update_configuration_states()
    assert configuration.sort_by_column(0) is None
    assert not configuration.apply_configuration(ELBOW_UP)
    assert not configuration.cancel()


def test_custom_ik_disabled_leaves_resolver_empty(resolver, configuration):
    resolver.kinematics_kit.set_custom_ik_disabled(True)

    assert not configuration.update_configuration_types()
    assert configuration.state == ConfigurationState.EMPTY
    assert configuration.candidates == []


def test_reset(configuration):
    configuration.reset()
    assert configuration.state == ConfigurationState.EMPTY
    assert configuration.header_labels == []


def test_nested_trial_is_refused(resolver, configuration, arm_item, monkeypatch):
    ik = arm_item.arm_ik
    solve = ik.calc_inverse_kinematics
    nested = []

    def solve_and_interfere(T):
        solved = solve(T)
        nested.append((
            configuration.is_trial_running(),
            configuration.update_configuration_states(),
            configuration.apply_configuration(ELBOW_UP),
            resolver.update_display_with_current_link_position(),
        ))
        return solved

    monkeypatch.setattr(ik, "calc_inverse_kinematics", solve_and_interfere)
    flags_before = [row.feasible for row in configuration.candidates]

    assert configuration.update_configuration_states()

    assert nested == [(True, False, False, None)] * 2
    assert [row.feasible for row in configuration.candidates] == flags_before
    assert not configuration.is_trial_running()


def test_solver_lease():
    class Handler:
        preferred = None

        def set_preferred_configuration_type(self, type_id):
            self.preferred = type_id

        def reset_preferred_configuration_type(self):
            self.preferred = None

    handler = Handler()
    lease = SolverLease()

    with pytest.raises(RuntimeError):
        lease.prefer(1)

    assert lease.acquire(handler)
    assert not lease.acquire(handler)
    lease.prefer(2)
    assert handler.preferred == 2

    lease.release()
    assert handler.preferred is None
    assert not lease.held
    assert lease.acquire(handler)
    lease.release()
