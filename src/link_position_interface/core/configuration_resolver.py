"""
Joint-space configuration (IK branch) resolver.

Enumerates the configuration types declared by the kinematics kit's
configuration handler, checks which of them reach the current end link
pose within the joint limits, and applies a selected one as a one-shot
bias for a single solve.

The solver's preferred configuration is a single shared field. It is only
touched through a SolverLease: acquire, set, solve, read, release. The
lease is not re-entrant: a nested request made while a trial or an apply
is in flight (for example from a display refresh triggered by a state
change notification) is refused instead of interleaving another solve.
"""

import logging
import threading
from enum import Enum, auto
from typing import List, Optional

from .body_state import BodyStateSnapshot
from .contracts import SE3, ConfigurationCandidate, SortOrder
from .ports import Body, ConfigurationHandler, ConfigurationOwner, JointPath
from .signals import Signal

logger = logging.getLogger(__name__)


class ConfigurationState(Enum):
    EMPTY = auto()
    POPULATED = auto()
    TRIALED = auto()


class SolverLease:
    """
    Exclusive use of a configuration handler's preferred configuration.

    Example:
        lease = SolverLease()
        if lease.acquire(handler):
            try:
                lease.prefer(type_id)
                solved = joint_path.calc_inverse_kinematics(T)
            finally:
                lease.release()   # resets the preferred configuration
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._handler: Optional[ConfigurationHandler] = None

    @property
    def held(self) -> bool:
        return self._handler is not None

    def acquire(self, handler: ConfigurationHandler) -> bool:
        if not self._lock.acquire(blocking=False):
            return False
        self._handler = handler
        return True

    def prefer(self, type_id: int) -> None:
        if self._handler is None:
            raise RuntimeError("The solver lease is not held")
        self._handler.set_preferred_configuration_type(type_id)

    def release(self) -> None:
        handler = self._handler
        self._handler = None
        try:
            if handler is not None:
                handler.reset_preferred_configuration_type()
        finally:
            self._lock.release()


class ConfigurationResolver:
    """
    Feasibility table of the IK configurations of the owner's current target.

    States:
    - EMPTY: nothing bound, every operation fails
    - POPULATED: candidates built from the configuration handler
    - TRIALED: feasibility computed for the current reference pose

    Example:
        resolver = ConfigurationResolver(transform_resolver)
        if resolver.update_configuration_types():
            resolver.set_feasible_only(True)
            for row in resolver.visible_candidates():
                print(row.number, row.state_labels)
            resolver.apply_configuration(row.type_id)
    """

    def __init__(self, owner: ConfigurationOwner):
        """
        Args:
            owner: Resolver providing the kinematics kit and performing real
                edits (usually the TransformResolver)
        """
        self.owner = owner
        self.sig_updated = Signal()

        self._lease = SolverLease()
        self._trial_running = False
        self.feasible_only = False
        self._reset_state()

    def _reset_state(self) -> None:
        self.state = ConfigurationState.EMPTY
        self.body: Optional[Body] = None
        self.joint_path: Optional[JointPath] = None
        self.configuration: Optional[ConfigurationHandler] = None
        self.T0: Optional[SE3] = None
        self.body_state0: Optional[BodyStateSnapshot] = None
        self.session_state0: Optional[BodyStateSnapshot] = None
        self.title = ""
        self.header_labels: List[str] = []
        self.candidates: List[ConfigurationCandidate] = []
        self._order: List[int] = []
        self.last_sorted_section = -1
        self.last_sort_order = SortOrder.ASCENDING

    def reset(self) -> None:
        self._reset_state()
        self.sig_updated.emit()

    def is_trial_running(self) -> bool:
        return self._trial_running

    def is_solver_in_use(self) -> bool:
        """True during a trial or an apply."""
        return self._trial_running or self._lease.held

    def update_configuration_types(self) -> bool:
        """
        Bind the owner's kinematics kit and build the candidate table.

        Returns:
            False if there is no kit, custom IK is disabled, or the kit has
            no joint path or no configuration handler. The caller should then
            disable its configuration interface.
        """
        if self._trial_running:
            logger.warning("Configuration types cannot be updated during a trial")
            return False

        self._reset_state()

        kit = self.owner.kinematics_kit
        if kit is None or kit.is_custom_ik_disabled():
            self.sig_updated.emit()
            return False

        body = kit.body()
        joint_path = kit.joint_path()
        configuration = kit.configuration_handler()
        if joint_path is None or configuration is None:
            self.sig_updated.emit()
            return False

        self.body = body
        self.joint_path = joint_path
        self.configuration = configuration

        end_link = joint_path.end_link
        self.T0 = end_link.T
        self.body_state0 = BodyStateSnapshot.store(body, end_link)
        self.session_state0 = self.body_state0

        name = joint_path.name
        self.title = f"{name} configuration" if name else "Joint-space configuration"

        self.header_labels = ["No"] + list(configuration.configuration_target_names())
        for i in range(configuration.num_configuration_types()):
            type_id = configuration.configuration_type_id(i)
            labels = list(configuration.configuration_state_names(type_id))
            self.candidates.append(
                ConfigurationCandidate(number=i + 1, type_id=type_id, state_labels=labels))
        self._order = list(range(len(self.candidates)))
        self.state = ConfigurationState.POPULATED

        self.update_configuration_states()
        return True

    def update_configuration_states(self) -> bool:
        """
        Trial every configuration type against the current end link pose.

        The body state and the preferred configuration are restored when
        the loop ends, whatever the outcome.
        """
        if self.state == ConfigurationState.EMPTY:
            return False
        if not self.candidates:
            return False

        if not self._lease.acquire(self.configuration):
            logger.warning("Configuration trial refused: the solver is in use")
            return False

        end_link = self.joint_path.end_link
        self.T0 = end_link.T
        self.body_state0 = BodyStateSnapshot.store(self.body, end_link)

        self._trial_running = True
        try:
            for candidate in self.candidates:
                self._lease.prefer(candidate.type_id)
                solved = self.joint_path.calc_inverse_kinematics(self.T0)
                if solved:
                    solved = self._joints_within_limits()
                candidate.feasible = solved
                logger.debug("Configuration %d (%s): %s", candidate.type_id,
                             "/".join(candidate.state_labels),
                             "feasible" if solved else "infeasible")
        finally:
            self._lease.release()
            self.body_state0.restore(self.body, end_link)
            self._trial_running = False

        self.state = ConfigurationState.TRIALED
        self.sig_updated.emit()
        return True

    def _joints_within_limits(self) -> bool:
        for joint in self.joint_path.joints:
            if joint.q > joint.q_upper or joint.q < joint.q_lower:
                return False
        return True

    def sort_by_column(self, index: int) -> Optional[SortOrder]:
        """
        Sort the rows by a column, toggling the order on repeated clicks.

        Column 0 is the row number, column j > 0 the (j-1)th state label.

        Returns:
            The applied order, or None if nothing is bound or the column
            does not exist.
        """
        if self.state == ConfigurationState.EMPTY:
            return None
        if index < 0 or index >= len(self.header_labels):
            return None

        if index != self.last_sorted_section:
            order = SortOrder.ASCENDING
        elif self.last_sort_order != SortOrder.ASCENDING:
            order = SortOrder.ASCENDING
        else:
            order = SortOrder.DESCENDING

        def key(i: int):
            candidate = self.candidates[i]
            if index == 0:
                return candidate.number
            labels = candidate.state_labels
            return labels[index - 1] if index - 1 < len(labels) else ""

        self._order = sorted(self._order, key=key, reverse=(order == SortOrder.DESCENDING))
        self.last_sorted_section = index
        self.last_sort_order = order
        self.sig_updated.emit()
        return order

    def set_feasible_only(self, on: bool) -> None:
        self.feasible_only = on
        self.sig_updated.emit()

    def ordered_candidates(self) -> List[ConfigurationCandidate]:
        return [self.candidates[i] for i in self._order]

    def visible_candidates(self) -> List[ConfigurationCandidate]:
        return [c for c in self.ordered_candidates() if c.feasible or not self.feasible_only]

    def find_candidate(self, type_id: int) -> Optional[ConfigurationCandidate]:
        for candidate in self.candidates:
            if candidate.type_id == type_id:
                return candidate
        return None

    def apply_configuration(self, type_id: int) -> bool:
        """
        Solve the live pose of the target link with the given configuration
        preferred, as a real edit. The preference only holds for this solve.
        """
        if self.state == ConfigurationState.EMPTY:
            return False
        if self.find_candidate(type_id) is None:
            logger.debug("Unknown configuration type %d", type_id)
            return False
        kit = self.owner.kinematics_kit
        if kit is None:
            return False

        if not self._lease.acquire(self.configuration):
            logger.warning("Configuration %d not applied: the solver is in use", type_id)
            return False
        try:
            self._lease.prefer(type_id)
            solved = self.owner.find_body_ik_solution(kit.link().T, True)
        finally:
            self._lease.release()
        return solved

    def cancel(self) -> bool:
        """Restore the body state captured when the session started."""
        if self.body is None or self.session_state0 is None:
            return False
        self.session_state0.restore(self.body, self.joint_path.end_link)
        body_item = self.owner.target_body_item
        if body_item is not None:
            body_item.notify_kinematic_state_change()
        return True
