"""
Closed-form IK for the planar three-joint arm, with elbow-up / elbow-down
configurations.

The solver writes the solved angles into the joints without clamping them
to their limits, so the caller decides about limit violations.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from link_position_interface.core.contracts import SE3
from .model import PlanarArmBody, PlanarJoint, PlanarLink, wrap_angle, yaw_of

ELBOW_UP = 1
ELBOW_DOWN = 2

CONFIGURATION_STATE_NAMES = {
    ELBOW_UP: ["Up"],
    ELBOW_DOWN: ["Down"],
}


class PlanarArmConfigurationHandler:
    """
    Configuration types of the planar arm.

    The preferred configuration is a single field shared with the solver;
    it is cleared with reset_preferred_configuration_type().
    """

    def __init__(self, elbow: PlanarJoint):
        self.elbow = elbow
        self.preferred_type: Optional[int] = None

    def num_configuration_types(self) -> int:
        return len(CONFIGURATION_STATE_NAMES)

    def configuration_type_id(self, index: int) -> int:
        return list(CONFIGURATION_STATE_NAMES)[index]

    def configuration_target_names(self) -> List[str]:
        return ["Elbow"]

    def configuration_state_names(self, type_id: int) -> List[str]:
        return list(CONFIGURATION_STATE_NAMES.get(type_id, []))

    def set_preferred_configuration_type(self, type_id: int) -> None:
        self.preferred_type = type_id

    def reset_preferred_configuration_type(self) -> None:
        self.preferred_type = None

    def current_configuration_types(self) -> List[int]:
        return [ELBOW_UP if self.elbow.q <= 0.0 else ELBOW_DOWN]


class PlanarArmIK:
    """
    Joint path from the root link to the end link of a planar 3R arm.

    The end link pose is reachable when it lies in the root's x-y plane,
    its rotation is a pure yaw in the root frame, and the wrist point is
    within the reach of the first two links.

    Example:
        ik = PlanarArmIK(body, body.link("HAND"))
        ik.configuration.set_preferred_configuration_type(ELBOW_DOWN)
        solved = ik.calc_inverse_kinematics(T)
    """

    def __init__(self, body: PlanarArmBody, end_link: PlanarLink, name: str = "ARM",
                 tolerance: float = 1e-6):
        self.body = body
        self.name = name
        self.tolerance = tolerance
        self._end_link = end_link

        chain: List[PlanarLink] = []
        link = end_link
        while link is not None:
            chain.append(link)
            link = link.parent
        chain.reverse()
        self._links = chain
        self._joints = [link.joint for link in chain if link.joint is not None]
        if len(self._joints) != 3:
            raise ValueError("The planar arm IK needs exactly three joints")

        joint_links = [link for link in chain if link.joint is not None]
        self.l1 = float(np.linalg.norm(joint_links[1].offset.p[:2]))
        self.l2 = float(np.linalg.norm(joint_links[2].offset.p[:2]))
        self.l3 = float(sum(np.linalg.norm(link.offset.p[:2])
                            for link in chain[chain.index(joint_links[2]) + 1:]))

        self.configuration = PlanarArmConfigurationHandler(self._joints[1])

    @property
    def joints(self) -> Sequence[PlanarJoint]:
        return tuple(self._joints)

    @property
    def end_link(self) -> PlanarLink:
        return self._end_link

    def _solutions(self, T_local: SE3) -> List[Tuple[int, np.ndarray]]:
        if abs(T_local.p[2]) > self.tolerance:
            return []
        R = T_local.rotation
        if abs(R[2, 2] - 1.0) > self.tolerance:
            return []
        phi = yaw_of(R)
        wx = T_local.p[0] - self.l3 * np.cos(phi)
        wy = T_local.p[1] - self.l3 * np.sin(phi)
        c2 = (wx * wx + wy * wy - self.l1 ** 2 - self.l2 ** 2) / (2.0 * self.l1 * self.l2)
        if abs(c2) > 1.0 + self.tolerance:
            return []
        c2 = float(np.clip(c2, -1.0, 1.0))

        solutions = []
        for type_id, q2 in ((ELBOW_UP, -np.arccos(c2)), (ELBOW_DOWN, np.arccos(c2))):
            q1 = np.arctan2(wy, wx) - np.arctan2(self.l2 * np.sin(q2), self.l1 + self.l2 * np.cos(q2))
            q1 = wrap_angle(q1)
            q3 = wrap_angle(phi - q1 - q2)
            solutions.append((type_id, np.array([q1, q2, q3])))
        return solutions

    def calc_inverse_kinematics(self, T: SE3) -> bool:
        T_local = self.body.root_link.T.inverse() @ T
        solutions = self._solutions(T_local)
        if not solutions:
            return False

        preferred = self.configuration.preferred_type
        if preferred is not None:
            solutions = [s for s in solutions if s[0] == preferred]
            if not solutions:
                return False
            q = solutions[0][1]
        else:
            q0 = np.array([joint.q for joint in self._joints])
            q = min((s[1] for s in solutions),
                    key=lambda q: np.linalg.norm([wrap_angle(a) for a in q - q0]))

        for joint, value in zip(self._joints, q):
            joint.q = float(value)
        self.body.calc_forward_kinematics()
        return True

    def calc_remaining_part_forward_kinematics(self) -> None:
        self.body.calc_forward_kinematics()


class RootLinkIK:
    """Moves the whole body by placing its root link."""

    def __init__(self, body: PlanarArmBody):
        self.body = body

    def calc_inverse_kinematics(self, T: SE3) -> bool:
        self.body.root_link.set_T(T)
        self.body.calc_forward_kinematics()
        return True

    def calc_remaining_part_forward_kinematics(self) -> None:
        self.body.calc_forward_kinematics()
