"""
Planar arm model: links, joints and forward kinematics.

The arm moves in the x-y plane of its root link. Every joint is revolute
about the local z axis.
"""

from typing import List, Optional, Sequence

import numpy as np

from link_position_interface.core.contracts import SE3


def rot_z(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def yaw_of(R: np.ndarray) -> float:
    return float(np.arctan2(R[1, 0], R[0, 0]))


def wrap_angle(angle: float) -> float:
    return float((angle + np.pi) % (2.0 * np.pi) - np.pi)


class PlanarJoint:
    """Revolute joint about z with position limits [q_lower, q_upper] (rad)."""

    def __init__(self, name: str, q_lower: float = -np.pi, q_upper: float = np.pi):
        self.name = name
        self.q = 0.0
        self.q_lower = q_lower
        self.q_upper = q_upper

    def __repr__(self) -> str:
        return f"PlanarJoint({self.name!r}, q={self.q:.4f})"


class PlanarLink:
    """
    Link of a planar arm.

    Args:
        name: Link name
        offset: Fixed transform from the parent link to this link's joint frame
        joint: Joint driving the link, None for a fixed link
        Rs: Attitude offset. The link's attitude is T.rotation @ Rs.
    """

    def __init__(self, name: str, offset: Optional[SE3] = None,
                 joint: Optional[PlanarJoint] = None, Rs: Optional[np.ndarray] = None):
        self.name = name
        self.offset = offset if offset is not None else SE3.identity()
        self.joint = joint
        self.Rs = np.eye(3) if Rs is None else np.asarray(Rs, dtype=float)
        self.parent: Optional["PlanarLink"] = None
        self._children: List["PlanarLink"] = []
        self._T = SE3.identity()
        self._body: Optional["PlanarArmBody"] = None

    @property
    def children(self) -> Sequence["PlanarLink"]:
        return tuple(self._children)

    def add_child(self, link: "PlanarLink") -> "PlanarLink":
        link.parent = self
        self._children.append(link)
        return link

    @property
    def T(self) -> SE3:
        return self._T

    def set_T(self, T: SE3) -> None:
        self._T = T

    @property
    def Ta(self) -> SE3:
        return SE3.from_rotation(self._T.rotation @ self.Rs, self._T.p)

    def is_body_root(self) -> bool:
        return self.parent is None

    def calc_R_from_attitude(self, R: np.ndarray) -> np.ndarray:
        """
        Link rotation for an attitude. Links other than the root can only
        turn about the root's z axis, so the attitude is reduced to its yaw
        in the root frame.
        """
        R_link = np.asarray(R, dtype=float) @ self.Rs.T
        if self.is_body_root() or self._body is None:
            return R_link
        R_root = self._body.root_link.T.rotation
        yaw = yaw_of(R_root.T @ R_link)
        return R_root @ rot_z(yaw)

    def __repr__(self) -> str:
        return f"PlanarLink({self.name!r})"


class PlanarArmBody:
    """Tree of PlanarLink objects, root first."""

    def __init__(self, name: str, root_link: PlanarLink):
        self.name = name
        self._root_link = root_link
        self._links: List[PlanarLink] = []
        self._joints: List[PlanarJoint] = []
        self._parent_body_link: Optional[PlanarLink] = None
        self.update_link_tree()

    def update_link_tree(self) -> None:
        self._links = []
        self._joints = []
        stack = [self._root_link]
        while stack:
            link = stack.pop()
            link._body = self
            self._links.append(link)
            if link.joint is not None:
                self._joints.append(link.joint)
            stack.extend(reversed(link.children))
        self.calc_forward_kinematics()

    @property
    def root_link(self) -> PlanarLink:
        return self._root_link

    @property
    def links(self) -> Sequence[PlanarLink]:
        return tuple(self._links)

    @property
    def joints(self) -> Sequence[PlanarJoint]:
        return tuple(self._joints)

    def link(self, name: str) -> Optional[PlanarLink]:
        for link in self._links:
            if link.name == name:
                return link
        return None

    def joint_positions(self) -> np.ndarray:
        return np.array([joint.q for joint in self._joints])

    def set_joint_positions(self, q: Sequence[float]) -> None:
        for joint, value in zip(self._joints, q):
            joint.q = float(value)

    def parent_body_link(self) -> Optional[PlanarLink]:
        return self._parent_body_link

    def set_parent_body_link(self, link: Optional[PlanarLink]) -> None:
        self._parent_body_link = link

    def calc_forward_kinematics(self) -> None:
        for link in self._links:
            if link.parent is None:
                continue
            T = link.parent.T @ link.offset
            if link.joint is not None:
                T = T @ SE3.from_rotation(rot_z(link.joint.q))
            link.set_T(T)
