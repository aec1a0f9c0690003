"""
Capture / restore of a body's kinematic state.

Used to make configuration trials and cancelled edits non-destructive.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .contracts import SE3
from .ports import Body, Link


@dataclass(frozen=True)
class BodyStateSnapshot:
    """Joint positions, root pose and (optionally) the pose of one link."""
    q: np.ndarray
    root_T: SE3
    link_T: Optional[SE3] = None

    @classmethod
    def store(cls, body: Body, link: Optional[Link] = None) -> "BodyStateSnapshot":
        """
        Args:
            body: Body to capture
            link: Link whose pose is restored explicitly after forward kinematics
        """
        q = np.array([joint.q for joint in body.joints], dtype=float)
        return cls(
            q=q,
            root_T=body.root_link.T,
            link_T=link.T if link is not None else None,
        )

    def restore(self, body: Body, link: Optional[Link] = None) -> None:
        for joint, q in zip(body.joints, self.q):
            joint.q = float(q)
        body.root_link.set_T(self.root_T)
        body.calc_forward_kinematics()
        if link is not None and self.link_T is not None:
            link.set_T(self.link_T)

    def is_close(self, other: "BodyStateSnapshot", atol: float = 1e-9) -> bool:
        if self.q.shape != other.q.shape or not np.allclose(self.q, other.q, atol=atol):
            return False
        if not self.root_T.is_close(other.root_T, atol=atol):
            return False
        if (self.link_T is None) != (other.link_T is None):
            return False
        return self.link_T is None or self.link_T.is_close(other.link_T, atol=atol)
