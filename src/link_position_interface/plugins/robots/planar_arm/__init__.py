"""
Planar three-joint arm with closed-form IK (elbow up / elbow down).
"""

from .model import PlanarArmBody, PlanarJoint, PlanarLink
from .ik import PlanarArmIK, PlanarArmConfigurationHandler, RootLinkIK, ELBOW_UP, ELBOW_DOWN
from .kinematics_kit import (
    PlanarArmBodyItem,
    PlanarArmFrameSets,
    PlanarArmKinematicsKit,
    PoseMarker,
    create_planar_arm_item,
)

__all__ = [
    'PlanarArmBody',
    'PlanarJoint',
    'PlanarLink',
    'PlanarArmIK',
    'PlanarArmConfigurationHandler',
    'RootLinkIK',
    'ELBOW_UP',
    'ELBOW_DOWN',
    'PlanarArmBodyItem',
    'PlanarArmFrameSets',
    'PlanarArmKinematicsKit',
    'PoseMarker',
    'create_planar_arm_item',
]
