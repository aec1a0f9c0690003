"""
Core package: frame model, resolvers and the provider protocols they use.
"""

from .contracts import GeneralId, SE3, CoordinateMode, FrameType, FrameComboType, TargetLinkType
from .coordinate_frame import CoordinateFrame, CoordinateFrameList
from .class_registry import TypeHierarchyRegistry, CapabilityTable
from .body_state import BodyStateSnapshot
from .configuration_resolver import ConfigurationResolver, ConfigurationState, SolverLease
from .transform_resolver import TransformResolver, calc_display_position, calc_input_position
from .config import LinkPositionConfig, load_config, default_config

__all__ = [
    'GeneralId',
    'SE3',
    'CoordinateMode',
    'FrameType',
    'FrameComboType',
    'TargetLinkType',
    'CoordinateFrame',
    'CoordinateFrameList',
    'TypeHierarchyRegistry',
    'CapabilityTable',
    'BodyStateSnapshot',
    'ConfigurationResolver',
    'ConfigurationState',
    'SolverLease',
    'TransformResolver',
    'calc_display_position',
    'calc_input_position',
    'LinkPositionConfig',
    'load_config',
    'default_config',
]
