from __future__ import annotations
from typing import List, Optional, Protocol, Sequence, Tuple
import numpy as np
from .contracts import GeneralId, SE3, FrameType
from .signals import Signal


class Joint(Protocol):
    """Single joint of a body. q is read and written in place by the solver."""
    name: str
    q: float
    q_lower: float
    q_upper: float


class Link(Protocol):
    name: str

    @property
    def children(self) -> Sequence["Link"]: ...

    @property
    def T(self) -> SE3:
        """Link pose in the world frame."""
        ...

    def set_T(self, T: SE3) -> None: ...

    @property
    def Ta(self) -> SE3:
        """Link attitude: pose with the link's attitude offset applied."""
        ...

    def is_body_root(self) -> bool: ...

    def calc_R_from_attitude(self, R: np.ndarray) -> np.ndarray:
        """
        Map an arbitrary attitude to the link rotation that the link can
        actually take (attitude normalization).
        """
        ...


class Body(Protocol):
    name: str

    @property
    def root_link(self) -> Link: ...

    @property
    def links(self) -> Sequence[Link]: ...

    @property
    def joints(self) -> Sequence[Joint]: ...

    def parent_body_link(self) -> Optional[Link]:
        """Link of the parent body this body is attached to, if any."""
        ...

    def calc_forward_kinematics(self) -> None: ...


class JointPath(Protocol):
    name: str

    @property
    def joints(self) -> Sequence[Joint]: ...

    @property
    def end_link(self) -> Link: ...

    def calc_inverse_kinematics(self, T: SE3) -> bool: ...


class InverseKinematics(Protocol):
    """Opaque solving capability: given a target pose, solve or fail."""

    def calc_inverse_kinematics(self, T: SE3) -> bool: ...

    def calc_remaining_part_forward_kinematics(self) -> None: ...


class ConfigurationHandler(Protocol):
    """Enumerates the discrete IK branches (configurations) of a solver."""

    def num_configuration_types(self) -> int: ...

    def configuration_type_id(self, index: int) -> int: ...

    def configuration_target_names(self) -> List[str]: ...

    def configuration_state_names(self, type_id: int) -> List[str]: ...

    def set_preferred_configuration_type(self, type_id: int) -> None: ...

    def reset_preferred_configuration_type(self) -> None: ...

    def current_configuration_types(self) -> List[int]: ...


class LinkKinematicsKit(Protocol):
    """
    Per-link bundle of everything the resolvers need from the kinematic chain:
    frame sets, the solver and the configuration handler.
    """

    sig_frame_update: Signal

    def body(self) -> Body: ...

    def link(self) -> Link: ...

    def base_link(self) -> Optional[Link]: ...

    def joint_path(self) -> Optional[JointPath]: ...

    def inverse_kinematics(self) -> Optional[InverseKinematics]: ...

    def configuration_handler(self) -> Optional[ConfigurationHandler]: ...

    def is_custom_ik_disabled(self) -> bool: ...

    def set_custom_ik_disabled(self, on: bool) -> None: ...

    def has_frame_sets(self) -> bool: ...

    def frame_set(self, frame_type: FrameType): ...  # -> Optional[CoordinateFrameList]

    def current_frame_id(self, frame_type: FrameType) -> GeneralId: ...

    def set_current_frame(self, frame_type: FrameType, id: GeneralId) -> None: ...

    def current_frame(self, frame_type: FrameType): ...  # -> CoordinateFrame

    def current_base_frame_type(self) -> FrameType: ...

    def set_current_base_frame_type(self, frame_type: FrameType) -> None: ...

    def current_base_frame(self): ...  # -> CoordinateFrame

    def current_link_frame(self): ...  # -> CoordinateFrame

    def current_base_frame_id(self) -> GeneralId: ...

    def current_link_frame_id(self) -> GeneralId: ...

    def reference_rpy(self) -> np.ndarray: ...

    def set_reference_rpy(self, rpy: np.ndarray) -> None: ...

    def notify_frame_update(self) -> None: ...


class BodyItem(Protocol):
    """
    Owner of a body in the caller's scene. Provides the kinematic-state edit
    transaction and the kinematics kit lookup.
    """

    sig_kinematic_state_changed: Signal
    sig_name_changed: Signal

    @property
    def name(self) -> str: ...

    def body(self) -> Body: ...

    def is_attached_to_parent_body(self) -> bool: ...

    def parent_body_item(self) -> Optional["BodyItem"]: ...

    def find_preset_ik(self, link: Link) -> Optional[InverseKinematics]: ...

    def get_current_link_kinematics_kit(self, link: Link) -> Optional[LinkKinematicsKit]: ...

    def begin_kinematic_state_edit(self) -> None: ...

    def accept_kinematic_state_edit(self) -> None: ...

    def cancel_kinematic_state_edit(self) -> None: ...

    def notify_kinematic_state_change(self) -> None: ...


class PositionEditTarget(Protocol):
    """Any editable pose that is not a link (e.g. a marker or a waypoint)."""

    sig_position_changed: Signal
    sig_position_edit_target_expired: Signal

    def position_name(self) -> str: ...

    def position(self) -> SE3: ...

    def set_position(self, T: SE3) -> bool: ...

    def is_editable(self) -> bool: ...


class ConfigurationOwner(Protocol):
    """What the configuration resolver needs from the resolver driving it."""

    @property
    def kinematics_kit(self) -> Optional[LinkKinematicsKit]: ...

    @property
    def target_body_item(self) -> Optional[BodyItem]: ...

    def find_body_ik_solution(self, T_input: SE3, is_raw_T: bool) -> bool: ...


DefaultFrameNames = Tuple[str, str, str]
