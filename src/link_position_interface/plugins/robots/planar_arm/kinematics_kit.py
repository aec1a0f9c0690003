"""
Scene-side objects of the planar arm: frame sets, per-link kinematics kits,
the body item owning the arm, and a free pose marker.

Importing this module registers PlanarArmKinematicsKit as a kinematics kit
kind and binds its default frame names.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from link_position_interface.core.body_state import BodyStateSnapshot
from link_position_interface.core.contracts import GeneralId, SE3, FrameType
from link_position_interface.core.coordinate_frame import CoordinateFrame, CoordinateFrameList
from link_position_interface.core.signals import Signal
from link_position_interface.core.transform_resolver import (
    default_frame_name_providers,
    register_kinematics_kit_kind,
)
from .ik import PlanarArmIK, RootLinkIK
from .model import PlanarArmBody, PlanarJoint, PlanarLink

logger = logging.getLogger(__name__)


class PlanarArmFrameSets:
    """World, body and link frame lists shared by the kits of one body item."""

    def __init__(self):
        self.frame_lists: Dict[FrameType, CoordinateFrameList] = {
            frame_type: CoordinateFrameList(first_element_as_default=True)
            for frame_type in FrameType
        }

    def frame_list(self, frame_type: FrameType) -> CoordinateFrameList:
        return self.frame_lists[FrameType(frame_type)]

    def read(self, archive) -> bool:
        ok = True
        for frame_type, frame_list in self.frame_lists.items():
            key = frame_type.name.lower()
            if key in archive:
                ok = frame_list.read(archive[key]) and ok
        return ok

    def write(self):
        return {frame_type.name.lower(): frame_list.write()
                for frame_type, frame_list in self.frame_lists.items()}


class PlanarArmKinematicsKit:
    """
    Everything the resolvers need to move one link of the planar arm.

    Frame changes made through any of the frame lists are re-emitted on
    sig_frame_update.
    """

    def __init__(self, body_item: "PlanarArmBodyItem", link: PlanarLink,
                 base_link: Optional[PlanarLink] = None,
                 joint_path: Optional[PlanarArmIK] = None,
                 inverse_kinematics=None,
                 frame_sets: Optional[PlanarArmFrameSets] = None):
        self._body_item = body_item
        self._link = link
        self._base_link = base_link
        self._joint_path = joint_path
        self._inverse_kinematics = inverse_kinematics if inverse_kinematics is not None else joint_path
        self._frame_sets = frame_sets
        self._custom_ik_disabled = False

        self._current_frame_ids: Dict[FrameType, GeneralId] = {
            frame_type: GeneralId.default_id() for frame_type in FrameType
        }
        self._base_frame_type = FrameType.WORLD
        self._identity_frame = CoordinateFrame()
        self._reference_rpy = np.zeros(3)

        self.sig_frame_update = Signal()
        self._connections = []
        if frame_sets is not None:
            for frame_list in frame_sets.frame_lists.values():
                for signal in (frame_list.sig_frame_added, frame_list.sig_frame_removed,
                               frame_list.sig_frame_updated):
                    self._connections.append(signal.connect(self._on_frame_set_changed))

    def _on_frame_set_changed(self, *args) -> None:
        self.sig_frame_update.emit()

    def body(self) -> PlanarArmBody:
        return self._body_item.body()

    def link(self) -> PlanarLink:
        return self._link

    def base_link(self) -> Optional[PlanarLink]:
        return self._base_link

    def joint_path(self) -> Optional[PlanarArmIK]:
        return self._joint_path

    def inverse_kinematics(self):
        return self._inverse_kinematics

    def configuration_handler(self):
        if self._custom_ik_disabled or self._joint_path is None:
            return None
        return self._joint_path.configuration

    def is_custom_ik_disabled(self) -> bool:
        return self._custom_ik_disabled

    def set_custom_ik_disabled(self, on: bool) -> None:
        self._custom_ik_disabled = on

    def has_frame_sets(self) -> bool:
        return self._frame_sets is not None

    def frame_set(self, frame_type: FrameType) -> Optional[CoordinateFrameList]:
        if self._frame_sets is None:
            return None
        return self._frame_sets.frame_list(frame_type)

    def current_frame_id(self, frame_type: FrameType) -> GeneralId:
        return self._current_frame_ids[FrameType(frame_type)]

    def set_current_frame(self, frame_type: FrameType, id: GeneralId) -> None:
        self._current_frame_ids[FrameType(frame_type)] = GeneralId(id)

    def current_frame(self, frame_type: FrameType) -> CoordinateFrame:
        """Selected frame of a type, the default frame if its id is gone."""
        frames = self.frame_set(frame_type)
        if frames is None:
            return self._identity_frame
        frame = frames.find_frame(self.current_frame_id(frame_type), default_if_not_found=True)
        return frame if frame is not None else self._identity_frame

    def current_base_frame_type(self) -> FrameType:
        return self._base_frame_type

    def set_current_base_frame_type(self, frame_type: FrameType) -> None:
        self._base_frame_type = FrameType(frame_type)

    def current_base_frame(self) -> CoordinateFrame:
        return self.current_frame(self._base_frame_type)

    def current_link_frame(self) -> CoordinateFrame:
        return self.current_frame(FrameType.LINK)

    def current_base_frame_id(self) -> GeneralId:
        return self.current_frame_id(self._base_frame_type)

    def current_link_frame_id(self) -> GeneralId:
        return self.current_frame_id(FrameType.LINK)

    def reference_rpy(self) -> np.ndarray:
        return self._reference_rpy

    def set_reference_rpy(self, rpy: np.ndarray) -> None:
        self._reference_rpy = np.asarray(rpy, dtype=float).reshape(3)

    def notify_frame_update(self) -> None:
        self.sig_frame_update.emit()


def planar_arm_default_frame_names(kit: PlanarArmKinematicsKit) -> Tuple[str, str, str]:
    base_link = kit.base_link()
    body_name = f"{base_link.name} Origin" if base_link is not None else "Origin"
    return ("World Origin", body_name, f"{kit.link().name} Origin")


register_kinematics_kit_kind(PlanarArmKinematicsKit)
default_frame_name_providers.bind(PlanarArmKinematicsKit, planar_arm_default_frame_names)


class PlanarArmBodyItem:
    """
    Scene item owning a planar arm.

    The hand link and the root link carry preset IK. Kinematics kits are
    created on first request and kept for the item's lifetime.

    Example:
        item = create_planar_arm_item("ARM")
        kit = item.get_current_link_kinematics_kit(item.body().link("HAND"))
        item.begin_kinematic_state_edit()
        if kit.inverse_kinematics().calc_inverse_kinematics(T):
            item.accept_kinematic_state_edit()
        else:
            item.cancel_kinematic_state_edit()
    """

    def __init__(self, body: PlanarArmBody, end_link_name: str = "HAND", name: Optional[str] = None):
        self._body = body
        self._name = name if name is not None else body.name
        self._parent_item: Optional["PlanarArmBodyItem"] = None
        self._edit_states: List[BodyStateSnapshot] = []
        self.frame_sets = PlanarArmFrameSets()

        self.sig_kinematic_state_changed = Signal()
        self.sig_name_changed = Signal()   # (old_name)

        end_link = body.link(end_link_name)
        if end_link is None:
            raise ValueError(f"Body {body.name} has no link named {end_link_name}")
        self.arm_ik = PlanarArmIK(body, end_link)
        self._preset_iks = {
            body.root_link: RootLinkIK(body),
            end_link: self.arm_ik,
        }
        self._kits: Dict[PlanarLink, PlanarArmKinematicsKit] = {}

    @property
    def name(self) -> str:
        return self._name

    def set_name(self, name: str) -> None:
        if name != self._name:
            old_name = self._name
            self._name = name
            self.sig_name_changed.emit(old_name)

    def body(self) -> PlanarArmBody:
        return self._body

    def attach_to(self, parent_item: Optional["PlanarArmBodyItem"], parent_link: Optional[PlanarLink] = None) -> None:
        """Mount this body's root on a link of another body, or detach it with None."""
        self._parent_item = parent_item
        self._body.set_parent_body_link(parent_link if parent_item is not None else None)
        if parent_item is not None and parent_link is not None:
            self._body.root_link.set_T(parent_link.T)
            self._body.calc_forward_kinematics()

    def is_attached_to_parent_body(self) -> bool:
        return self._parent_item is not None

    def parent_body_item(self) -> Optional["PlanarArmBodyItem"]:
        return self._parent_item

    def find_preset_ik(self, link: PlanarLink):
        return self._preset_iks.get(link)

    def get_current_link_kinematics_kit(self, link: PlanarLink) -> Optional[PlanarArmKinematicsKit]:
        kit = self._kits.get(link)
        if kit is not None:
            return kit
        ik = self._preset_iks.get(link)
        if ik is None:
            logger.debug("Link %s of %s has no preset IK", link.name, self._name)
            return None
        if link.is_body_root():
            kit = PlanarArmKinematicsKit(self, link, inverse_kinematics=ik,
                                         frame_sets=self.frame_sets)
        else:
            kit = PlanarArmKinematicsKit(self, link, base_link=self._body.root_link,
                                         joint_path=ik, frame_sets=self.frame_sets)
        self._kits[link] = kit
        return kit

    def begin_kinematic_state_edit(self) -> None:
        self._edit_states.append(BodyStateSnapshot.store(self._body))

    def accept_kinematic_state_edit(self) -> None:
        if self._edit_states:
            self._edit_states.pop()

    def cancel_kinematic_state_edit(self) -> None:
        if not self._edit_states:
            return
        self._edit_states.pop().restore(self._body)
        self.notify_kinematic_state_change()

    def is_doing_kinematic_state_edit(self) -> bool:
        return bool(self._edit_states)

    def notify_kinematic_state_change(self) -> None:
        self.sig_kinematic_state_changed.emit()


class PoseMarker:
    """Free pose in the scene that can be moved like a link."""

    def __init__(self, name: str, T: Optional[SE3] = None, editable: bool = True):
        self._name = name
        self._T = T if T is not None else SE3.identity()
        self.editable = editable
        self.sig_position_changed = Signal()             # (SE3)
        self.sig_position_edit_target_expired = Signal()  # ()

    def position_name(self) -> str:
        return self._name

    def position(self) -> SE3:
        return self._T

    def set_position(self, T: SE3) -> bool:
        if not self.editable:
            return False
        self._T = T
        self.sig_position_changed.emit(T)
        return True

    def is_editable(self) -> bool:
        return self.editable

    def expire(self) -> None:
        self.sig_position_edit_target_expired.emit()


def create_planar_arm_item(name: str = "PlanarArm",
                           lengths: Sequence[float] = (0.4, 0.3, 0.1),
                           joint_limits: Optional[Sequence[Tuple[float, float]]] = None) -> PlanarArmBodyItem:
    """
    Build a BASE - UPPER_ARM - FOREARM - WRIST - HAND arm.

    Args:
        lengths: Upper arm, forearm and hand lengths (m)
        joint_limits: (lower, upper) of SHOULDER, ELBOW and WRIST (rad).
            [-pi, pi] for every joint when omitted.
    """
    if len(lengths) != 3:
        raise ValueError("A planar arm needs three link lengths")
    if joint_limits is None:
        joint_limits = [(-np.pi, np.pi)] * 3
    if len(joint_limits) != 3:
        raise ValueError("A planar arm needs three joint limit pairs")

    shoulder, elbow, wrist = (
        PlanarJoint(joint_name, lower, upper)
        for joint_name, (lower, upper) in zip(("SHOULDER", "ELBOW", "WRIST"), joint_limits)
    )
    l1, l2, l3 = (float(length) for length in lengths)

    base = PlanarLink("BASE")
    upper_arm = base.add_child(PlanarLink("UPPER_ARM", joint=shoulder))
    forearm = upper_arm.add_child(
        PlanarLink("FOREARM", SE3(p=[l1, 0.0, 0.0], q=[0.0, 0.0, 0.0, 1.0]), joint=elbow))
    wrist_link = forearm.add_child(
        PlanarLink("WRIST", SE3(p=[l2, 0.0, 0.0], q=[0.0, 0.0, 0.0, 1.0]), joint=wrist))
    wrist_link.add_child(PlanarLink("HAND", SE3(p=[l3, 0.0, 0.0], q=[0.0, 0.0, 0.0, 1.0])))

    return PlanarArmBodyItem(PlanarArmBody(name, base), name=name)
