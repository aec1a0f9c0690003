"""
Kinematic target resolution for a "move this link to this pose" tool.

The resolver converts between the true pose of the target link and the
pose shown to / entered by an operator, according to the coordinate mode
(world / body / local) and the base and link frames currently selected in
the link's kinematics kit. Callers push events in (target picked, mode or
frame selected, pose entered) and read back the results, which are also
published on the resolver's signals.
"""

import logging
from dataclasses import replace
from typing import Callable, List, Optional

import numpy as np

from .class_registry import CapabilityTable, TypeHierarchyRegistry
from .config import LinkPositionConfig, default_config
from .configuration_resolver import ConfigurationResolver, ConfigurationState
from .contracts import (
    GeneralId, SE3, CoordinateMode, FrameType, FrameComboType, TargetLinkType, TargetType,
    KinematicsTarget, FrameCandidate, FrameCandidateList, ResultLabel,
    SOLVED, NOT_SOLVED, ACCEPTED, NOT_ACCEPTED, ACTUAL_STATE, NO_RESULT,
)
from .coordinate_frame import CoordinateFrame, CoordinateFrameList
from .ports import BodyItem, DefaultFrameNames, Link, LinkKinematicsKit, PositionEditTarget
from .signals import ConnectionSet, ScopedConnection, Signal

logger = logging.getLogger(__name__)

NO_TARGET_LABEL = "------"
NO_CONFIGURATION_LABEL = "-----"

# Kinds of kinematics kits. Plugins register their kit classes here during
# import so that per-kind providers can be bound below.
KINEMATICS_KIT_KIND = "LinkKinematicsKit"
kinematics_kit_kinds = TypeHierarchyRegistry(KINEMATICS_KIT_KIND)

# Default (origin) frame names per kit kind: kit -> (world, body, link)
default_frame_name_providers: CapabilityTable[Callable[[LinkKinematicsKit], DefaultFrameNames]] = \
    CapabilityTable(kinematics_kit_kinds)


def register_kinematics_kit_kind(kind, parent_kind=KINEMATICS_KIT_KIND) -> int:
    return kinematics_kit_kinds.register(kind, parent_kind)


def calc_display_position(base_frame_T: SE3, link_Ta: SE3, link_frame_T: SE3,
                          base_link_Ta: Optional[SE3] = None) -> SE3:
    """
    Pose shown to the operator for a link attitude.

    T = inv(base_frame) * link_attitude * link_frame, then left-multiplied by
    inv(base_link_attitude) when a base link attitude is given (body mode).
    """
    T = base_frame_T.inverse() @ link_Ta @ link_frame_T
    if base_link_Ta is not None:
        T = base_link_Ta.inverse() @ T
    return T


def calc_input_position(T_input: SE3, base_frame_T: SE3, link_frame_T: SE3,
                        base_link_Ta: Optional[SE3] = None,
                        normalize_attitude: Optional[Callable[[np.ndarray], np.ndarray]] = None) -> SE3:
    """
    Pose to give to the solver for an operator input.

    T = base_frame * input * inv(link_frame), then left-multiplied by the base
    link attitude (body mode). The rotation is finally mapped to the link's
    achievable attitude by normalize_attitude, the one irreversible step.
    """
    T = base_frame_T @ T_input @ link_frame_T.inverse()
    if base_link_Ta is not None:
        T = base_link_Ta @ T
    if normalize_attitude is not None:
        T = T.with_rotation(normalize_attitude(T.rotation))
    return T


def make_frame_candidates(frames: Optional[CoordinateFrameList], current_id: GeneralId,
                          origin_label: str) -> FrameCandidateList:
    """
    Pick list entries for a frame list.

    The origin sentinel (id 0) always comes first, followed by the findable
    frames in list order. The selected index falls back to the sentinel when
    current_id is not found.
    """
    candidates = [FrameCandidate(GeneralId.default_id(), f"0: {origin_label}")]
    current_index = 0
    if frames is not None:
        for frame in frames.findable_frames():
            id = frame.id
            if id.is_int():
                label = f"{id.to_int()}: {frame.note}"
            else:
                label = id.label
            if id == current_id:
                current_index = len(candidates)
            candidates.append(FrameCandidate(id, label))
    return FrameCandidateList(tuple(candidates), current_index)


class TransformResolver:
    """
    Resolves the operator-facing pose of a target link and applies pose input
    through the link's IK solver.

    Example:
        resolver = TransformResolver(config)
        resolver.set_target_body_and_link(body_item, link)
        T_display = resolver.display_position
        resolver.apply_position_input(T_display @ offset)
        print(resolver.result.text)   # "Solved" / "Not Solved"
    """

    def __init__(self, config: Optional[LinkPositionConfig] = None):
        self.config = config if config is not None else default_config()

        self.target_type = TargetType.LINK
        self._target_body_item: Optional[BodyItem] = None
        self.target_link: Optional[Link] = None
        self.target_link_type = self.config.target_link_type
        self._kinematics_kit: Optional[LinkKinematicsKit] = None
        self._kinematics_kit_connection = ScopedConnection()
        self._target_connections = ConnectionSet()
        self.position_edit_target: Optional[PositionEditTarget] = None

        self.identity_frame = CoordinateFrame()
        self.base_frame = self.identity_frame
        self.link_frame = self.identity_frame

        self.coordinate_mode = self.config.coordinate_mode
        self.preferred_coordinate_mode = self.config.preferred_coordinate_mode
        self.default_coord_names: List[str] = list(self.config.default_frame_names)
        self.function_to_get_default_frame_names: Optional[Callable[[LinkKinematicsKit], DefaultFrameNames]] = None

        # Interface state read by the caller's widgets
        self.enabled = False
        self.coordinate_mode_interface_enabled = True
        self.body_coordinate_mode_enabled = True
        self.coordinate_frame_interface_enabled = False
        self.configuration_interface_enabled = False

        self.frame_candidates: List[FrameCandidateList] = [FrameCandidateList(), FrameCandidateList()]
        self.display_position: Optional[SE3] = None
        self.reference_rpy = np.zeros(3)
        self.result: ResultLabel = NO_RESULT
        self.target_label = ""
        self.configuration_label = NO_CONFIGURATION_LABEL
        self.current_configuration_types: List[int] = []
        self._configuration_resolver: Optional[ConfigurationResolver] = None

        self.sig_frame_candidates_changed = Signal()   # (combo, FrameCandidateList)
        self.sig_display_position_changed = Signal()   # (SE3)
        self.sig_result_changed = Signal()             # (ResultLabel)
        self.sig_target_label_changed = Signal()       # (str)
        self.sig_configuration_label_changed = Signal()  # (str)
        self.sig_interface_changed = Signal()          # ()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def kinematics_kit(self) -> Optional[LinkKinematicsKit]:
        return self._kinematics_kit

    @property
    def target_body_item(self) -> Optional[BodyItem]:
        return self._target_body_item

    @property
    def configuration_resolver(self) -> Optional[ConfigurationResolver]:
        return self._configuration_resolver

    def current_target(self) -> KinematicsTarget:
        body = self._target_body_item.body() if self._target_body_item is not None else None
        return KinematicsTarget(
            link=self.target_link,
            body=body,
            base_frame=self.base_frame,
            link_frame=self.link_frame,
            coordinate_mode=self.coordinate_mode,
        )

    def customize_default_coordinate_frame_names(
            self, get_names: Optional[Callable[[LinkKinematicsKit], DefaultFrameNames]]) -> None:
        """Override the origin names for every kit, ahead of per-kind providers."""
        self.function_to_get_default_frame_names = get_names

    def release(self) -> None:
        """Drop every subscription held by the resolver."""
        self._target_connections.disconnect()
        self._kinematics_kit_connection.reset()

    # ------------------------------------------------------------------
    # Target selection
    # ------------------------------------------------------------------

    def set_target_link_type(self, link_type: TargetLinkType) -> None:
        self.target_link_type = TargetLinkType(link_type)
        self.set_target_body_and_link(self._target_body_item, self.target_link)

    def set_target_body_and_link(self, body_item: Optional[BodyItem], link: Optional[Link]) -> None:
        is_target_type_changed = self.target_type != TargetType.LINK
        is_body_item_changed = is_target_type_changed or body_item is not self._target_body_item
        is_link_changed = is_target_type_changed or link is not self.target_link

        if body_item is not None and link is not None:
            # A sub body's root link is handled as the parent body's end link
            if body_item.is_attached_to_parent_body():
                parent_body_item = body_item.parent_body_item()
                if parent_body_item is not None:
                    link = body_item.body().parent_body_link()
                    body_item = parent_body_item

            is_ik_link_required = False
            if self.target_link_type != TargetLinkType.ANY_LINK:
                if self.target_link_type == TargetLinkType.ROOT_OR_IK_LINK:
                    is_ik_link_required = not link.is_body_root()
                else:
                    is_ik_link_required = True
            if is_ik_link_required and body_item.find_preset_ik(link) is None:
                link = self._find_ik_link_in_subtree(body_item, link)

        if link is None:
            if is_link_changed:
                return
            is_link_changed = True

        if is_body_item_changed or is_link_changed:
            if is_body_item_changed:
                self.display_position = None
                self._target_connections.disconnect()
                self._target_body_item = body_item
                if body_item is not None:
                    self._target_connections.add(
                        body_item.sig_name_changed.connect(
                            lambda *args: self.update_target_link(self.target_link)))
                    self._target_connections.add(
                        body_item.sig_kinematic_state_changed.connect(
                            lambda *args: self.on_kinematic_state_changed()))

            self.target_type = TargetType.LINK
            self.update_target_link(link)
            self.update_display_with_current_link_position()

    def _find_ik_link_in_subtree(self, body_item: BodyItem, link: Link) -> Optional[Link]:
        stack = list(reversed(link.children))
        while stack:
            candidate = stack.pop()
            if body_item.find_preset_ik(candidate) is not None:
                return candidate
            stack.extend(reversed(candidate.children))
        return None

    def update_target_link(self, link: Optional[Link]) -> None:
        self._set_coordinate_mode_interface_enabled(True)

        if self.target_type != TargetType.LINK:
            return

        self.target_link = link
        self._kinematics_kit = None
        self._kinematics_kit_connection.reset()
        self.base_frame = self.identity_frame
        self.link_frame = self.identity_frame
        has_coordinate_frames = False

        if link is None or self._target_body_item is None:
            self._set_target_label(NO_TARGET_LABEL)
        else:
            body = self._target_body_item.body()
            self._set_target_label(f"{body.name} / {link.name}")

            self.default_coord_names = list(self.config.default_frame_names)
            kit = self._target_body_item.get_current_link_kinematics_kit(link)
            if kit is not None:
                self._kinematics_kit = kit
                self._kinematics_kit_connection.reset(
                    kit.sig_frame_update.connect(self.on_frame_update))
                get_names = self.function_to_get_default_frame_names or \
                    default_frame_name_providers.lookup(kit)
                if get_names is not None:
                    self.default_coord_names = list(get_names(kit))
                has_coordinate_frames = kit.has_frame_sets()
                if self.coordinate_mode == CoordinateMode.WORLD:
                    kit.set_current_base_frame_type(FrameType.WORLD)
                else:
                    kit.set_current_base_frame_type(FrameType.BODY)
                self.base_frame = kit.current_base_frame()
                self.link_frame = kit.current_link_frame()
            else:
                logger.info("No kinematics kit for link %s", link.name)

        kit = self._kinematics_kit
        self.enabled = kit is not None
        self._set_coordinate_frame_interface_enabled(has_coordinate_frames)
        self._set_result(NO_RESULT)

        self.update_coordinate_frame_candidates()
        self.set_coordinate_mode(self.preferred_coordinate_mode, False)

        self.set_body_coordinate_mode_enabled(
            kit is not None and kit.base_link() is not None
            and link is not kit.base_link() and has_coordinate_frames)

        self.initialize_configuration_interface()
        self.sig_interface_changed.emit()

    # ------------------------------------------------------------------
    # Coordinate mode
    # ------------------------------------------------------------------

    def set_coordinate_mode(self, mode: CoordinateMode, do_update_display: bool = False) -> None:
        mode = CoordinateMode(mode)
        kit = self._kinematics_kit

        if kit is not None:
            if mode == CoordinateMode.WORLD:
                kit.set_current_base_frame_type(FrameType.WORLD)
                self.base_frame = kit.current_base_frame()
            elif mode == CoordinateMode.BODY:
                kit.set_current_base_frame_type(FrameType.BODY)
                self.base_frame = kit.current_base_frame()

        if mode != self.coordinate_mode:
            self.coordinate_mode = mode
            self.update_coordinate_frame_candidates()

        if do_update_display:
            self.update_display()

    def set_body_coordinate_mode_enabled(self, on: bool) -> None:
        self.body_coordinate_mode_enabled = on
        if not on and self.coordinate_mode == CoordinateMode.BODY:
            self.set_coordinate_mode(CoordinateMode.WORLD, False)

    def on_coordinate_mode_selected(self, mode: CoordinateMode) -> bool:
        """
        Mode chosen by the operator. It also becomes the preferred mode
        re-applied when the target changes.

        Returns:
            False if the mode is not selectable for the current target.
        """
        mode = CoordinateMode(mode)
        if not self.coordinate_mode_interface_enabled:
            return False
        if mode == CoordinateMode.BODY and not self.body_coordinate_mode_enabled:
            logger.debug("Body coordinate mode is not available for the current target")
            return False
        self.set_coordinate_mode(mode, True)
        self.preferred_coordinate_mode = mode
        return True

    def _set_coordinate_mode_interface_enabled(self, on: bool) -> None:
        if on != self.coordinate_mode_interface_enabled:
            self.coordinate_mode_interface_enabled = on
            self.sig_interface_changed.emit()

    # ------------------------------------------------------------------
    # Coordinate frames
    # ------------------------------------------------------------------

    def _set_coordinate_frame_interface_enabled(self, on: bool) -> None:
        self.coordinate_frame_interface_enabled = on

    def frame_type_of_combo(self, combo: FrameComboType) -> FrameType:
        if combo == FrameComboType.LINK:
            return FrameType.LINK
        if self.coordinate_mode == CoordinateMode.WORLD:
            return FrameType.WORLD
        return FrameType.BODY

    def update_coordinate_frame_candidates(self, combo: Optional[FrameComboType] = None):
        """
        Rebuild the pick list of one combo, or of both when combo is None.

        Returns:
            The FrameCandidateList of the combo, or the list of both.
        """
        if combo is None:
            return [self.update_coordinate_frame_candidates(c) for c in FrameComboType]

        combo = FrameComboType(combo)
        frame_type = self.frame_type_of_combo(combo)
        frames = None
        current_id = GeneralId.default_id()
        kit = self._kinematics_kit
        if kit is not None:
            frames = kit.frame_set(frame_type)
            current_id = kit.current_frame_id(frame_type)

        candidates = make_frame_candidates(frames, current_id, self.default_coord_names[frame_type])
        self.frame_candidates[combo] = candidates
        self.sig_frame_candidates_changed.emit(combo, candidates)
        return candidates

    def on_frame_candidate_selected(self, combo: FrameComboType, index: int) -> bool:
        combo = FrameComboType(combo)
        candidates = self.frame_candidates[combo]
        if index < 0 or index >= len(candidates):
            return False
        id = candidates.candidates[index].id
        if not id.is_valid():
            return False

        frame_type = self.frame_type_of_combo(combo)
        kit = self._kinematics_kit
        if kit is not None:
            kit.set_current_frame(frame_type, id)
            if combo == FrameComboType.BASE:
                self.base_frame = kit.current_frame(frame_type)
            else:
                self.link_frame = kit.current_link_frame()
            self.frame_candidates[combo] = replace(self.frame_candidates[combo], current_index=index)
            kit.notify_frame_update()
        self.update_display()
        return True

    def on_frame_update(self) -> None:
        """Follow frame changes made on the kinematics kit by anyone."""
        kit = self._kinematics_kit
        if kit is None:
            return

        is_local = self.coordinate_mode == CoordinateMode.LOCAL
        base_frame_type = kit.current_base_frame_type()
        if is_local:
            # Local mode has no base frame type of its own on the kit
            self.update_coordinate_frame_candidates()
        elif base_frame_type == FrameType.WORLD and self.coordinate_mode != CoordinateMode.WORLD:
            self.set_coordinate_mode(CoordinateMode.WORLD, False)
            self.preferred_coordinate_mode = CoordinateMode.WORLD
        elif base_frame_type == FrameType.BODY and self.coordinate_mode != CoordinateMode.BODY:
            self.set_coordinate_mode(CoordinateMode.BODY, False)
            self.preferred_coordinate_mode = CoordinateMode.BODY
        else:
            self.update_coordinate_frame_candidates()

        for combo in FrameComboType:
            new_id = kit.current_frame_id(self.frame_type_of_combo(combo))
            candidates = self.frame_candidates[combo]
            index = candidates.index_of(new_id)
            if index >= 0 and index != candidates.current_index:
                candidates = replace(candidates, current_index=index)
                self.frame_candidates[combo] = candidates
                self.sig_frame_candidates_changed.emit(combo, candidates)

        if not is_local:
            self.base_frame = kit.current_base_frame()
        self.link_frame = kit.current_link_frame()

        self.update_display()

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    def _base_link_attitude(self) -> Optional[SE3]:
        kit = self._kinematics_kit
        if kit is not None and self.coordinate_mode == CoordinateMode.BODY:
            base_link = kit.base_link()
            if base_link is not None:
                return base_link.Ta
        return None

    def calc_current_display_position(self) -> Optional[SE3]:
        if self.target_link is None:
            return None
        return calc_display_position(
            self.base_frame.T, self.target_link.Ta, self.link_frame.T, self._base_link_attitude())

    def calc_solver_position(self, T_input: SE3) -> SE3:
        """Target link pose for an operator input in the current mode and frames."""
        normalize = self.target_link.calc_R_from_attitude if self.target_link is not None else None
        return calc_input_position(
            T_input, self.base_frame.T, self.link_frame.T, self._base_link_attitude(), normalize)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def _is_configuration_trial_running(self) -> bool:
        resolver = self._configuration_resolver
        return resolver is not None and resolver.is_trial_running()

    def update_display(self) -> None:
        if self._is_configuration_trial_running():
            logger.debug("Display update skipped during a configuration trial")
            return

        if self.target_type == TargetType.LINK:
            self.update_display_with_current_link_position()
        elif self.target_type == TargetType.POSITION_EDIT:
            self.update_display_with_position_edit_target()

        self._set_result(ACTUAL_STATE)

    def update_display_with_current_link_position(self) -> Optional[SE3]:
        if self.target_type != TargetType.LINK or self._is_configuration_trial_running():
            return None
        T = self.calc_current_display_position()
        if T is None:
            return None
        if self._kinematics_kit is not None:
            self.reference_rpy = np.array(self._kinematics_kit.reference_rpy(), dtype=float)
        self._set_display_position(T)
        self.update_configuration_display()
        return T

    def on_kinematic_state_changed(self) -> None:
        """Refresh the display and the open feasibility table from the new pose."""
        self.update_display_with_current_link_position()
        resolver = self._configuration_resolver
        if (resolver is not None and resolver.state != ConfigurationState.EMPTY
                and not resolver.is_solver_in_use()):
            resolver.update_configuration_states()

    def update_display_with_position_edit_target(self) -> Optional[SE3]:
        target = self.position_edit_target
        if target is None:
            return None
        self.reference_rpy = np.zeros(3)
        T = target.position()
        self._set_display_position(T)
        return T

    def _set_display_position(self, T: SE3) -> None:
        self.display_position = T
        self.sig_display_position_changed.emit(T)

    def _set_result(self, result: ResultLabel) -> None:
        self.result = result
        self.sig_result_changed.emit(result)

    def _set_target_label(self, label: str) -> None:
        self.target_label = label
        self.sig_target_label_changed.emit(label)

    # ------------------------------------------------------------------
    # Configurations
    # ------------------------------------------------------------------

    def _set_configuration_interface_enabled(self, on: bool) -> None:
        self.configuration_interface_enabled = on
        if not on:
            self._set_configuration_label(NO_CONFIGURATION_LABEL)

    def _set_configuration_label(self, label: str) -> None:
        self.configuration_label = label
        self.sig_configuration_label_changed.emit(label)

    def initialize_configuration_interface(self) -> None:
        self.current_configuration_types = []

        kit = self._kinematics_kit
        is_configuration_valid = (
            kit is not None and not kit.is_custom_ik_disabled()
            and kit.configuration_handler() is not None)

        self._set_configuration_interface_enabled(is_configuration_valid)

        resolver = self._configuration_resolver
        if resolver is not None:
            if is_configuration_valid:
                resolver.update_configuration_types()
            else:
                resolver.reset()

    def update_configuration_display(self) -> None:
        """Label made of the distinct state names of the current configuration types."""
        kit = self._kinematics_kit
        if kit is None:
            return
        configuration = kit.configuration_handler()
        if configuration is None:
            return

        types = list(configuration.current_configuration_types())
        if types == self.current_configuration_types:
            return

        all_labels = [configuration.configuration_state_names(t) for t in types]
        max_num_labels = max((len(labels) for labels in all_labels), default=0)
        found = set()
        parts = []
        for i in range(max_num_labels):
            for labels in all_labels:
                if i < len(labels) and labels[i] not in found:
                    found.add(labels[i])
                    parts.append(labels[i])
        self._set_configuration_label("-".join(parts))
        self.current_configuration_types = types

    def open_configuration_resolver(self) -> Optional[ConfigurationResolver]:
        """
        Create (once) and populate the configuration resolver.

        Returns:
            The resolver, or None if the target has no configurations.
        """
        if self._configuration_resolver is None:
            self._configuration_resolver = ConfigurationResolver(self)
        if self._configuration_resolver.update_configuration_types():
            return self._configuration_resolver
        return None

    def set_custom_ik_disabled(self, on: bool) -> None:
        kit = self._kinematics_kit
        if kit is not None:
            kit.set_custom_ik_disabled(on)
            self.initialize_configuration_interface()
            self.update_display()

    # ------------------------------------------------------------------
    # Position edit targets
    # ------------------------------------------------------------------

    def set_position_edit_target(self, target: PositionEditTarget) -> bool:
        self.display_position = None
        self._target_connections.disconnect()

        self.target_type = TargetType.POSITION_EDIT
        self.position_edit_target = target
        self.base_frame = self.identity_frame
        self.link_frame = self.identity_frame

        self._target_connections.add(
            target.sig_position_changed.connect(
                lambda *args: self.update_display_with_position_edit_target()))
        self._target_connections.add(
            target.sig_position_edit_target_expired.connect(
                lambda *args: self.on_position_edit_target_expired(target)))

        self._set_target_label(target.position_name())
        self.enabled = target.is_editable()
        self._set_coordinate_frame_interface_enabled(False)
        self._set_configuration_interface_enabled(False)
        self.set_body_coordinate_mode_enabled(False)
        self._set_coordinate_mode_interface_enabled(False)
        self.sig_interface_changed.emit()

        self.update_display_with_position_edit_target()
        return True

    def on_position_edit_target_expired(self, target: PositionEditTarget) -> None:
        if target is not self.position_edit_target:
            return
        self._target_connections.disconnect()
        self.position_edit_target = None
        self.enabled = False
        self._set_target_label(NO_TARGET_LABEL)
        self.sig_interface_changed.emit()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def apply_position_input(self, T: SE3, rpy: Optional[np.ndarray] = None) -> bool:
        """
        Apply a pose entered by the operator.

        Args:
            T: Pose in the current coordinate mode and frames
            rpy: Roll-pitch-yaw the operator typed, kept as the reference for
                the next display. Derived from T when omitted.
        """
        if self.target_type == TargetType.LINK:
            return self.find_body_ik_solution(T, False, rpy)
        if self.target_type == TargetType.POSITION_EDIT:
            return self.apply_input_to_position_edit_target(T)
        return False

    def find_body_ik_solution(self, T_input: SE3, is_raw_T: bool,
                              rpy: Optional[np.ndarray] = None) -> bool:
        """
        Solve the target link for a pose as a body edit.

        Args:
            T_input: Operator input, or the link pose itself when is_raw_T
            is_raw_T: Skip the frame / mode mapping and the attitude normalization

        Returns:
            True if solved. On failure the edit is cancelled and the body is
            back to its state before the attempt.
        """
        kit = self._kinematics_kit
        ik = kit.inverse_kinematics() if kit is not None else None
        body_item = self._target_body_item
        if ik is None or body_item is None:
            logger.debug("No inverse kinematics for the current target")
            return False

        if rpy is not None:
            kit.set_reference_rpy(np.asarray(rpy, dtype=float))
        elif not is_raw_T:
            kit.set_reference_rpy(T_input.rpy())

        body_item.begin_kinematic_state_edit()

        try:
            if is_raw_T:
                solved = ik.calc_inverse_kinematics(T_input)
            else:
                solved = ik.calc_inverse_kinematics(self.calc_solver_position(T_input))
        except Exception:
            body_item.cancel_kinematic_state_edit()
            logger.error("IK solver failed for %s", self.target_label)
            self._set_result(NOT_SOLVED)
            raise

        if solved:
            ik.calc_remaining_part_forward_kinematics()
            body_item.notify_kinematic_state_change()
            body_item.accept_kinematic_state_edit()
            self._set_result(SOLVED)
        else:
            body_item.cancel_kinematic_state_edit()
            logger.info("IK not solved for %s", self.target_label)
            self._set_result(NOT_SOLVED)

        return solved

    def apply_input_to_position_edit_target(self, T_input: SE3) -> bool:
        target = self.position_edit_target
        if target is None:
            return False

        with self._target_connections.blocked():
            accepted = target.set_position(T_input)

        self._set_result(ACCEPTED if accepted else NOT_ACCEPTED)
        return accepted
