"""
Coordinate frames attachable to a kinematic chain.

A CoordinateFrameList owns its frames. Each frame keeps only a weak
reference back to the list, which is used for the id uniqueness check.
Once the list is gone (or the frame was removed from it) the frame is
detached: still usable as a transform, no longer bound by uniqueness.
"""

import logging
import weakref
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

import numpy as np
from scipy.spatial.transform import Rotation

from .contracts import GeneralId, SE3, FrameMode, UpdateFlag
from .signals import Connection, Signal

logger = logging.getLogger(__name__)

IdLike = Union[GeneralId, int, str]


class CoordinateFrame:
    """
    Rigid transform with an id, a local/global mode and a free-form note.

    Mutations are reported on sig_updated with a bit mask of UpdateFlag
    values so that observers can skip unaffected recomputation.

    Example:
        frame = CoordinateFrame(5)
        frame.set_note("Grasp")
        frame.set_position(SE3.from_xyz_rpy([0.1, 0.0, 0.0], [0.0, 0.0, 0.0]))
    """

    def __init__(self, id: Optional[IdLike] = None, owner: Optional["CoordinateFrameList"] = None):
        """
        Args:
            id: Frame id. The default (origin) id 0 is used when omitted.
            owner: List the frame formally belongs to. Normally set by the
                list itself when the frame is appended.
        """
        self._id = GeneralId.default_id() if id is None else GeneralId(id)
        self._T = SE3.identity()
        self._mode = FrameMode.LOCAL
        self._note = ""
        self._owner_ref: Optional[weakref.ref] = weakref.ref(owner) if owner is not None else None
        self.sig_updated = Signal()

    def clone(self) -> "CoordinateFrame":
        """Detached copy with the same id, transform, mode and note."""
        frame = CoordinateFrame(self._id)
        frame._T = self._T
        frame._mode = self._mode
        frame._note = self._note
        return frame

    @property
    def id(self) -> GeneralId:
        return self._id

    def reset_id(self, id: IdLike) -> bool:
        """
        Change the frame id.

        Returns:
            False, without any change or notification, if the id is invalid
            or already used by another frame of the owning list.
        """
        new_id = GeneralId(id)
        if not self._assign_id(new_id):
            return False
        self.notify_update(UpdateFlag.ID_UPDATE)
        return True

    def _assign_id(self, new_id: GeneralId) -> bool:
        if not new_id.is_valid():
            logger.debug("Rejected invalid frame id %r", new_id)
            return False
        owner = self.owner_frame_list
        if owner is not None:
            return owner._reset_frame_id(self, new_id)
        self._id = new_id
        return True

    @property
    def mode(self) -> FrameMode:
        return self._mode

    def set_mode(self, mode: Any) -> bool:
        """Returns False if mode is not one of the FrameMode values."""
        if isinstance(mode, (bool, np.bool_)) or not isinstance(mode, (int, np.integer)):
            logger.debug("Rejected frame mode %r for frame %r", mode, self._id)
            return False
        try:
            mode = FrameMode(mode)
        except (ValueError, TypeError):
            logger.debug("Rejected frame mode %r for frame %r", mode, self._id)
            return False
        self._mode = mode
        self.notify_update(UpdateFlag.MODE_UPDATE)
        return True

    def is_local(self) -> bool:
        return self._mode == FrameMode.LOCAL

    def is_global(self) -> bool:
        return self._mode == FrameMode.GLOBAL

    @property
    def T(self) -> SE3:
        return self._T

    @property
    def position(self) -> SE3:
        return self._T

    def set_position(self, T: SE3) -> None:
        self._T = T
        self.notify_update(UpdateFlag.POSITION_UPDATE)

    @property
    def note(self) -> str:
        return self._note

    def set_note(self, note: str, do_notify: bool = False) -> None:
        self._note = note
        if do_notify:
            self.notify_update(UpdateFlag.NOTE_UPDATE)

    @property
    def owner_frame_list(self) -> Optional["CoordinateFrameList"]:
        if self._owner_ref is None:
            return None
        return self._owner_ref()

    def notify_update(self, flags: int) -> None:
        self.sig_updated.emit(UpdateFlag(flags))

    def read(self, archive: Mapping[str, Any]) -> bool:
        """
        Load the frame from a persistence record.

        Each field is loaded on its own: a malformed id or mode fails that
        field only, and a missing position keeps the current transform.
        No notification is emitted.

        Returns:
            True if every present field was loaded.
        """
        ok = True

        if "id" in archive:
            new_id = GeneralId(archive["id"])
            if not new_id.is_valid() or not self._assign_id(new_id):
                logger.info("Frame record has an unusable id: %r", archive["id"])
                ok = False

        if "mode" in archive:
            mode = archive["mode"]
            if isinstance(mode, str):
                mode = FrameMode.__members__.get(mode.upper(), mode)
            try:
                if isinstance(mode, bool):
                    raise ValueError(mode)
                self._mode = FrameMode(mode)
            except (ValueError, TypeError):
                logger.info("Frame record has an unknown mode: %r", archive["mode"])
                ok = False

        if "note" in archive:
            note = archive["note"]
            if isinstance(note, str):
                self._note = note
            else:
                ok = False

        if "translation" in archive or "rotation" in archive:
            try:
                p = self._T.p
                R = self._T.rotation
                if "translation" in archive:
                    p = np.asarray(archive["translation"], dtype=float).reshape(3)
                if "rotation" in archive:
                    aa = np.asarray(archive["rotation"], dtype=float).reshape(4)
                    axis = aa[:3]
                    norm = np.linalg.norm(axis)
                    if norm == 0.0:
                        raise ValueError("zero rotation axis")
                    R = Rotation.from_rotvec(axis / norm * np.radians(aa[3])).as_matrix()
                self._T = SE3.from_rotation(R, p)
            except (ValueError, TypeError) as e:
                logger.info("Frame record has a malformed position: %s", e)
                ok = False

        return ok

    def write(self) -> Dict[str, Any]:
        rotvec = Rotation.from_quat(self._T.q).as_rotvec()
        angle = float(np.linalg.norm(rotvec))
        axis = rotvec / angle if angle > 0.0 else np.array([0.0, 0.0, 1.0])
        return {
            "id": self._id.value,
            "mode": int(self._mode),
            "note": self._note,
            "translation": [float(x) for x in self._T.p],
            "rotation": [float(x) for x in axis] + [float(np.degrees(angle))],
        }

    def __repr__(self) -> str:
        return f"CoordinateFrame(id={self._id.value!r}, mode={self._mode.name}, note={self._note!r})"


class CoordinateFrameList:
    """
    Ordered set of coordinate frames with unique ids.

    The list can reserve its first element as the default frame (id 0,
    identity transform). The default frame is never offered as a findable
    frame and cannot be removed.
    """

    def __init__(self, frames: Optional[List[CoordinateFrame]] = None,
                 first_element_as_default: bool = False):
        self._frames: List[CoordinateFrame] = []
        self._id_to_frame: Dict[GeneralId, CoordinateFrame] = {}
        self._unfindable_frames: set = set()
        self._connections: Dict[CoordinateFrame, Connection] = {}
        self._has_default_frame = False

        self.sig_frame_added = Signal()    # (index)
        self.sig_frame_removed = Signal()  # (index, frame)
        self.sig_frame_updated = Signal()  # (index, flags)

        if first_element_as_default:
            self.set_first_element_as_default_frame(True)
        for frame in frames or []:
            self.append(frame)

    def set_first_element_as_default_frame(self, on: bool = True) -> None:
        if on == self._has_default_frame:
            return
        if on:
            default_id = GeneralId.default_id()
            frame = self._id_to_frame.get(default_id)
            if frame is None:
                frame = CoordinateFrame(default_id)
                self._insert(0, frame)
            elif self._frames[0] is not frame:
                self._frames.remove(frame)
                self._frames.insert(0, frame)
            self._unfindable_frames.add(frame)
            self._has_default_frame = True
        else:
            self._has_default_frame = False
            if self._frames:
                self._unfindable_frames.discard(self._frames[0])

    def has_first_element_as_default_frame(self) -> bool:
        return self._has_default_frame

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[CoordinateFrame]:
        return iter(list(self._frames))

    def num_frames(self) -> int:
        return len(self._frames)

    def frame_at(self, index: int) -> CoordinateFrame:
        return self._frames[index]

    def frame_index(self, frame: CoordinateFrame) -> int:
        for i, member in enumerate(self._frames):
            if member is frame:
                return i
        return -1

    def contains(self, frame: CoordinateFrame) -> bool:
        return self.frame_index(frame) >= 0

    def contains_id(self, id: IdLike) -> bool:
        return GeneralId(id) in self._id_to_frame

    def find_frame(self, id: IdLike, default_if_not_found: bool = False) -> Optional[CoordinateFrame]:
        frame = self._id_to_frame.get(GeneralId(id))
        if frame is None and default_if_not_found and self._has_default_frame:
            return self._frames[0]
        return frame

    def append(self, frame: CoordinateFrame) -> bool:
        return self.insert(len(self._frames), frame)

    def insert(self, index: int, frame: CoordinateFrame) -> bool:
        """
        Returns:
            False if the frame id is invalid or already used, or if the frame
            belongs to another list.
        """
        if not frame.id.is_valid() or frame.id in self._id_to_frame:
            logger.debug("Rejected frame %r: id is invalid or already used", frame.id)
            return False
        owner = frame.owner_frame_list
        if owner is not None and owner is not self and owner.contains(frame):
            logger.debug("Rejected frame %r: owned by another list", frame.id)
            return False
        index = max(0, min(index, len(self._frames)))
        if self._has_default_frame and index == 0:
            index = 1
        self._insert(index, frame)
        self.sig_frame_added.emit(index)
        return True

    def _insert(self, index: int, frame: CoordinateFrame) -> None:
        self._frames.insert(index, frame)
        self._id_to_frame[frame.id] = frame
        frame._owner_ref = weakref.ref(self)

        # The handler must not keep the list alive through its frames
        list_ref = weakref.ref(self)

        def on_frame_updated(flags, frame=frame):
            frame_list = list_ref()
            if frame_list is not None:
                frame_list._on_frame_updated(frame, flags)

        self._connections[frame] = frame.sig_updated.connect(on_frame_updated)

    def remove_at(self, index: int) -> bool:
        if index < 0 or index >= len(self._frames):
            return False
        if self._has_default_frame and index == 0:
            logger.debug("The default frame cannot be removed")
            return False
        frame = self._frames.pop(index)
        del self._id_to_frame[frame.id]
        self._unfindable_frames.discard(frame)
        connection = self._connections.pop(frame, None)
        if connection is not None:
            connection.disconnect()
        frame._owner_ref = None
        self.sig_frame_removed.emit(index, frame)
        return True

    def remove(self, frame: CoordinateFrame) -> bool:
        return self.remove_at(self.frame_index(frame))

    def clear(self) -> None:
        first = 1 if self._has_default_frame else 0
        while len(self._frames) > first:
            self.remove_at(len(self._frames) - 1)

    def set_frame_findable(self, frame: CoordinateFrame, on: bool = True) -> None:
        if not self.contains(frame):
            return
        if self._has_default_frame and frame is self._frames[0]:
            return
        if on:
            self._unfindable_frames.discard(frame)
        else:
            self._unfindable_frames.add(frame)

    def is_frame_findable(self, frame: CoordinateFrame) -> bool:
        return self.contains(frame) and frame not in self._unfindable_frames

    def findable_frames(self) -> List[CoordinateFrame]:
        return [frame for frame in self._frames if frame not in self._unfindable_frames]

    def _reset_frame_id(self, frame: CoordinateFrame, new_id: GeneralId) -> bool:
        holder = self._id_to_frame.get(new_id)
        if holder is not None and holder is not frame:
            logger.debug("Rejected frame id %r: already used in the list", new_id)
            return False
        if self.contains(frame):
            if self._has_default_frame and frame is self._frames[0]:
                logger.debug("The id of the default frame cannot be changed")
                return False
            del self._id_to_frame[frame._id]
            self._id_to_frame[new_id] = frame
        frame._id = new_id
        return True

    def _on_frame_updated(self, frame: CoordinateFrame, flags: UpdateFlag) -> None:
        index = self.frame_index(frame)
        if index >= 0:
            self.sig_frame_updated.emit(index, flags)

    def read(self, archive: Mapping[str, Any]) -> bool:
        """
        Replace the frames with those of a persistence record.

        Records without a usable id or with a duplicated id are skipped.

        Returns:
            True if every record was loaded completely.
        """
        self.clear()
        ok = True
        for record in archive.get("frames", []):
            frame = CoordinateFrame(GeneralId())
            loaded = frame.read(record)
            if not frame.id.is_valid() or not self.append(frame):
                logger.info("Skipped frame record %r", record.get("id") if hasattr(record, "get") else record)
                ok = False
                continue
            ok = ok and loaded
        return ok

    def write(self) -> Dict[str, Any]:
        first = 1 if self._has_default_frame else 0
        return {"frames": [frame.write() for frame in self._frames[first:]]}
