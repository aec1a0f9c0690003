from __future__ import annotations
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Any, List, Optional, Sequence, Tuple, Union
import numpy as np
from scipy.spatial.transform import Rotation

'''
Value types shared by the resolvers

- `GeneralId` = identity of a coordinate frame (integer or string)
- `SE3` = rigid transform (translation + quaternion)
- `KinematicsTarget` = which link is edited and through which frames
- `FrameCandidateList` = entries offered for picking a base / link frame
- `ConfigurationCandidate` = one row of the IK configuration feasibility table
- `ResultLabel` = status text shown after an edit attempt
'''


class GeneralId:
    """Identifier that is either a non-negative integer or a non-empty string.

    Two ids are equal only when both the kind (int / str) and the value match,
    so GeneralId(1) != GeneralId("1"). The integer 0 is the default (origin) id.
    Anything else (None, negative integers, empty strings, bools) makes an
    invalid id.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[int, str, "GeneralId", None] = None):
        if isinstance(value, GeneralId):
            value = value._value
        if isinstance(value, bool):
            value = None
        elif isinstance(value, (int, np.integer)):
            value = int(value) if value >= 0 else None
        elif isinstance(value, str):
            value = value if value else None
        else:
            value = None
        self._value = value

    @classmethod
    def default_id(cls) -> "GeneralId":
        return cls(0)

    @property
    def value(self) -> Union[int, str, None]:
        return self._value

    def is_valid(self) -> bool:
        return self._value is not None

    def is_int(self) -> bool:
        return isinstance(self._value, int)

    def is_string(self) -> bool:
        return isinstance(self._value, str)

    def to_int(self) -> int:
        return self._value if self.is_int() else -1

    def to_string(self) -> str:
        return self._value if self.is_string() else ""

    @property
    def label(self) -> str:
        if self._value is None:
            return ""
        return str(self._value)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, GeneralId):
            return NotImplemented
        return type(self._value) is type(other._value) and self._value == other._value

    def __hash__(self) -> int:
        return hash((type(self._value).__name__, self._value))

    def __repr__(self) -> str:
        return f"GeneralId({self._value!r})"


@dataclass(frozen=True)
class SE3:
    p: np.ndarray  # (3,)
    q: np.ndarray  # (4,) quaternion (x,y,z,w)

    def __post_init__(self):
        object.__setattr__(self, "p", np.asarray(self.p, dtype=float).reshape(3))
        object.__setattr__(self, "q", np.asarray(self.q, dtype=float).reshape(4))

    @classmethod
    def identity(cls) -> "SE3":
        return cls(p=np.zeros(3), q=np.array([0.0, 0.0, 0.0, 1.0]))

    @classmethod
    def from_rotation(cls, R: np.ndarray, p: Optional[Sequence[float]] = None) -> "SE3":
        """Build from a 3x3 rotation matrix and an optional translation."""
        if p is None:
            p = np.zeros(3)
        return cls(p=p, q=Rotation.from_matrix(np.asarray(R, dtype=float)).as_quat())

    @classmethod
    def from_matrix(cls, T: np.ndarray) -> "SE3":
        T = np.asarray(T, dtype=float)
        return cls.from_rotation(T[:3, :3], T[:3, 3])

    @classmethod
    def from_xyz_rpy(cls, xyz: Sequence[float], rpy: Sequence[float]) -> "SE3":
        """rpy is roll, pitch, yaw in radians about the fixed x, y, z axes."""
        return cls(p=xyz, q=Rotation.from_euler("xyz", rpy).as_quat())

    @property
    def rotation(self) -> np.ndarray:
        return Rotation.from_quat(self.q).as_matrix()

    def rpy(self) -> np.ndarray:
        return Rotation.from_quat(self.q).as_euler("xyz")

    def as_matrix(self) -> np.ndarray:
        T = np.eye(4)
        T[:3, :3] = self.rotation
        T[:3, 3] = self.p
        return T

    def inverse(self) -> "SE3":
        R_inv = Rotation.from_quat(self.q).inv()
        return SE3(p=-R_inv.apply(self.p), q=R_inv.as_quat())

    def with_rotation(self, R: np.ndarray) -> "SE3":
        return SE3.from_rotation(R, self.p)

    def __matmul__(self, other: "SE3") -> "SE3":
        if not isinstance(other, SE3):
            return NotImplemented
        r1 = Rotation.from_quat(self.q)
        return SE3(p=self.p + r1.apply(other.p), q=(r1 * Rotation.from_quat(other.q)).as_quat())

    def is_close(self, other: "SE3", atol: float = 1e-9) -> bool:
        # Compare rotation matrices since q and -q are the same rotation
        return (np.allclose(self.p, other.p, atol=atol)
                and np.allclose(self.rotation, other.rotation, atol=atol))


class FrameMode(IntEnum):
    LOCAL = 0
    GLOBAL = 1


class UpdateFlag(IntFlag):
    ID_UPDATE = 1 << 0
    MODE_UPDATE = 1 << 1
    NOTE_UPDATE = 1 << 2
    POSITION_UPDATE = 1 << 3


class FrameType(IntEnum):
    WORLD = 0
    BODY = 1
    LINK = 2


class CoordinateMode(IntEnum):
    WORLD = 0
    BODY = 1
    LOCAL = 2


class FrameComboType(IntEnum):
    BASE = 0
    LINK = 1


class TargetLinkType(IntEnum):
    ANY_LINK = 0
    ROOT_OR_IK_LINK = 1
    IK_LINK = 2


class TargetType(IntEnum):
    LINK = 0
    POSITION_EDIT = 1


class SortOrder(IntEnum):
    ASCENDING = 0
    DESCENDING = 1


@dataclass(frozen=True)
class KinematicsTarget:
    link: Any
    body: Any
    base_frame: Any  # CoordinateFrame
    link_frame: Any  # CoordinateFrame
    coordinate_mode: CoordinateMode


@dataclass(frozen=True)
class FrameCandidate:
    id: GeneralId
    label: str


@dataclass(frozen=True)
class FrameCandidateList:
    candidates: Tuple[FrameCandidate, ...] = ()
    current_index: int = 0

    @property
    def labels(self) -> List[str]:
        return [c.label for c in self.candidates]

    def index_of(self, frame_id: GeneralId) -> int:
        for i, candidate in enumerate(self.candidates):
            if candidate.id == frame_id:
                return i
        return -1

    def __len__(self) -> int:
        return len(self.candidates)


@dataclass
class ConfigurationCandidate:
    number: int  # 1-based row number, the "No" column
    type_id: int
    state_labels: List[str] = field(default_factory=list)
    feasible: bool = False


@dataclass(frozen=True)
class ResultLabel:
    text: str = ""
    is_error: bool = False


SOLVED = ResultLabel("Solved")
NOT_SOLVED = ResultLabel("Not Solved", is_error=True)
ACCEPTED = ResultLabel("Accepted")
NOT_ACCEPTED = ResultLabel("Not Accepted", is_error=True)
ACTUAL_STATE = ResultLabel("Actual State")
NO_RESULT = ResultLabel("")
