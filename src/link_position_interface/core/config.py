from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type, TypeVar
from enum import IntEnum
import yaml

from .contracts import CoordinateMode, TargetLinkType

E = TypeVar("E", bound=IntEnum)


@dataclass
class LinkPositionConfig:
    # Frames
    world_origin_name: str = "World Origin"
    body_origin_name: str = "Origin"
    link_origin_name: str = "Origin"

    # Labels
    coordinate_mode_labels: Tuple[str, str, str] = ("World", "Body", "Local")
    frame_combo_labels: Tuple[str, str] = ("Base", "End")

    # Target
    target_link_type: TargetLinkType = TargetLinkType.ROOT_OR_IK_LINK
    coordinate_mode: CoordinateMode = CoordinateMode.WORLD
    preferred_coordinate_mode: CoordinateMode = CoordinateMode.BODY

    # Logging
    log_level: str = "INFO"
    component_log_levels: Dict[str, str] = field(default_factory=dict)

    @property
    def default_frame_names(self) -> Tuple[str, str, str]:
        return (self.world_origin_name, self.body_origin_name, self.link_origin_name)


def default_config() -> LinkPositionConfig:
    return LinkPositionConfig()


def _symbol(enum_type: Type[E], value: Any, key: str) -> E:
    """Enum value from a lower-case symbol such as 'root_or_ik_link'."""
    if isinstance(value, str):
        member = enum_type.__members__.get(value.upper())
        if member is not None:
            return member
    raise ValueError(f"Invalid value for '{key}': {value!r}")


def load_config(path: Optional[str] = None) -> LinkPositionConfig:
    """
    Load the link position settings from a YAML file.

    Sections that are missing keep their defaults.

    Raises:
        ValueError: if a symbol (target link type, coordinate mode) is unknown
            or a label list has the wrong length.
    """
    config = default_config()
    if path is None:
        return config

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    frames = data.get("frames", {}) or {}
    config.world_origin_name = str(frames.get("world_origin_name", config.world_origin_name))
    config.body_origin_name = str(frames.get("body_origin_name", config.body_origin_name))
    config.link_origin_name = str(frames.get("link_origin_name", config.link_origin_name))

    labels = data.get("labels", {}) or {}
    if "coordinate_modes" in labels:
        mode_labels = tuple(str(x) for x in labels["coordinate_modes"])
        if len(mode_labels) != 3:
            raise ValueError("'labels.coordinate_modes' needs three labels")
        config.coordinate_mode_labels = mode_labels
    if "frame_combos" in labels:
        combo_labels = tuple(str(x) for x in labels["frame_combos"])
        if len(combo_labels) != 2:
            raise ValueError("'labels.frame_combos' needs two labels")
        config.frame_combo_labels = combo_labels

    target = data.get("target", {}) or {}
    if "link_type" in target:
        config.target_link_type = _symbol(TargetLinkType, target["link_type"], "target.link_type")
    if "coordinate_mode" in target:
        config.coordinate_mode = _symbol(
            CoordinateMode, target["coordinate_mode"], "target.coordinate_mode")
    if "preferred_coordinate_mode" in target:
        config.preferred_coordinate_mode = _symbol(
            CoordinateMode, target["preferred_coordinate_mode"], "target.preferred_coordinate_mode")

    logging_section = data.get("logging", {}) or {}
    config.log_level = str(logging_section.get("level", config.log_level)).upper()
    config.component_log_levels = {
        str(k): str(v).upper() for k, v in (logging_section.get("components", {}) or {}).items()
    }

    return config


def project_config_path() -> Path:
    """Path of the sample configuration shipped with the repository."""
    return Path(__file__).parent.parent.parent.parent / "configs" / "link_position.yaml"
