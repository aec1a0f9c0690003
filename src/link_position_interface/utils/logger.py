# utils/logger.py
import logging
import sys
from typing import Dict, Optional, Union

Level = Union[int, str]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: Level = logging.INFO, component_levels: Optional[Dict[str, Level]] = None):
    """
    Route resolver logs to stdout, one line per record tagged with the module logger.

    :param level: Level of the root logger.
    :param component_levels: Per-module overrides, for example
        {'link_position_interface.core.configuration_resolver': 'DEBUG'} to see
        every configuration trial.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", stream=sys.stdout)

    for component, component_level in (component_levels or {}).items():
        logging.getLogger(component).setLevel(component_level)


def setup_logging_from_config(config) -> None:
    """Apply the logging section of a LinkPositionConfig."""
    setup_logging(level=config.log_level, component_levels=config.component_log_levels)
