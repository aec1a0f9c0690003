"""
Link position interface: kinematic target resolution and IK configuration
selection for interactive "move this link to this pose" tools.
"""

__version__ = "0.1.0"
