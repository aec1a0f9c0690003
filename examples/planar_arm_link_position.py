#!/usr/bin/env python3
"""
Link Position Demo for the planar three-joint arm.

This example drives the transform and configuration resolvers the way an
interactive "move this link" panel would: it picks a link, shows its pose
in the selected coordinate mode and frames, enters new poses, and lists the
IK configurations (elbow up / elbow down) with their feasibility.

Steps:
------
1. Pick a link (a link without IK is redirected to the hand)
2. Show the hand pose in world and body coordinates
3. Add a tool frame on the hand and select it
4. Move the tool frame forward along x through the IK solver
5. List the configurations and apply the other elbow branch
6. Try an unreachable pose (rolled back, "Not Solved")

Usage:
------
1. Basic demo:
   python examples/planar_arm_link_position.py

2. Custom configuration file and elbow limits:
   python examples/planar_arm_link_position.py --config configs/link_position.yaml --elbow-limits -2.5 0.3

3. Verbose solver output:
   python examples/planar_arm_link_position.py --log-level DEBUG
"""

import argparse
import sys
from typing import Optional

import numpy as np

from link_position_interface.core.config import LinkPositionConfig, load_config, project_config_path
from link_position_interface.core.contracts import SE3, CoordinateMode, FrameComboType, FrameType
from link_position_interface.core.coordinate_frame import CoordinateFrame
from link_position_interface.core.transform_resolver import TransformResolver
from link_position_interface.plugins.robots.planar_arm import create_planar_arm_item
from link_position_interface.utils.logger import setup_logging, setup_logging_from_config


def format_pose(T: Optional[SE3]) -> str:
    if T is None:
        return "(none)"
    rpy = np.degrees(T.rpy())
    return (f"xyz=[{T.p[0]:+.4f}, {T.p[1]:+.4f}, {T.p[2]:+.4f}] "
            f"rpy=[{rpy[0]:+.1f}, {rpy[1]:+.1f}, {rpy[2]:+.1f}] deg")


class LinkPositionDemo:
    """
    Runs the link position workflow against a planar arm.
    """

    def __init__(
        self,
        config: LinkPositionConfig,
        link_name: str = "FOREARM",
        lengths=(0.4, 0.3, 0.1),
        elbow_limits=(-np.pi, np.pi),
        tool_offset: float = 0.05,
        step: float = 0.05,
    ):
        """
        Initialize the demo.

        Args:
            config: Link position settings
            link_name: Link picked first
            lengths: Upper arm, forearm and hand lengths (m)
            elbow_limits: Elbow joint limits (rad)
            tool_offset: Tool frame offset from the hand along x (m)
            step: Distance the tool is moved (m)
        """
        self.config = config
        self.link_name = link_name
        self.tool_offset = tool_offset
        self.step = step

        joint_limits = [(-np.pi, np.pi), tuple(elbow_limits), (-np.pi, np.pi)]
        self.item = create_planar_arm_item("PlanarArm", lengths, joint_limits)
        self.item.body().set_joint_positions([0.3, -0.8, 0.4])
        self.item.body().calc_forward_kinematics()

        self.resolver = TransformResolver(config)
        self.resolver.sig_result_changed.connect(self._on_result)

        print(f"Planar arm created:")
        print(f"  Links: {[link.name for link in self.item.body().links]}")
        print(f"  Lengths: {list(lengths)} m")
        print(f"  Elbow limits: [{elbow_limits[0]:.2f}, {elbow_limits[1]:.2f}] rad")

    def _on_result(self, result) -> None:
        if result.text:
            mark = "❌" if result.is_error else "✓"
            print(f"  {mark} {result.text}")

    def _print_target(self) -> None:
        resolver = self.resolver
        mode = self.config.coordinate_mode_labels[resolver.coordinate_mode]
        print(f"  Target: {resolver.target_label}")
        print(f"  Mode: {mode}")
        for combo in FrameComboType:
            candidates = resolver.frame_candidates[combo]
            label = self.config.frame_combo_labels[combo]
            print(f"  {label} frames: {candidates.labels} (selected {candidates.current_index})")
        print(f"  Pose: {format_pose(resolver.display_position)}")
        print(f"  Configuration: {resolver.configuration_label}")

    def run(self) -> bool:
        resolver = self.resolver
        body = self.item.body()

        print(f"\n{'='*70}")
        print("Link Position Demo")
        print(f"{'='*70}")

        # 1. Pick a link
        print(f"\n[1] Picking link {self.link_name}")
        resolver.set_target_body_and_link(self.item, body.link(self.link_name))
        if not resolver.enabled:
            print("  ⚠️  No kinematics for the picked link")
            return False
        self._print_target()

        # 2. World and body coordinates
        print("\n[2] Coordinate modes")
        for mode in (CoordinateMode.WORLD, CoordinateMode.BODY):
            if resolver.on_coordinate_mode_selected(mode):
                print(f"  {self.config.coordinate_mode_labels[mode]}: "
                      f"{format_pose(resolver.display_position)}")
        resolver.on_coordinate_mode_selected(CoordinateMode.WORLD)

        # 3. Tool frame
        print("\n[3] Adding tool frame")
        tool = CoordinateFrame(1)
        tool.set_note("Tool")
        tool.set_position(SE3(p=[self.tool_offset, 0.0, 0.0], q=[0.0, 0.0, 0.0, 1.0]))
        kit = resolver.kinematics_kit
        kit.frame_set(FrameType.LINK).append(tool)
        index = resolver.frame_candidates[FrameComboType.LINK].index_of(tool.id)
        resolver.on_frame_candidate_selected(FrameComboType.LINK, index)
        self._print_target()

        # 4. Move the tool
        print(f"\n[4] Moving the tool {self.step:.3f} m along x")
        T = resolver.display_position
        T_goal = SE3(p=T.p + np.array([self.step, 0.0, 0.0]), q=T.q)
        resolver.apply_position_input(T_goal)
        print(f"  Pose: {format_pose(resolver.display_position)}")
        print(f"  Joints: {np.round(body.joint_positions(), 4).tolist()}")

        # 5. Configurations
        print("\n[5] Configurations")
        configuration = resolver.open_configuration_resolver()
        if configuration is None:
            print("  ⚠️  No configurations for this target")
        else:
            print(f"  {configuration.title}")
            print(f"  {' | '.join(configuration.header_labels)} | Feasible")
            for row in configuration.ordered_candidates():
                print(f"  {row.number} | {' | '.join(row.state_labels)} | {row.feasible}")

            configuration.set_feasible_only(True)
            current = resolver.current_configuration_types
            others = [row for row in configuration.visible_candidates() if row.type_id not in current]
            if others:
                print(f"  Applying {'-'.join(others[0].state_labels)}")
                configuration.apply_configuration(others[0].type_id)
                print(f"  Joints: {np.round(body.joint_positions(), 4).tolist()}")
                print(f"  Configuration: {resolver.configuration_label}")
            else:
                print("  No other feasible configuration")

        # 6. Unreachable pose
        print("\n[6] Unreachable pose")
        q_before = body.joint_positions()
        resolver.apply_position_input(SE3(p=[5.0, 0.0, 0.0], q=[0.0, 0.0, 0.0, 1.0]))
        rolled_back = np.allclose(q_before, body.joint_positions())
        print(f"  Body rolled back: {rolled_back}")

        print(f"\n{'='*70}\n")
        resolver.release()
        return rolled_back


def main():
    """Main entry point for the link position demo."""
    default_config = project_config_path()

    parser = argparse.ArgumentParser(
        description='Link Position Demo for a planar arm',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic demo
  python examples/planar_arm_link_position.py

  # Elbow limits that leave only one configuration feasible
  python examples/planar_arm_link_position.py --elbow-limits -2.5 0.3
        """
    )
    parser.add_argument(
        '--config',
        type=str,
        default=str(default_config),
        help=f'Path to the YAML settings (default: {default_config})'
    )
    parser.add_argument(
        '--link',
        type=str,
        default='FOREARM',
        help='Link picked first (default: FOREARM)'
    )
    parser.add_argument(
        '--lengths',
        type=float,
        nargs=3,
        default=[0.4, 0.3, 0.1],
        metavar=('L1', 'L2', 'L3'),
        help='Link lengths in meters (default: 0.4 0.3 0.1)'
    )
    parser.add_argument(
        '--elbow-limits',
        type=float,
        nargs=2,
        default=[-np.pi, np.pi],
        metavar=('LOWER', 'UPPER'),
        help='Elbow joint limits in radians'
    )
    parser.add_argument(
        '--step',
        type=float,
        default=0.05,
        help='Tool displacement in meters (default: 0.05)'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        help='Override the log level of the settings file'
    )

    args = parser.parse_args()

    try:
        config = load_config(args.config)
        if args.log_level:
            setup_logging(args.log_level.upper(), config.component_log_levels)
        else:
            setup_logging_from_config(config)

        demo = LinkPositionDemo(
            config,
            link_name=args.link,
            lengths=args.lengths,
            elbow_limits=args.elbow_limits,
            step=args.step,
        )
        ok = demo.run()
    except (OSError, ValueError) as e:
        print(f"\n❌ Error: {e}")
        sys.exit(1)

    sys.exit(0 if ok else 1)


if __name__ == '__main__':
    main()
