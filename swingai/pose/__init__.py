"""
Pose Data Module
================
Pose frame model, CSV/DataFrame adapters, trajectories and streaming window.
"""

from .frames import (BodyPart, Landmark, PoseFrame, check_frames, resolve_timestamps,
                     frames_to_dataframe, frames_from_dataframe, load_pose_csv)
from .trajectory import Trajectory, extract_trajectory
from .window import RollingPoseWindow

__all__ = ['BodyPart', 'Landmark', 'PoseFrame', 'check_frames', 'resolve_timestamps',
           'frames_to_dataframe', 'frames_from_dataframe', 'load_pose_csv',
           'Trajectory', 'extract_trajectory', 'RollingPoseWindow']
