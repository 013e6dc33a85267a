"""
Single-point trajectory extraction.

The phase segmenter tracks one landmark (the lead wrist by default). Frames
where it is not visible are marked invalid and filled by linear interpolation
between visible neighbours so the boundary search can index every frame.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from scipy.ndimage import uniform_filter1d

from .frames import PoseFrame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Trajectory:
    """Per-frame positions of one tracked landmark."""
    landmark: int
    positions: np.ndarray   # (N, 3), gaps filled
    valid: np.ndarray       # (N,) bool, True where the landmark was visible
    timestamps: np.ndarray  # (N,) milliseconds

    def __len__(self):
        return len(self.positions)

    @property
    def valid_count(self) -> int:
        return int(self.valid.sum())

    @property
    def x(self) -> np.ndarray:
        return self.positions[:, 0]

    @property
    def y(self) -> np.ndarray:
        return self.positions[:, 1]

    def smoothed(self, window: int) -> np.ndarray:
        """Moving-average smoothed positions, same shape as positions."""
        if window <= 1 or len(self.positions) < 2:
            return self.positions.copy()
        return uniform_filter1d(self.positions, size=window, axis=0, mode='nearest')

    def speeds(self, positions: np.ndarray = None) -> np.ndarray:
        """
        Point speed per frame (normalized units / second).

        speeds[i] is the speed between frame i-1 and i; speeds[0] = 0.
        """
        pts = self.positions if positions is None else positions
        result = np.zeros(len(pts))
        if len(pts) < 2:
            return result
        dt = np.diff(self.timestamps) / 1000.0
        dist = np.linalg.norm(np.diff(pts, axis=0), axis=1)
        result[1:] = np.where(dt > 0, dist / np.where(dt > 0, dt, 1.0), 0.0)
        return result


def extract_trajectory(frames: Sequence[PoseFrame], timestamps: np.ndarray,
                       landmark: int, min_visibility: float = 0.5) -> Trajectory:
    """
    Extract the per-frame path of one landmark.

    Args:
        frames: Pose frames
        timestamps: Per-frame timestamps in ms
        landmark: BodyPart index to track
        min_visibility: Visibility threshold for valid samples

    Returns:
        Trajectory with invalid frames interpolated (or zero when nothing is visible)
    """
    n = len(frames)
    positions = np.zeros((n, 3))
    valid = np.zeros(n, dtype=bool)

    for i, frame in enumerate(frames):
        point = frame.point(landmark, min_visibility)
        if point is not None:
            positions[i] = point
            valid[i] = True

    if valid.any() and not valid.all():
        idx = np.arange(n)
        for axis in range(3):
            positions[~valid, axis] = np.interp(idx[~valid], idx[valid], positions[valid, axis])
        logger.debug("Interpolated %d of %d trajectory samples", int((~valid).sum()), n)

    return Trajectory(landmark=int(landmark), positions=positions, valid=valid,
                      timestamps=np.asarray(timestamps, dtype=float))
