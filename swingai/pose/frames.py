"""
Pose frame data model

Immutable per-frame landmark snapshots as delivered by the external pose
source, plus pandas adapters for the per-frame CSV layout
(frame, <landmark>_x, <landmark>_y, <landmark>_z, <landmark>_visibility).
"""

import logging
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..constants import LANDMARK_NAMES, NUM_LANDMARKS
from ..errors import FatalInputError

logger = logging.getLogger(__name__)


class BodyPart(IntEnum):
    """MediaPipe pose landmark indices."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32

    @classmethod
    def for_side(cls, side: str, joint: str) -> 'BodyPart':
        """BodyPart.for_side('left', 'wrist') -> LEFT_WRIST"""
        return cls[f"{side}_{joint}".upper()]


@dataclass(frozen=True)
class Landmark:
    """Single 3-D landmark in frame-normalized coordinates."""
    x: float
    y: float
    z: float = 0.0
    visibility: float = 0.0

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    def is_visible(self, threshold: float = 0.5) -> bool:
        # zero visibility or a non-finite coordinate is never evidence, whatever the threshold
        return self.visibility > 0 and self.visibility >= threshold and self.is_finite()

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)


@dataclass(frozen=True)
class PoseFrame:
    """One timestamped snapshot of the 33 pose landmarks."""
    landmarks: tuple
    timestamp_ms: Optional[float] = None

    def get_landmark(self, part: int) -> Optional[Landmark]:
        """Get a landmark by index, or None if the frame does not carry it."""
        if 0 <= int(part) < len(self.landmarks):
            return self.landmarks[int(part)]
        return None

    def visible(self, part: int, threshold: float = 0.5) -> Optional[Landmark]:
        """Get a landmark only if it is usable as evidence."""
        landmark = self.get_landmark(part)
        if landmark is not None and landmark.is_visible(threshold):
            return landmark
        return None

    def point(self, part: int, threshold: float = 0.5) -> Optional[np.ndarray]:
        landmark = self.visible(part, threshold)
        return landmark.to_array() if landmark is not None else None

    def mean_visibility(self, parts: Optional[Iterable[int]] = None) -> float:
        indices = list(parts) if parts is not None else range(len(self.landmarks))
        values = [self.landmarks[i].visibility for i in indices if i < len(self.landmarks)]
        return float(np.mean(values)) if values else 0.0

    @classmethod
    def from_values(cls, values: Sequence[float], timestamp_ms: Optional[float] = None) -> 'PoseFrame':
        """Build a frame from a flat [x0, y0, z0, vis0, x1, ...] sequence."""
        if len(values) % 4 != 0:
            raise FatalInputError(f"Flat landmark row must be a multiple of 4 values, got {len(values)}")
        landmarks = tuple(
            Landmark(float(values[i]), float(values[i + 1]), float(values[i + 2]), float(values[i + 3]))
            for i in range(0, len(values), 4)
        )
        return cls(landmarks=landmarks, timestamp_ms=timestamp_ms)


def check_frames(frames) -> List[PoseFrame]:
    """
    Reject unusable top-level input.

    Raises:
        FatalInputError: empty sequence, non-PoseFrame items, or no landmarks at all
    """
    if frames is None:
        raise FatalInputError("No pose frames supplied")
    frames = list(frames)
    if not frames:
        raise FatalInputError("Pose frame sequence is empty")
    for i, frame in enumerate(frames):
        if not isinstance(frame, PoseFrame):
            raise FatalInputError(f"Frame {i} is {type(frame).__name__}, expected PoseFrame")
    if all(len(frame.landmarks) == 0 for frame in frames):
        raise FatalInputError("No landmarks in any frame")
    short = sum(1 for frame in frames if len(frame.landmarks) < NUM_LANDMARKS)
    if short:
        logger.warning("%d of %d frames carry fewer than %d landmarks", short, len(frames), NUM_LANDMARKS)
    broken = sum(1 for frame in frames if not all(lm.is_finite() for lm in frame.landmarks))
    if broken:
        logger.warning("%d of %d frames carry non-finite landmark coordinates", broken, len(frames))
    return frames


def resolve_timestamps(frames: Sequence[PoseFrame], timestamps=None, fps: float = 30.0) -> np.ndarray:
    """
    Per-frame timestamps in milliseconds.

    Priority: explicit array > frame timestamps (when every frame has one)
    > synthetic constant-rate timestamps.
    """
    n = len(frames)
    if timestamps is not None:
        stamps = np.asarray(timestamps, dtype=float)
        if stamps.shape != (n,):
            raise FatalInputError(f"Expected {n} timestamps, got shape {stamps.shape}")
        if not np.all(np.isfinite(stamps)):
            raise FatalInputError("Timestamps must be finite")
        return stamps

    if all(frame.timestamp_ms is not None for frame in frames):
        return np.array([frame.timestamp_ms for frame in frames], dtype=float)

    return np.arange(n, dtype=float) * (1000.0 / fps)


def frames_to_dataframe(frames: Sequence[PoseFrame], timestamps=None) -> pd.DataFrame:
    """Convert pose frames to a DataFrame with proper column names"""
    columns = ['frame']
    for name in LANDMARK_NAMES:
        columns.extend([f'{name}_x', f'{name}_y', f'{name}_z', f'{name}_visibility'])

    rows = []
    for i, frame in enumerate(frames):
        row = [i]
        for idx in range(NUM_LANDMARKS):
            lm = frame.get_landmark(idx)
            if lm is None:
                row.extend([np.nan, np.nan, np.nan, 0.0])
            else:
                row.extend([lm.x, lm.y, lm.z, lm.visibility])
        rows.append(row)

    df = pd.DataFrame(rows, columns=columns)
    if timestamps is not None:
        df.insert(1, 'timestamp_ms', np.asarray(timestamps, dtype=float))
    return df


def frames_from_dataframe(df: pd.DataFrame, default_visibility: float = 0.5) -> List[PoseFrame]:
    """
    Build pose frames from a per-frame landmark DataFrame.

    Missing landmark columns and NaN cells become zero-visibility landmarks.
    Landmarks without a visibility value get default_visibility, so they are
    never more trusted than the analysis threshold.
    A 'timestamp_ms' column, when present, is carried onto the frames.
    """
    if df is None or len(df) == 0:
        raise FatalInputError("Pose table is empty")

    if 'frame' in df.columns:
        df = df.sort_values('frame')

    present = [name for name in LANDMARK_NAMES if f'{name}_x' in df.columns]
    if not present:
        raise FatalInputError("Pose table has no <landmark>_x columns")
    no_visibility = [name for name in present if f'{name}_visibility' not in df.columns]
    if no_visibility:
        logger.warning("No visibility column for %d landmark(s); using %.2f",
                       len(no_visibility), default_visibility)

    has_time = 'timestamp_ms' in df.columns
    frames = []
    for _, row in df.iterrows():
        landmarks = []
        for name in LANDMARK_NAMES:
            values = [row.get(f'{name}_{axis}', np.nan) for axis in ('x', 'y', 'z', 'visibility')]
            if pd.isna(values[0]) or pd.isna(values[1]):
                landmarks.append(Landmark(0.0, 0.0, 0.0, 0.0))
                continue
            z = 0.0 if pd.isna(values[2]) else float(values[2])
            vis = default_visibility if pd.isna(values[3]) else float(values[3])
            landmarks.append(Landmark(float(values[0]), float(values[1]), z, vis))
        stamp = float(row['timestamp_ms']) if has_time and not pd.isna(row['timestamp_ms']) else None
        frames.append(PoseFrame(landmarks=tuple(landmarks), timestamp_ms=stamp))

    logger.debug("Loaded %d frames (%d landmark columns)", len(frames), len(present))
    return frames


def load_pose_csv(csv_path: str, default_visibility: float = 0.5) -> List[PoseFrame]:
    """Load pose frames from a CSV file in the per-frame landmark layout."""
    df = pd.read_csv(csv_path)
    return frames_from_dataframe(df, default_visibility)
