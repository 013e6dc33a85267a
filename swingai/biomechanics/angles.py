"""
Golf Biomechanics - angle and body-position calculations

Every quantity is derived from landmark geometry. A calculation returns None
when one of its landmarks is missing or below the visibility threshold, so
callers never mistake an absent landmark for a measurement.
"""

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from ..pose.frames import BodyPart, PoseFrame

# Below this z spread the depth channel is treated as flat and rotation falls
# back to shoulder/hip width foreshortening
DEPTH_EPSILON = 0.01


class GolfBiomechanics:
    """
    Calculate golf-specific angles from pose frames.

    Args:
        min_visibility: Landmarks below this visibility are ignored
        handedness: 'right' or 'left'; the lead side is the target side
    """

    def __init__(self, min_visibility: float = 0.5, handedness: str = 'right'):
        self.min_visibility = min_visibility
        self.lead_side = 'left' if handedness == 'right' else 'right'
        self.trail_side = 'right' if handedness == 'right' else 'left'

    # ============================================
    # CORE ANGLE CALCULATIONS
    # ============================================

    @staticmethod
    def calculate_angle_3points(p1: np.ndarray, p2: np.ndarray, p3: np.ndarray) -> float:
        """
        Calculate angle at p2 given three points (image plane).

        Returns:
            Angle in degrees (0-180)
        """
        v1 = np.array(p1[:2]) - np.array(p2[:2])
        v2 = np.array(p3[:2]) - np.array(p2[:2])

        cos_angle = np.dot(v1, v2) / (np.linalg.norm(v1) * np.linalg.norm(v2) + 1e-8)
        return float(np.degrees(np.arccos(np.clip(cos_angle, -1, 1))))

    @staticmethod
    def calculate_transverse_angle(p1: np.ndarray, p2: np.ndarray) -> float:
        """Angle of line p1->p2 in the x-z (ground) plane, degrees."""
        return math.degrees(math.atan2(p2[2] - p1[2], p2[0] - p1[0]))

    @staticmethod
    def calculate_angle_from_vertical(lower: np.ndarray, upper: np.ndarray) -> float:
        """
        Tilt of the line lower->upper away from vertical, using depth when present.

        Returns:
            Angle in degrees (0 = upright)
        """
        dx = upper[0] - lower[0]
        dy = lower[1] - upper[1]  # image y grows downward
        dz = upper[2] - lower[2] if len(upper) > 2 else 0.0
        return math.degrees(math.atan2(math.hypot(dx, dz), dy))

    @staticmethod
    def wrap_degrees(angle: float) -> float:
        """Wrap an angle difference into (-180, 180]."""
        wrapped = (angle + 180.0) % 360.0 - 180.0
        return 180.0 if wrapped == -180.0 else wrapped

    # ============================================
    # HELPERS: LANDMARK ACCESS
    # ============================================

    def _points(self, frame: PoseFrame, parts: Sequence[BodyPart]) -> Optional[list]:
        points = [frame.point(part, self.min_visibility) for part in parts]
        if any(p is None for p in points):
            return None
        return points

    def _pair(self, frame: PoseFrame, segment: str) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        points = self._points(frame, [BodyPart.for_side('left', segment),
                                      BodyPart.for_side('right', segment)])
        return (points[0], points[1]) if points else None

    def get_center(self, frame: PoseFrame, segment: str) -> Optional[np.ndarray]:
        """Midpoint of a left/right landmark pair ('shoulder', 'hip', 'knee', ...)."""
        pair = self._pair(frame, segment)
        return (pair[0] + pair[1]) / 2 if pair else None

    def get_width(self, frame: PoseFrame, segment: str) -> Optional[float]:
        pair = self._pair(frame, segment)
        return abs(float(pair[1][0] - pair[0][0])) if pair else None

    # ============================================
    # GOLF-SPECIFIC MEASUREMENTS
    # ============================================

    def get_segment_angle(self, frame: PoseFrame, segment: str) -> Optional[float]:
        """Transverse-plane orientation of the shoulder or hip line."""
        pair = self._pair(frame, segment)
        if pair is None:
            return None
        return self.calculate_transverse_angle(pair[0], pair[1])

    def get_rotation(self, start: PoseFrame, end: PoseFrame, segment: str) -> Optional[float]:
        """
        Rotation of the shoulder or hip line between two frames.

        Uses the x-z orientation when the depth channel carries signal,
        otherwise the foreshortening of the line width in the image.

        Returns:
            Absolute rotation in degrees (0-180)
        """
        pair0 = self._pair(start, segment)
        pair1 = self._pair(end, segment)
        if pair0 is None or pair1 is None:
            return None

        depth = max(abs(pair0[1][2] - pair0[0][2]), abs(pair1[1][2] - pair1[0][2]))
        if depth > DEPTH_EPSILON:
            a0 = self.calculate_transverse_angle(pair0[0], pair0[1])
            a1 = self.calculate_transverse_angle(pair1[0], pair1[1])
            return abs(self.wrap_degrees(a1 - a0))

        w0 = abs(pair0[1][0] - pair0[0][0])
        w1 = abs(pair1[1][0] - pair1[0][0])
        if w0 <= 1e-6:
            return None
        return math.degrees(math.acos(float(np.clip(w1 / w0, 0.0, 1.0))))

    def get_spine_angle(self, frame: PoseFrame) -> Optional[float]:
        """Spine tilt from vertical (hip midpoint -> shoulder midpoint)."""
        hips = self.get_center(frame, 'hip')
        shoulders = self.get_center(frame, 'shoulder')
        if hips is None or shoulders is None:
            return None
        return self.calculate_angle_from_vertical(hips, shoulders)

    def get_knee_flex(self, frame: PoseFrame, side: str) -> Optional[float]:
        """Knee flexion in degrees (0 = straight leg)."""
        points = self._points(frame, [BodyPart.for_side(side, 'hip'),
                                      BodyPart.for_side(side, 'knee'),
                                      BodyPart.for_side(side, 'ankle')])
        if points is None:
            return None
        return 180.0 - self.calculate_angle_3points(*points)

    def get_mean_knee_flex(self, frame: PoseFrame) -> Optional[float]:
        values = [v for v in (self.get_knee_flex(frame, 'left'), self.get_knee_flex(frame, 'right'))
                  if v is not None]
        return float(np.mean(values)) if values else None

    def get_weight_distribution(self, frame: PoseFrame) -> Optional[Tuple[float, float]]:
        """
        Estimate weight split from where the hip center sits between the ankles.

        Returns:
            (lead %, trail %) summing to 100
        """
        hips = self.get_center(frame, 'hip')
        ankles = self._points(frame, [BodyPart.for_side(self.lead_side, 'ankle'),
                                      BodyPart.for_side(self.trail_side, 'ankle')])
        if hips is None or ankles is None:
            return None

        lead_x, trail_x = ankles[0][0], ankles[1][0]
        span = lead_x - trail_x
        if abs(span) < 1e-6:
            return 50.0, 50.0
        lead = float(np.clip((hips[0] - trail_x) / span, 0.0, 1.0)) * 100.0
        return lead, 100.0 - lead

    def get_head_offset(self, frame: PoseFrame, reference: PoseFrame) -> Optional[float]:
        """Lateral head shift relative to a reference frame, in shoulder widths."""
        head = frame.point(BodyPart.NOSE, self.min_visibility)
        ref_head = reference.point(BodyPart.NOSE, self.min_visibility)
        width = self.get_width(reference, 'shoulder')
        if head is None or ref_head is None or not width:
            return None
        return abs(float(head[0] - ref_head[0])) / width

    def get_lateral_shift(self, frame: PoseFrame, reference: PoseFrame) -> Optional[float]:
        """Combined lateral shift of hip and knee centers from a reference frame."""
        hips, knees = self.get_center(frame, 'hip'), self.get_center(frame, 'knee')
        ref_hips, ref_knees = self.get_center(reference, 'hip'), self.get_center(reference, 'knee')
        if any(p is None for p in (hips, knees, ref_hips, ref_knees)):
            return None
        return abs(float(hips[0] - ref_hips[0])) + abs(float(knees[0] - ref_knees[0]))
