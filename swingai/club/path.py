"""
Club-head path estimation from body landmarks

There is no direct club tracking. For every frame with usable arms and
shoulders, three independent club-head candidates are projected from the
arm geometry and merged with the shared confidence-weighted consensus.
Frames without the required landmarks leave a gap; nothing is fabricated.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..config import ClubPathConfig
from ..constants import DEFAULT_FPS, REFERENCE_RESOLUTION
from ..consensus import weighted_consensus
from ..errors import INSUFFICIENT_DATA, LOW_CONFIDENCE, InvalidLandmarksError, issue
from ..models import ClubPath, ClubPathPoint, PathValidation
from ..pose.frames import BodyPart, PoseFrame

logger = logging.getLogger(__name__)

REQUIRED_JOINTS = ('wrist', 'elbow', 'shoulder')


class ClubPathEstimator:
    """
    Estimate a per-frame club-head trajectory.

    Args:
        config: ClubPathConfig with length ratios, method weights and limits
        min_visibility: Landmarks below this visibility are ignored
        handedness: 'right' or 'left'; the trail forearm drives the geometric candidate
        reference_resolution: Canonical (width, height) for recalibration
    """

    def __init__(self, config: Optional[ClubPathConfig] = None, min_visibility: float = 0.5,
                 handedness: str = 'right', reference_resolution: Tuple[int, int] = REFERENCE_RESOLUTION):
        self.config = config or ClubPathConfig()
        self.min_visibility = min_visibility
        self.dominant_side = 'right' if handedness == 'right' else 'left'
        self.reference_resolution = tuple(reference_resolution)

    def estimate(self, frames: Sequence[PoseFrame], timestamps=None,
                 video_meta: Optional[Mapping] = None) -> ClubPath:
        """
        Estimate the club-head path.

        Args:
            frames: Pose frames
            timestamps: Per-frame timestamps in ms (constant 30 fps when None)
            video_meta: Optional {'width': ..., 'height': ...} of the capture

        Returns:
            ClubPath with per-point velocity/confidence and validation scores
        """
        if timestamps is None:
            timestamps = np.arange(len(frames)) * (1000.0 / DEFAULT_FPS)
        timestamps = np.asarray(timestamps, dtype=float)

        samples = []
        skipped = 0
        for i, frame in enumerate(frames):
            try:
                candidates = self._candidates(frame)
            except InvalidLandmarksError as exc:
                skipped += 1
                logger.debug("Frame %d skipped: %s", i, exc)
                continue
            merged = weighted_consensus(candidates)
            samples.append((i, merged.value, merged.mean_confidence))

        if skipped:
            logger.info("Club path: %d of %d frames lacked arm landmarks", skipped, len(frames))

        positions = np.array([s[1] for s in samples]) if samples else np.zeros((0, 3))
        calibration_used = False
        scale = self._calibration_scale(video_meta)
        if scale is not None and len(positions):
            positions = positions * np.array([scale[0], scale[1], scale[0]])
            calibration_used = True
            logger.debug("Club path recalibrated by %.3f x %.3f", *scale)

        point_frames = [s[0] for s in samples]
        point_times = timestamps[point_frames] if point_frames else np.zeros(0)
        velocities = central_difference_speeds(positions, point_times)

        points = tuple(
            ClubPathPoint(x=float(p[0]), y=float(p[1]), z=float(p[2]), frame=int(f),
                          timestamp=float(t), velocity=float(v), confidence=float(c))
            for p, f, t, v, c in zip(positions, point_frames, point_times, velocities,
                                     [s[2] for s in samples])
        )
        return self._validated_path(points, calibration_used)

    # ============================================
    # CANDIDATES
    # ============================================

    def _landmarks(self, frame: PoseFrame) -> Dict[str, object]:
        found = {}
        missing = []
        for side in ('left', 'right'):
            for joint in REQUIRED_JOINTS:
                lm = frame.visible(BodyPart.for_side(side, joint), self.min_visibility)
                if lm is None:
                    missing.append(f"{side}_{joint}")
                else:
                    found[f"{side}_{joint}"] = lm
        if missing:
            raise InvalidLandmarksError(f"missing {', '.join(missing)}")
        return found

    def _candidates(self, frame: PoseFrame) -> List[Tuple[np.ndarray, float]]:
        """Three (position, confidence) club-head candidates for one frame."""
        cfg = self.config
        lm = self._landmarks(frame)
        pt = {name: landmark.to_array() for name, landmark in lm.items()}
        vis = {name: landmark.visibility for name, landmark in lm.items()}
        side = self.dominant_side

        # Geometric arm extension along the dominant forearm
        wrist, elbow = pt[f'{side}_wrist'], pt[f'{side}_elbow']
        geometric = wrist + (wrist - elbow) * cfg.geometric_length_ratio
        geometric_conf = vis[f'{side}_wrist'] * vis[f'{side}_elbow'] * cfg.geometric_weight

        grip = (pt['left_wrist'] + pt['right_wrist']) / 2
        grip_vis = vis['left_wrist'] * vis['right_wrist']

        # Biomechanical grip projection from the shoulder center
        shoulders = (pt['left_shoulder'] + pt['right_shoulder']) / 2
        biomechanical = grip + (grip - shoulders) * cfg.biomechanical_length_ratio
        biomechanical_conf = (grip_vis * vis['left_shoulder'] * vis['right_shoulder']
                              * cfg.biomechanical_weight)

        # Swing-plane projection from the elbow center
        elbows = (pt['left_elbow'] + pt['right_elbow']) / 2
        swing_plane = grip + (grip - elbows) * cfg.swing_plane_length_ratio
        swing_plane_conf = (grip_vis * vis['left_elbow'] * vis['right_elbow']
                            * cfg.swing_plane_weight)

        return [(geometric, geometric_conf),
                (biomechanical, biomechanical_conf),
                (swing_plane, swing_plane_conf)]

    def _calibration_scale(self, video_meta: Optional[Mapping]) -> Optional[Tuple[float, float]]:
        if not video_meta:
            return None
        width, height = video_meta.get('width'), video_meta.get('height')
        if not width or not height:
            return None
        ref_w, ref_h = self.reference_resolution
        scale = (ref_w / float(width), ref_h / float(height))
        if scale == (1.0, 1.0):
            return None
        return scale

    # ============================================
    # VALIDATION
    # ============================================

    def _validated_path(self, points: Tuple[ClubPathPoint, ...], calibration_used: bool) -> ClubPath:
        if len(points) < 2:
            note = issue(INSUFFICIENT_DATA, f"club path has {len(points)} point(s), need at least 2")
            logger.warning(note)
            return ClubPath(points=points, calibration_used=calibration_used,
                            validation=PathValidation(issues=(note,)))

        validation = self.validate_path(points)
        if len(points) < self.config.min_confident_points:
            note = issue(LOW_CONFIDENCE, f"club path has {len(points)} points, "
                                         f"confidence needs {self.config.min_confident_points}")
            logger.warning(note)
            return ClubPath(points=points, calibration_used=calibration_used,
                            smoothness=validation.smoothness,
                            arc_height_deviation=validation.arc_height_deviation,
                            validation=replace(validation, issues=validation.issues + (note,)))

        accuracy = validation.smoothness
        mean_conf = float(np.mean([p.confidence for p in points]))
        confidence = float(np.clip((mean_conf * 0.7 + validation.continuity * 0.3) * accuracy, 0.0, 1.0))

        return ClubPath(points=points, accuracy=float(accuracy), confidence=confidence,
                        smoothness=validation.smoothness,
                        arc_height_deviation=validation.arc_height_deviation,
                        calibration_used=calibration_used, validation=validation)

    def validate_path(self, points: Sequence[ClubPathPoint]) -> PathValidation:
        """Smoothness, arc height, continuity, plausibility and issues for a path."""
        cfg = self.config
        velocities = np.array([p.velocity for p in points], dtype=float)
        ys = np.array([p.y for p in points], dtype=float)
        frames = np.array([p.frame for p in points], dtype=int)
        positions = np.array([[p.x, p.y, p.z] for p in points], dtype=float)

        max_v = float(velocities.max()) if len(velocities) else 0.0
        smoothness = max(0.0, 1.0 - float(velocities.var()) / (max_v ** 2)) if max_v > 0 else 0.0

        arc_height = float(ys.max() - ys.min()) if len(ys) else 0.0
        arc_deviation = abs(arc_height - cfg.expected_arc_height)
        continuity = len(points) / float(frames[-1] - frames[0] + 1) if len(points) else 0.0

        avg_v = float(velocities.mean()) if len(velocities) else 0.0
        plausibility = 1.0
        if max_v > cfg.max_plausible_speed:
            plausibility -= 0.3
        if avg_v < cfg.min_plausible_speed:
            plausibility -= 0.3
        if arc_height < cfg.min_arc_height:
            plausibility -= 0.4

        issues = []
        jumps = np.linalg.norm(np.diff(positions, axis=0), axis=1) if len(positions) > 1 else []
        for k, jump in enumerate(jumps):
            if jump > cfg.max_position_jump:
                issues.append(f"Club position jumps {jump:.2f} between frames {frames[k]} and {frames[k + 1]}")
        for k, gap in enumerate(np.diff(frames)):
            if gap > cfg.max_frame_gap:
                issues.append(f"Club path gap of {gap} frames after frame {frames[k]}")
        low = sum(1 for p in points if p.confidence < cfg.low_confidence_point)
        if points and low / len(points) > cfg.low_confidence_share:
            issues.append(f"{low} of {len(points)} club path points have low confidence")

        return PathValidation(
            smoothness=float(np.clip(smoothness, 0.0, 1.0)),
            arc_height=arc_height,
            arc_height_deviation=float(arc_deviation),
            continuity=float(np.clip(continuity, 0.0, 1.0)),
            physical_plausibility=float(max(0.0, plausibility)),
            reference_points=reference_points(points),
            issues=tuple(issues)
        )


def central_difference_speeds(positions: np.ndarray, timestamps: np.ndarray) -> np.ndarray:
    """
    Speed per point in units / second from neighbouring points.

    Interior points use (p[k+1] - p[k-1]) / (t[k+1] - t[k-1]); endpoints copy
    their neighbour. Two points share their forward difference.
    """
    n = len(positions)
    speeds = np.zeros(n)
    if n < 2:
        return speeds
    if n == 2:
        dt = (timestamps[1] - timestamps[0]) / 1000.0
        value = np.linalg.norm(positions[1] - positions[0]) / dt if dt > 0 else 0.0
        speeds[:] = value
        return speeds

    for k in range(1, n - 1):
        dt = (timestamps[k + 1] - timestamps[k - 1]) / 1000.0
        if dt > 0:
            speeds[k] = np.linalg.norm(positions[k + 1] - positions[k - 1]) / dt
    speeds[0] = speeds[1]
    speeds[-1] = speeds[-2]
    return speeds


def reference_points(points: Sequence[ClubPathPoint]) -> Dict[str, int]:
    """Address, top (highest), impact (lowest after top) and finish frames of a path."""
    if not points:
        return {}
    ys = np.array([p.y for p in points])
    top = int(np.argmin(ys))
    after_top = ys[top:]
    impact = top + int(np.argmax(after_top)) if len(after_top) else top
    return {
        'address': points[0].frame,
        'top': points[top].frame,
        'impact': points[impact].frame,
        'finish': points[-1].frame,
    }
