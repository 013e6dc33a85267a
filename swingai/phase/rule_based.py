"""
6-Phase Golf Swing Segmenter (rule-based)

Sequential boundary search over the smoothed trajectory of one tracked point
(the lead wrist by default). Image y grows downward, so the "highest" hand
position is the minimum y.

Phases: address, backswing, top, downswing, impact, follow_through
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..biomechanics.angles import GolfBiomechanics
from ..config import PhaseDetectionConfig
from ..constants import PHASE_CONFIDENCE, PHASE_NAMES
from ..models import Phase, PhaseMetrics
from ..pose.frames import PoseFrame
from ..pose.trajectory import Trajectory

logger = logging.getLogger(__name__)

# Boundary positions (fraction of the last frame index) used when the
# trajectory is too short or unusable for detection
DEFAULT_BOUNDARY_FRACTIONS = (0.1, 0.5, 0.55, 0.72, 0.77)


class SwingPhaseSegmenter:
    """
    Detect the six swing phases from a single-point trajectory.

    All thresholds live on the PhaseDetectionConfig strategy object, so
    stricter or looser variants are configurations rather than subclasses.
    """

    PHASE_NAMES = PHASE_NAMES

    def __init__(self, config: Optional[PhaseDetectionConfig] = None,
                 biomechanics: Optional[GolfBiomechanics] = None):
        self.config = config or PhaseDetectionConfig()
        self.biomechanics = biomechanics or GolfBiomechanics()

    def segment(self, frames: Sequence[PoseFrame], trajectory: Trajectory,
                timestamps: np.ndarray) -> List[Phase]:
        """
        Segment a swing into six contiguous phases.

        Never raises for sparse data: short or unusable trajectories get
        proportional default boundaries with confidence 0.

        Args:
            frames: Pose frames
            trajectory: Tracked-point trajectory over the same frames
            timestamps: Per-frame timestamps in ms

        Returns:
            Six phases covering [0, N-1]
        """
        n = len(frames)
        timestamps = np.asarray(timestamps, dtype=float)

        if n < self.config.min_frames or trajectory.valid_count < 2:
            logger.warning("Phase segmentation degraded: %d frames, %d valid trajectory samples "
                           "(need %d frames)", n, trajectory.valid_count, self.config.min_frames)
            boundaries = default_boundaries(n)
            confidences = [0.0] * len(self.PHASE_NAMES)
        else:
            boundaries, fallbacks = self.detect_boundaries(trajectory)
            confidences = [PHASE_CONFIDENCE[name] for name in self.PHASE_NAMES]
            for k in fallbacks:
                # boundary k separates phase k and phase k + 1
                confidences[k] *= 0.5
                confidences[k + 1] *= 0.5

        bounds = clamp_boundaries(boundaries, n, self.config.min_phase_duration)
        return self.build_phases(frames, trajectory, timestamps, bounds, confidences)

    # ============================================
    # BOUNDARY DETECTION
    # ============================================

    def detect_boundaries(self, trajectory: Trajectory) -> Tuple[List[int], List[int]]:
        """
        Find the five interior boundaries.

        Returns:
            (boundaries, indices of boundaries that used a fallback)
        """
        cfg = self.config
        n = len(trajectory)
        smoothed = trajectory.smoothed(cfg.smoothing_window)
        speeds = trajectory.speeds(smoothed)
        fallbacks = []

        address_end = self._detect_address_end(smoothed, speeds)
        if address_end is None:
            address_end = min(cfg.address_fallback_frame, n - 1)
            fallbacks.append(0)

        top = self._detect_top(smoothed, speeds, address_end)
        if top is None:
            top = int(round(DEFAULT_BOUNDARY_FRACTIONS[1] * (n - 1)))
            fallbacks.append(1)

        downswing_start = self._detect_downswing_start(smoothed, speeds, top)
        if downswing_start is None:
            downswing_start = min(top + cfg.downswing_fallback_offset, n - 1)
            fallbacks.append(2)

        impact = self._detect_impact(smoothed, trajectory.timestamps)
        if impact is None:
            impact = int(round(DEFAULT_BOUNDARY_FRACTIONS[3] * (n - 1)))
            fallbacks.append(3)

        follow_through = min(impact + cfg.follow_through_offset, n - 1)

        boundaries = [address_end, top, downswing_start, impact, follow_through]
        logger.debug("Phase boundaries: address_end=%d top=%d downswing=%d impact=%d follow=%d",
                     *boundaries)
        return boundaries, fallbacks

    def _detect_address_end(self, smoothed: np.ndarray, speeds: np.ndarray) -> Optional[int]:
        """First frame where the hands start moving."""
        cfg = self.config
        n = len(smoothed)
        for i in range(1, min(cfg.address_search_window, n)):
            displacement = np.linalg.norm(smoothed[i] - smoothed[0])
            if speeds[i] > cfg.velocity_threshold or displacement > cfg.displacement_threshold:
                return max(cfg.min_phase_duration, i)
        return None

    def _detect_top(self, smoothed: np.ndarray, speeds: np.ndarray, start: int) -> Optional[int]:
        """Highest hand position, nudged to a following speed drop."""
        cfg = self.config
        n = len(smoothed)
        end = min(int(cfg.top_search_fraction * n), n - 1)
        if end <= start:
            return None

        top = start + int(np.argmin(smoothed[start:end + 1, 1]))

        lo = max(1, top - cfg.top_refine_window)
        hi = min(n - 1, top + cfg.top_refine_window)
        for i in range(max(lo, 2), hi + 1):
            previous = speeds[i - 1]
            if previous > 1e-9 and speeds[i] <= cfg.velocity_drop_ratio * previous:
                return max(top, i)
        return top

    def _detect_downswing_start(self, smoothed: np.ndarray, speeds: np.ndarray,
                                top: int) -> Optional[int]:
        """First frame after the top where the hands move down with some speed."""
        cfg = self.config
        n = len(smoothed)
        for i in range(top + 1, min(top + cfg.downswing_search_window, n - 1) + 1):
            dy = smoothed[i, 1] - smoothed[i - 1, 1]
            if dy > 0 and speeds[i] > 0.5 * cfg.velocity_threshold:
                return i
        return None

    def _detect_impact(self, smoothed: np.ndarray, timestamps: np.ndarray) -> Optional[int]:
        """
        Peak acceleration vs lowest hand position in the late part of the swing;
        whichever sits closer to the middle of the search window wins.
        """
        n = len(smoothed)
        start = max(1, int(self.config.impact_search_fraction * n))
        end = n - 1
        if end <= start:
            return None

        accel = np.zeros(n)
        for i in range(start, end):
            # central second difference around frame i
            dt = (timestamps[i + 1] - timestamps[i - 1]) / 2000.0
            if dt <= 0:
                continue
            second_diff = smoothed[i + 1] - 2 * smoothed[i] + smoothed[i - 1]
            accel[i] = np.linalg.norm(second_diff) / (dt * dt)

        accel_frame = start + int(np.argmax(accel[start:end]))
        lowest_frame = start + int(np.argmax(smoothed[start:end, 1]))

        midpoint = (start + end) / 2.0
        if abs(accel_frame - midpoint) < abs(lowest_frame - midpoint):
            return accel_frame
        return lowest_frame

    # ============================================
    # PHASE CONSTRUCTION
    # ============================================

    def build_phases(self, frames: Sequence[PoseFrame], trajectory: Trajectory,
                     timestamps: np.ndarray, bounds: Sequence[int],
                     confidences: Sequence[float]) -> List[Phase]:
        """
        Build Phase records from seven clamped boundary frames.

        Phase i runs from bounds[i] to bounds[i + 1]; times are rescaled so the
        durations add up to the capture duration.
        """
        start_times = rescale_times(timestamps, bounds)

        phases = []
        for i, name in enumerate(self.PHASE_NAMES):
            start, end = int(bounds[i]), int(bounds[i + 1])
            phases.append(Phase(
                name=name,
                start_frame=start,
                end_frame=end,
                start_time=float(start_times[i]),
                end_time=float(start_times[i + 1]),
                confidence=float(confidences[i]),
                metrics=self._phase_metrics(frames, trajectory, timestamps, start, end)
            ))
        return phases

    def _phase_metrics(self, frames: Sequence[PoseFrame], trajectory: Trajectory,
                       timestamps: np.ndarray, start: int, end: int) -> PhaseMetrics:
        if not frames:
            return PhaseMetrics()

        mid = (start + end) // 2
        bio = self.biomechanics

        shoulder = bio.get_rotation(frames[start], frames[mid], 'shoulder')
        hip = bio.get_rotation(frames[start], frames[mid], 'hip')
        weight = bio.get_weight_distribution(frames[mid]) or (50.0, 50.0)

        velocity = acceleration = 0.0
        duration = (timestamps[end] - timestamps[start]) / 1000.0
        if end > start and duration > 0:
            speeds = trajectory.speeds()
            steps = np.diff(trajectory.positions[start:end + 1], axis=0)
            velocity = float(np.linalg.norm(steps, axis=1).sum() / duration)
            if end - start >= 2:
                first = float(np.mean(speeds[start + 1:mid + 1])) if mid > start else 0.0
                second = float(np.mean(speeds[mid + 1:end + 1])) if end > mid else 0.0
                acceleration = abs(second - first) / (duration / 2.0)

        club_position = tuple(float(v) for v in trajectory.positions[mid]) if len(trajectory) else None

        return PhaseMetrics(
            shoulder_rotation=float(shoulder) if shoulder is not None else 0.0,
            hip_rotation=float(hip) if hip is not None else 0.0,
            lead_weight=float(weight[0]),
            trail_weight=float(weight[1]),
            velocity=velocity,
            acceleration=acceleration,
            club_position=club_position
        )


# ============================================
# BOUNDARY HELPERS
# ============================================

def default_boundaries(n: int) -> List[int]:
    """Proportional interior boundaries for a sequence of n frames."""
    last = max(n - 1, 0)
    return [int(round(f * last)) for f in DEFAULT_BOUNDARY_FRACTIONS]


def clamp_boundaries(boundaries: Sequence[int], n: int, min_duration: int) -> List[int]:
    """
    Turn five interior boundaries into seven ordered frames [0, ..., N-1].

    Enforces at least min_duration frames per phase (shrunk to (N-1)//6 when the
    sequence is too short for it), monotonic order and the [0, N-1] range.
    """
    last = max(n - 1, 0)
    step = max(0, min(int(min_duration), last // 6))

    bounds = [0] + [int(np.clip(b, 0, last)) for b in boundaries] + [last]

    for i in range(1, 6):
        bounds[i] = max(bounds[i], bounds[i - 1] + step)
    for i in range(5, 0, -1):
        bounds[i] = min(bounds[i], bounds[i + 1] - step)

    return [int(np.clip(b, 0, last)) for b in bounds]


def rescale_times(timestamps: np.ndarray, bounds: Sequence[int]) -> np.ndarray:
    """
    Phase start times (plus the final end time) rescaled so the phase
    durations sum to the true capture duration.
    """
    timestamps = np.asarray(timestamps, dtype=float)
    if len(timestamps) == 0:
        return np.zeros(len(bounds))

    t0 = timestamps[0]
    total = timestamps[-1] - t0
    raw = np.diff(timestamps[list(bounds)])
    raw_total = raw.sum()

    if raw_total > 0:
        durations = raw * (total / raw_total)
    elif total > 0:
        frames = np.diff(np.asarray(bounds, dtype=float))
        durations = frames / frames.sum() * total if frames.sum() > 0 else np.zeros(len(raw))
    else:
        durations = np.zeros(len(raw))

    return t0 + np.concatenate([[0.0], np.cumsum(durations)])


# ============================================
# PHASE LOOKUPS
# ============================================

def phase_at_frame(phases: Sequence[Phase], frame: int) -> Optional[Phase]:
    """
    Phase containing a frame. Shared boundary frames belong to the later
    phase; the final frame belongs to the last phase.
    """
    if not phases:
        return None
    for phase in phases:
        if phase.start_frame <= frame < phase.end_frame:
            return phase
    if frame == phases[-1].end_frame:
        return phases[-1]
    return None


def phase_progress(phase: Phase, frame: int) -> float:
    """Position of a frame inside a phase, 0.0 at the start and 1.0 at the end."""
    if phase.end_frame <= phase.start_frame:
        return 1.0 if frame >= phase.end_frame else 0.0
    return float(np.clip((frame - phase.start_frame) / (phase.end_frame - phase.start_frame), 0.0, 1.0))


def smooth_phase_boundaries(phases: Sequence[Phase], window: int = 3) -> List[Phase]:
    """
    Average each interior boundary with its neighbours over `window` boundaries,
    keeping phases contiguous and ordered. Times are interpolated from the
    existing boundary timeline.
    """
    if len(phases) < 2 or window <= 1:
        return list(phases)

    bounds = np.array([p.start_frame for p in phases] + [phases[-1].end_frame], dtype=float)
    times = np.array([p.start_time for p in phases] + [phases[-1].end_time], dtype=float)
    half = window // 2

    smoothed = bounds.copy()
    for i in range(1, len(bounds) - 1):
        lo, hi = max(1, i - half), min(len(bounds) - 2, i + half)
        smoothed[i] = round(bounds[lo:hi + 1].mean())
    smoothed = np.maximum.accumulate(smoothed)
    smoothed = np.minimum(smoothed, bounds[-1])

    new_times = np.interp(smoothed, bounds, times) if bounds[-1] > bounds[0] else times

    result = []
    for i, phase in enumerate(phases):
        result.append(Phase(
            name=phase.name,
            start_frame=int(smoothed[i]),
            end_frame=int(smoothed[i + 1]),
            start_time=float(new_times[i]),
            end_time=float(new_times[i + 1]),
            confidence=phase.confidence,
            metrics=phase.metrics
        ))
    return result
