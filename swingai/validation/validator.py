"""
Swing Validator

Cross-checks the phases, impact result, club path and metrics of one analysis
for physical plausibility and internal consistency. Errors mark a result as
unusable, warnings mark reduced confidence. Warnings and errors carry an
issue-code prefix where one applies (InsufficientData, InvalidLandmarks,
LowConfidence).
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..config import ValidationConfig
from ..constants import LETTER_GRADES, PHASE_NAMES
from ..errors import INSUFFICIENT_DATA, INVALID_LANDMARKS, LOW_CONFIDENCE, issue
from ..models import ClubPath, ImpactDetectionResult, Phase, SwingMetrics, ValidationReport
from ..pose.frames import BodyPart, PoseFrame

logger = logging.getLogger(__name__)

REQUIRED_LANDMARKS = (
    BodyPart.NOSE,
    BodyPart.LEFT_SHOULDER, BodyPart.RIGHT_SHOULDER,
    BodyPart.LEFT_ELBOW, BodyPart.RIGHT_ELBOW,
    BodyPart.LEFT_WRIST, BodyPart.RIGHT_WRIST,
    BodyPart.LEFT_HIP, BodyPart.RIGHT_HIP,
    BodyPart.LEFT_KNEE, BodyPart.RIGHT_KNEE,
    BodyPart.LEFT_ANKLE, BodyPart.RIGHT_ANKLE,
)

# Physically possible ranges; values outside are errors
PHYSICAL_BOUNDS = {
    'tempo.tempo_ratio': (1.0, 5.0),
    'rotation.shoulder_turn': (0.0, 180.0),
    'rotation.hip_turn': (0.0, 180.0),
    'rotation.x_factor': (0.0, 180.0),
    'weight_transfer.address': (0.0, 100.0),
    'weight_transfer.top': (0.0, 100.0),
    'weight_transfer.impact': (0.0, 100.0),
    'swing_plane.plane_angle': (-90.0, 90.0),
    'swing_plane.impact_path_angle': (-90.0, 90.0),
    'body_alignment.spine_angle': (0.0, 90.0),
    'body_alignment.knee_flex': (0.0, 180.0),
}

# Usual ranges; values outside are warnings
TYPICAL_RANGES = {
    'tempo.tempo_ratio': (2.0, 4.0),
    'rotation.shoulder_turn': (0.0, 120.0),
    'rotation.hip_turn': (0.0, 70.0),
}

TIMING_WINDOWS = {
    'backswing': (0.4, 2.0),
    'downswing': (0.1, 0.5),
}

RELIABILITY_WEIGHTS = {
    'issues': 0.3,
    'confidence': 0.3,
    'sample_size': 0.2,
    'visibility': 0.2,
}


def reliability_grade(reliability: float) -> str:
    """A-F grade for a 0-1 reliability score."""
    for threshold, grade in LETTER_GRADES:
        if reliability * 100 >= threshold:
            return grade
    return 'F'


class SwingValidator:
    """
    Validate one analysis result.

    Args:
        config: ValidationConfig thresholds
        min_frames: Frames needed for a meaningful segmentation
        min_visibility: Visibility threshold for landmark evidence
        lead_side: 'left' or 'right'; side of the tracked wrist
    """

    def __init__(self, config: Optional[ValidationConfig] = None, min_frames: int = 10,
                 min_visibility: float = 0.5, lead_side: str = 'left'):
        self.config = config or ValidationConfig()
        self.min_frames = min_frames
        self.min_visibility = min_visibility
        self.lead_side = lead_side

    def validate(self, frames: Sequence[PoseFrame], metrics: SwingMetrics, phases: Sequence[Phase],
                 impact: ImpactDetectionResult, club_path: ClubPath) -> ValidationReport:
        """
        Run every check and derive the reliability score.

        Returns:
            ValidationReport with errors, warnings, checks and reliability
        """
        errors: List[str] = []
        warnings: List[str] = []
        checks: Dict[str, bool] = {}
        n = len(frames)

        checks['sample_size'] = self._check_sample_size(n, club_path, warnings)
        mean_visibility = self._check_landmarks(frames, warnings, checks)
        checks['phase_order'], checks['phase_durations'] = self._check_phases(phases, n, errors)
        checks['metric_bounds'] = self._check_bounds(metrics, errors, warnings)
        checks['timing'] = self._check_timing(phases, warnings)
        checks['tempo_consistency'] = self._check_tempo(phases, metrics, errors)
        checks['impact_phase_agreement'] = self._check_impact(phases, impact, n, warnings)
        checks['motion_pattern'] = self._check_motion(frames, warnings)
        confidence = self._check_confidence(phases, impact, club_path, warnings)

        for note in list(club_path.validation.issues) + list(impact.discrepancies):
            if note.startswith((INSUFFICIENT_DATA, INVALID_LANDMARKS, LOW_CONFIDENCE)):
                if note not in warnings:
                    warnings.append(note)
            elif note in club_path.validation.issues:
                warnings.append(f"Club path: {note}")

        issue_factor = 1.0 / (1.0 + len(errors) + 0.5 * len(warnings))
        sample_factor = min(1.0, n / float(self.config.recommended_frames))
        weights = RELIABILITY_WEIGHTS
        reliability = (issue_factor * weights['issues']
                       + confidence * weights['confidence']
                       + sample_factor * weights['sample_size']
                       + mean_visibility * weights['visibility'])
        reliability = float(np.clip(reliability, 0.0, 1.0))

        logger.info("Validation: %d errors, %d warnings, reliability %.2f",
                    len(errors), len(warnings), reliability)

        return ValidationReport(
            errors=tuple(errors),
            warnings=tuple(warnings),
            reliability=reliability,
            reliability_grade=reliability_grade(reliability),
            checks=checks
        )

    # ============================================
    # CHECKS
    # ============================================

    def _check_sample_size(self, n: int, club_path: ClubPath, warnings: List[str]) -> bool:
        ok = True
        if n < self.min_frames:
            warnings.append(issue(INSUFFICIENT_DATA, f"{n} frames, segmentation needs at least {self.min_frames}"))
            ok = False
        elif n < self.config.recommended_frames:
            warnings.append(issue(LOW_CONFIDENCE, f"{n} frames, {self.config.recommended_frames} "
                                                  f"recommended for a full swing"))
        if len(club_path.points) < 2:
            ok = False
        return ok

    def _check_landmarks(self, frames: Sequence[PoseFrame], warnings: List[str],
                         checks: Dict[str, bool]) -> float:
        visibilities = []
        incomplete = 0
        non_finite = 0
        for frame in frames:
            values = []
            for part in REQUIRED_LANDMARKS:
                lm = frame.get_landmark(part)
                values.append(lm.visibility if lm is not None and lm.is_finite() else 0.0)
            if not all(lm.is_finite() for lm in frame.landmarks):
                non_finite += 1
            visibilities.append(np.mean(values))
            if any(v < self.min_visibility or v <= 0 for v in values):
                incomplete += 1

        mean_visibility = float(np.mean(visibilities)) if visibilities else 0.0
        share = incomplete / len(frames) if frames else 1.0

        ok = True
        if mean_visibility < self.config.min_mean_visibility:
            warnings.append(issue(INVALID_LANDMARKS, f"mean landmark visibility {mean_visibility:.2f} "
                                                     f"below {self.config.min_mean_visibility:.2f}"))
            ok = False
        if share > self.config.max_missing_landmark_share:
            warnings.append(issue(INVALID_LANDMARKS, f"{incomplete} of {len(frames)} frames miss "
                                                     f"required landmarks"))
            ok = False
        if non_finite:
            warnings.append(issue(INVALID_LANDMARKS, f"{non_finite} of {len(frames)} frames carry non-finite "
                                                     f"landmark coordinates"))
            ok = False
        checks['landmark_visibility'] = ok
        return mean_visibility

    @staticmethod
    def _check_phases(phases: Sequence[Phase], n: int, errors: List[str]):
        names = [p.name for p in phases]
        if names != list(PHASE_NAMES):
            errors.append(f"Expected phases {list(PHASE_NAMES)}, got {names}")
            return False, False

        order_ok = True
        if phases[0].start_frame != 0 or phases[-1].end_frame != max(n - 1, 0):
            errors.append(f"Phases span [{phases[0].start_frame}, {phases[-1].end_frame}], "
                          f"expected [0, {max(n - 1, 0)}]")
            order_ok = False
        for prev, phase in zip(phases, phases[1:]):
            if phase.start_frame != prev.end_frame:
                errors.append(f"Phase '{phase.name}' starts at frame {phase.start_frame} but "
                              f"'{prev.name}' ends at {prev.end_frame}")
                order_ok = False
        for phase in phases:
            if phase.end_frame < phase.start_frame or phase.end_time < phase.start_time:
                errors.append(f"Phase '{phase.name}' ends before it starts")
                order_ok = False

        duration_ok = True
        for phase in phases:
            if phase.frame_count <= 0 or phase.duration <= 0:
                errors.append(f"Phase '{phase.name}' has zero duration")
                duration_ok = False
        return order_ok, duration_ok

    @staticmethod
    def _metric_value(metrics: SwingMetrics, key: str) -> float:
        category, name = key.split('.')
        return getattr(getattr(metrics, category), name)

    @staticmethod
    def _metric_name(key: str) -> str:
        """Scorer metric name for a category.field key (weight_transfer.top -> weight_top)."""
        category, name = key.split('.')
        return f'weight_{name}' if category == 'weight_transfer' else name

    def _check_bounds(self, metrics: SwingMetrics, errors: List[str], warnings: List[str]) -> bool:
        ok = True
        for key, (lo, hi) in PHYSICAL_BOUNDS.items():
            if self._metric_name(key) in metrics.unmeasured:
                warnings.append(issue(INSUFFICIENT_DATA, f"{key} could not be measured"))
                continue
            value = self._metric_value(metrics, key)
            if not lo <= value <= hi:
                errors.append(f"{key} = {value:.2f} outside physical bounds [{lo:g}, {hi:g}]")
                ok = False
        for key, (lo, hi) in TYPICAL_RANGES.items():
            if self._metric_name(key) in metrics.unmeasured:
                continue
            value = self._metric_value(metrics, key)
            phys_lo, phys_hi = PHYSICAL_BOUNDS[key]
            if phys_lo <= value <= phys_hi and not lo <= value <= hi:
                warnings.append(f"{key} = {value:.2f} outside typical range [{lo:g}, {hi:g}]")
        return ok

    @staticmethod
    def _check_timing(phases: Sequence[Phase], warnings: List[str]) -> bool:
        ok = True
        by_name = {p.name: p for p in phases}
        for name, (lo, hi) in TIMING_WINDOWS.items():
            phase = by_name.get(name)
            if phase is None:
                continue
            if not lo <= phase.duration_s <= hi:
                warnings.append(f"{name} lasts {phase.duration_s:.2f}s, expected {lo:g}-{hi:g}s")
                ok = False
        return ok

    def _check_tempo(self, phases: Sequence[Phase], metrics: SwingMetrics, errors: List[str]) -> bool:
        by_name = {p.name: p for p in phases}
        backswing, downswing = by_name.get('backswing'), by_name.get('downswing')
        if backswing is None or downswing is None:
            return False
        recomputed = backswing.duration / downswing.duration if downswing.duration > 0 else 0.0
        reported = metrics.tempo.tempo_ratio
        tolerance = self.config.tempo_tolerance * max(1.0, abs(recomputed))
        if abs(recomputed - reported) > tolerance:
            errors.append(f"Tempo ratio {reported:.2f} does not match phase durations ({recomputed:.2f})")
            return False
        return True

    def _check_impact(self, phases: Sequence[Phase], impact: ImpactDetectionResult, n: int,
                      warnings: List[str]) -> bool:
        impact_phase = next((p for p in phases if p.name == 'impact'), None)
        if impact_phase is None or impact.confidence <= 0:
            return False
        window = max(self.config.impact_phase_window, int(0.1 * n))
        gap = abs(impact.frame - impact_phase.start_frame)
        if gap > window:
            warnings.append(f"Impact consensus (frame {impact.frame}) and segmentation "
                            f"(frame {impact_phase.start_frame}) disagree by {gap} frames")
            return False
        return True

    def _check_motion(self, frames: Sequence[PoseFrame], warnings: List[str]) -> bool:
        """Lead wrist must travel far enough and rise before it falls."""
        wrist = BodyPart.for_side(self.lead_side, 'wrist')
        points = [frame.point(wrist, self.min_visibility) for frame in frames]
        points = np.array([p for p in points if p is not None])
        if len(points) < 3:
            warnings.append(issue(INSUFFICIENT_DATA, "too few lead-wrist samples to check swing motion"))
            return False

        ok = True
        x_range = float(np.ptp(points[:, 0]))
        y_range = float(np.ptp(points[:, 1]))
        if x_range < self.config.min_wrist_range and y_range < self.config.min_wrist_range:
            warnings.append(f"Lead wrist moved only {max(x_range, y_range):.2f}; this may not be a full swing")
            ok = False

        highest = int(np.argmin(points[:, 1]))
        if highest == 0 or highest == len(points) - 1:
            warnings.append("Lead wrist never rises and falls; swing pattern not recognized")
            ok = False
        return ok

    def _check_confidence(self, phases: Sequence[Phase], impact: ImpactDetectionResult,
                          club_path: ClubPath, warnings: List[str]) -> float:
        low = self.config.low_confidence
        phase_conf = float(np.mean([p.confidence for p in phases])) if phases else 0.0
        sources = {'phase segmentation': phase_conf, 'impact detection': impact.confidence,
                   'club path': club_path.confidence}
        for name, value in sources.items():
            if value < low:
                warnings.append(issue(LOW_CONFIDENCE, f"{name} confidence {value:.2f}"))
        return float(np.mean(list(sources.values())))
