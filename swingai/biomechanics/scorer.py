"""
Swing Scorer - score swing metrics against skill-tier benchmarks

Computes the raw biomechanical quantities from the phases, pose frames and
club path, scores each against its benchmark corridor and produces the
category scores, overall grade and coaching feedback.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..constants import CLUB_TYPES, LETTER_GRADES, SKILL_LEVELS
from ..models import (BodyAlignmentMetrics, ClubPath, KinematicSequence, Phase, RotationMetrics,
                      SwingMetrics, SwingPlaneMetrics, TempoMetrics, WeightTransferMetrics)
from ..pose.frames import BodyPart, PoseFrame
from .angles import GolfBiomechanics
from .benchmarks import KINEMATIC_SEQUENCE, METRIC_CATEGORIES, GolfBenchmarks, score_value

logger = logging.getLogger(__name__)

# Club path points closer than this to the address position give unstable plane angles
MIN_PLANE_RADIUS = 0.05

METRIC_LABELS = {
    'backswing_time': 'Backswing Time',
    'downswing_time': 'Downswing Time',
    'tempo_ratio': 'Tempo Ratio',
    'shoulder_turn': 'Shoulder Turn',
    'hip_turn': 'Hip Turn',
    'x_factor': 'X-Factor',
    'weight_address': 'Weight at Address',
    'weight_top': 'Weight at Top',
    'weight_impact': 'Weight at Impact',
    'plane_angle': 'Swing Plane',
    'plane_deviation': 'Plane Consistency',
    'impact_path_angle': 'Club Path at Impact',
    'spine_angle': 'Spine Angle',
    'head_movement': 'Head Movement',
    'knee_flex': 'Knee Flex',
}

COACHING_TIPS = {
    'tempo_ratio': ("Work on a smooth 3:1 rhythm. Count 'one-two-three' going back "
                    "and 'one' coming down."),
    'backswing_time': "Let the backswing unfold without rushing to the top.",
    'downswing_time': "Start the downswing with the lower body and let speed build through impact.",
    'shoulder_turn': "Turn your back to the target; feel the lead shoulder move under the chin.",
    'hip_turn': "Let the trail hip turn back while keeping the trail knee flexed.",
    'x_factor': "Resist with the hips while the shoulders complete the turn to build separation.",
    'weight_address': "Set up balanced, with weight evenly between both feet.",
    'weight_top': "Load into the trail side during the backswing without swaying.",
    'weight_impact': "Shift pressure onto the lead foot before the club reaches the ball.",
    'plane_angle': "Swing the club back along the line of the shaft at address.",
    'plane_deviation': "Keep the club on one plane; a mirror drill helps hold the angle.",
    'impact_path_angle': "Swing through the ball along the target line rather than across it.",
    'spine_angle': "Hinge from the hips at address and keep that tilt through impact.",
    'head_movement': "Keep your head centered over the ball until after impact.",
    'knee_flex': "Flex the knees slightly for an athletic stance, not a squat.",
}

CLUB_PHRASES = {
    'driver': "with the driver",
    'wood': "with your fairway woods",
    'hybrid': "with your hybrids",
    'iron': "with your irons",
    'wedge': "with your wedges",
    'putter': "with the putter",
}

CLUB_TIPS = {
    'driver': "For driver, sweep through the ball with an upward angle of attack.",
    'wood': "For fairway woods, sweep the ball off the turf with a shallow path.",
    'hybrid': "For hybrids, make a slightly descending strike like a long iron.",
    'iron': "For irons, hit down on the ball and take a divot after impact.",
    'wedge': "For wedges, keep the lower body quiet and control distance with swing length.",
    'putter': "For putting, rock the shoulders like a pendulum and keep the lower body still.",
}


def letter_grade(score: float) -> str:
    """Letter grade for a 0-100 score (A >= 90, B >= 80, C >= 70, D >= 60, else F)."""
    for threshold, grade in LETTER_GRADES:
        if score >= threshold:
            return grade
    return 'F'


class SwingScorer:
    """
    Score a swing against the benchmarks of one skill tier.

    Args:
        benchmarks: GolfBenchmarks instance or None for defaults
        skill_level: 'beginner', 'intermediate', 'advanced' or 'professional'
        club: Club type tag, only used for feedback phrasing
        biomechanics: Angle helper (carries visibility threshold and handedness)
    """

    def __init__(self, benchmarks: Optional[GolfBenchmarks] = None, skill_level: str = 'intermediate',
                 club: str = 'driver', biomechanics: Optional[GolfBiomechanics] = None):
        if skill_level not in SKILL_LEVELS:
            raise ValueError(f"Unknown skill level: {skill_level}. Use one of {SKILL_LEVELS}")
        self.benchmarks = benchmarks or GolfBenchmarks()
        self.skill_level = skill_level
        self.club = club if club in CLUB_TYPES else 'driver'
        if club not in CLUB_TYPES:
            logger.warning("Unknown club type '%s', using generic phrasing", club)
        self.biomechanics = biomechanics or GolfBiomechanics()

    def score(self, phases: Sequence[Phase], frames: Sequence[PoseFrame],
              club_path: ClubPath) -> SwingMetrics:
        """
        Compute, score and grade all swing metrics.

        Metrics that cannot be measured (missing landmarks, empty path) keep a
        raw value of 0 and score 0.

        Returns:
            SwingMetrics with five scored categories, overall score and grade
        """
        by_name = {phase.name: phase for phase in phases}
        raw = {}
        raw.update(self._tempo(by_name))
        raw.update(self._rotation(by_name, frames))
        raw.update(self._weight_transfer(by_name, frames))
        raw.update(self._swing_plane(by_name, club_path))
        raw.update(self._body_alignment(by_name, frames))

        scores = {}
        for metric, value in raw.items():
            scores[metric] = 0.0 if value is None else self.benchmarks.score(metric, value, self.skill_level)
        values = {metric: (0.0 if value is None else float(value)) for metric, value in raw.items()}
        missing = sorted(metric for metric, value in raw.items() if value is None)
        if missing:
            logger.info("Unmeasured metrics: %s", ', '.join(missing))

        category_scores = {
            category: float(np.mean([scores[m] for m in metrics]))
            for category, metrics in METRIC_CATEGORIES.items()
        }

        def pick(category):
            return {m: scores[m] for m in METRIC_CATEGORIES[category]}

        tempo = TempoMetrics(values['backswing_time'], values['downswing_time'], values['tempo_ratio'],
                             pick('tempo'), category_scores['tempo'])
        rotation = RotationMetrics(values['shoulder_turn'], values['hip_turn'], values['x_factor'],
                                   pick('rotation'), category_scores['rotation'])
        weight = WeightTransferMetrics(values['weight_address'], values['weight_top'], values['weight_impact'],
                                       pick('weight_transfer'), category_scores['weight_transfer'])
        plane = SwingPlaneMetrics(values['plane_angle'], values['plane_deviation'], values['impact_path_angle'],
                                  pick('swing_plane'), category_scores['swing_plane'])
        alignment = BodyAlignmentMetrics(values['spine_angle'], values['head_movement'], values['knee_flex'],
                                         pick('body_alignment'), category_scores['body_alignment'])

        overall = float(np.mean(list(category_scores.values())))
        grade = letter_grade(overall)
        feedback, improvements = self._feedback(values, scores, missing, overall, grade)

        return SwingMetrics(
            tempo=tempo,
            rotation=rotation,
            weight_transfer=weight,
            swing_plane=plane,
            body_alignment=alignment,
            overall_score=overall,
            letter_grade=grade,
            skill_level=self.skill_level,
            club=self.club,
            sequence=self._kinematic_sequence(by_name, frames, club_path),
            feedback=tuple(feedback),
            key_improvements=tuple(improvements),
            unmeasured=tuple(missing)
        )

    # ============================================
    # RAW QUANTITIES
    # ============================================

    @staticmethod
    def _tempo(phases: Dict[str, Phase]) -> Dict[str, Optional[float]]:
        backswing = phases.get('backswing')
        downswing = phases.get('downswing')
        if backswing is None or downswing is None:
            return {'backswing_time': None, 'downswing_time': None, 'tempo_ratio': None}
        back_s, down_s = backswing.duration_s, downswing.duration_s
        return {
            'backswing_time': back_s,
            'downswing_time': down_s,
            'tempo_ratio': back_s / down_s if down_s > 0 else None,
        }

    def _rotation(self, phases: Dict[str, Phase], frames: Sequence[PoseFrame]) -> Dict[str, Optional[float]]:
        address, top = phases.get('address'), phases.get('top')
        if address is None or top is None or not frames:
            return {'shoulder_turn': None, 'hip_turn': None, 'x_factor': None}
        start, end = frames[address.end_frame], frames[top.start_frame]
        shoulder = self.biomechanics.get_rotation(start, end, 'shoulder')
        hip = self.biomechanics.get_rotation(start, end, 'hip')
        x_factor = abs(shoulder - hip) if shoulder is not None and hip is not None else None
        return {'shoulder_turn': shoulder, 'hip_turn': hip, 'x_factor': x_factor}

    def _weight_transfer(self, phases: Dict[str, Phase], frames: Sequence[PoseFrame]) -> Dict[str, Optional[float]]:
        keys = {'weight_address': ('address', 'mid'), 'weight_top': ('top', 'start'),
                'weight_impact': ('impact', 'start')}
        result = {}
        for metric, (name, anchor) in keys.items():
            phase = phases.get(name)
            if phase is None or not frames:
                result[metric] = None
                continue
            frame = phase.mid_frame if anchor == 'mid' else phase.start_frame
            split = self.biomechanics.get_weight_distribution(frames[frame])
            result[metric] = split[0] if split else None
        return result

    def _swing_plane(self, phases: Dict[str, Phase], club_path: ClubPath) -> Dict[str, Optional[float]]:
        empty = {'plane_angle': None, 'plane_deviation': None, 'impact_path_angle': None}
        address, top, impact = phases.get('address'), phases.get('top'), phases.get('impact')
        if len(club_path.points) < 2 or address is None or top is None or impact is None:
            return empty

        frames = club_path.frames()
        positions = club_path.positions()
        origin = positions[int(np.argmin(np.abs(frames - address.end_frame)))]

        def elevation(point):
            # degrees above horizontal, image y grows downward
            return math.degrees(math.atan2(origin[1] - point[1], abs(point[0] - origin[0])))

        window = (frames >= address.end_frame) & (frames <= impact.start_frame)
        far = np.linalg.norm(positions[:, :2] - origin[:2], axis=1) > MIN_PLANE_RADIUS
        angles = [elevation(p) for p in positions[window & far]]
        backswing = [elevation(p) for p in positions[window & far & (frames <= top.start_frame)]]

        result = dict(empty)
        if backswing:
            result['plane_angle'] = float(np.median(backswing))
        if len(angles) >= 2:
            result['plane_deviation'] = float(np.mean(np.abs(np.diff(angles))))

        k = int(np.argmin(np.abs(frames - impact.start_frame)))
        lo, hi = max(0, k - 1), min(len(positions) - 1, k + 1)
        if hi > lo:
            dx, dy = positions[hi][0] - positions[lo][0], positions[hi][1] - positions[lo][1]
            if math.hypot(dx, dy) > 1e-9:
                result['impact_path_angle'] = math.degrees(math.atan2(-dy, abs(dx)))
        return result

    def _body_alignment(self, phases: Dict[str, Phase], frames: Sequence[PoseFrame]) -> Dict[str, Optional[float]]:
        address, impact = phases.get('address'), phases.get('impact')
        if address is None or not frames:
            return {'spine_angle': None, 'head_movement': None, 'knee_flex': None}

        bio = self.biomechanics
        setup = frames[address.mid_frame]
        end = impact.start_frame if impact is not None else len(frames) - 1
        offsets = [bio.get_head_offset(frames[i], setup) for i in range(address.mid_frame, end + 1)]
        offsets = [o for o in offsets if o is not None]

        return {
            'spine_angle': bio.get_spine_angle(setup),
            'head_movement': max(offsets) if offsets else None,
            'knee_flex': bio.get_mean_knee_flex(setup),
        }

    def _kinematic_sequence(self, phases: Dict[str, Phase], frames: Sequence[PoseFrame],
                            club_path: ClubPath) -> KinematicSequence:
        """Peak-speed timing of hips, torso, arms and club over the downswing."""
        top, impact = phases.get('top'), phases.get('impact')
        if top is None or impact is None or impact.start_frame - top.start_frame < 3:
            return KinematicSequence()

        start, end = top.start_frame, impact.start_frame
        bio = self.biomechanics
        span = float(end - start)

        def angular_peak(segment):
            angles = [bio.get_segment_angle(frames[i], segment) for i in range(start, end + 1)]
            speeds = [abs(bio.wrap_degrees(b - a)) if a is not None and b is not None else -1.0
                      for a, b in zip(angles[:-1], angles[1:])]
            return start + 1 + int(np.argmax(speeds)) if max(speeds) >= 0 else None

        def point_peak(points):
            speeds = [np.linalg.norm(b - a) if a is not None and b is not None else -1.0
                      for a, b in zip(points[:-1], points[1:])]
            return start + 1 + int(np.argmax(speeds)) if max(speeds) >= 0 else None

        lead_wrist = BodyPart.for_side(bio.lead_side, 'wrist')
        wrist_points = [frames[i].point(lead_wrist, bio.min_visibility) for i in range(start, end + 1)]

        path_frames = club_path.frames()
        in_window = (path_frames > start) & (path_frames <= end)
        club_peak = int(path_frames[in_window][np.argmax(club_path.velocities()[in_window])]) \
            if in_window.any() else None

        peaks = {
            'hips': angular_peak('hip'),
            'torso': angular_peak('shoulder'),
            'arms': point_peak(wrist_points),
            'club': club_peak,
        }
        peak_frames = {name: frame for name, frame in peaks.items() if frame is not None}
        if len(peak_frames) < len(peaks):
            return KinematicSequence(peak_frames=peak_frames)

        expected = KINEMATIC_SEQUENCE['order']
        order = tuple(sorted(expected, key=lambda name: (peak_frames[name], expected.index(name))))
        timing_scores = []
        for name, corridor in KINEMATIC_SEQUENCE['timing'].items():
            timing = (peak_frames[name] - start) / span
            timing_scores.append(score_value(timing, *corridor.for_level(self.skill_level)))

        return KinematicSequence(peak_frames=peak_frames, order=order, in_order=order == expected,
                                 score=float(np.mean(timing_scores)))

    # ============================================
    # FEEDBACK
    # ============================================

    def _feedback(self, values: Dict[str, float], scores: Dict[str, float], missing: List[str],
                  overall: float, grade: str) -> Tuple[List[str], List[str]]:
        phrase = CLUB_PHRASES[self.club]
        feedback = [f"Overall grade {grade} ({overall:.0f}/100) {phrase} "
                    f"against {self.skill_level} benchmarks."]

        for metric in METRIC_LABELS:
            if metric in missing:
                feedback.append(f"{METRIC_LABELS[metric]}: could not be measured from the pose data")
                continue
            info = self.benchmarks.get_deviation(metric, values[metric], self.skill_level)
            if info['severity'] in ('moderate', 'major'):
                unit = self.benchmarks.get_corridor(metric).unit
                direction = 'too high' if info['deviation'] > 0 else 'too low'
                feedback.append(f"{METRIC_LABELS[metric]}: {abs(info['deviation']):.1f}{unit} {direction} "
                                f"(ideal {info['ideal']:g}{unit})")
            elif info['severity'] == 'good':
                feedback.append(f"{METRIC_LABELS[metric]}: on target")

        measured = [m for m in scores if m not in missing]
        ranked = sorted(measured, key=lambda m: (scores[m], -self.benchmarks.get_corridor(m).importance))
        improvements = [f"{METRIC_LABELS[m]}: {COACHING_TIPS[m]}" for m in ranked[:3] if scores[m] < 70]
        improvements.append(CLUB_TIPS[self.club])
        return feedback, improvements

    # ============================================
    # EXPORT
    # ============================================

    def to_dataframe(self, metrics: SwingMetrics) -> pd.DataFrame:
        """One row per raw metric with its corridor, score and severity."""
        rows = []
        category_fields = {
            'weight_transfer': {'weight_address': 'address', 'weight_top': 'top', 'weight_impact': 'impact'},
        }
        for category, names in METRIC_CATEGORIES.items():
            record = getattr(metrics, category)
            for metric in names:
                attr = category_fields.get(category, {}).get(metric, metric)
                value = getattr(record, attr)
                info = self.benchmarks.get_deviation(metric, value, metrics.skill_level)
                rows.append({
                    'category': category,
                    'metric': metric,
                    'value': value,
                    'ideal': info['ideal'],
                    'min': info['min'],
                    'max': info['max'],
                    'score': record.scores.get(metric, 0.0),
                    'severity': info['severity'],
                })
        return pd.DataFrame(rows)

    def generate_report(self, metrics: SwingMetrics) -> str:
        """
        Generate a text report from scored metrics.

        Returns:
            Formatted text report
        """
        lines = []

        lines.append("=" * 60)
        lines.append("GOLF SWING ANALYSIS REPORT")
        lines.append("=" * 60)
        lines.append("")
        lines.append(f"Overall Score: {metrics.overall_score:.0f}/100  Grade: {metrics.letter_grade}")
        lines.append(f"Skill Level: {metrics.skill_level}  Club: {metrics.club}")
        lines.append("")

        lines.append("-" * 40)
        lines.append("CATEGORY SCORES:")
        lines.append("-" * 40)
        for name, record in metrics.categories().items():
            raw = ", ".join(f"{k}={v:.2f}" for k, v in record.raw_values().items())
            lines.append(f"{name.replace('_', ' ').title():<18} {record.score:5.1f}  ({raw})")

        if metrics.sequence.order:
            status = "in order" if metrics.sequence.in_order else "out of order"
            lines.append("")
            lines.append(f"Kinematic sequence: {' -> '.join(metrics.sequence.order)} ({status})")

        lines.append("")
        lines.append("-" * 40)
        lines.append("PRIORITY IMPROVEMENTS:")
        lines.append("-" * 40)
        for i, tip in enumerate(metrics.key_improvements, 1):
            lines.append(f"{i}. {tip}")

        lines.append("")
        lines.append("-" * 40)
        lines.append("FEEDBACK:")
        lines.append("-" * 40)
        for item in metrics.feedback:
            lines.append(f"• {item}")

        lines.append("")
        lines.append("=" * 60)

        return "\n".join(lines)
