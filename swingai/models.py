"""
Result records produced by one analysis call.

Every record is a frozen dataclass with a fixed set of fields, created fresh
per invocation and never mutated afterwards.
"""

from dataclasses import asdict, dataclass, field
from typing import ClassVar, Dict, List, Optional, Tuple

import numpy as np


# ============================================
# PHASES
# ============================================

@dataclass(frozen=True)
class PhaseMetrics:
    """Derived sub-metrics over one phase window."""
    shoulder_rotation: float = 0.0   # degrees turned between phase start and mid frame
    hip_rotation: float = 0.0
    lead_weight: float = 50.0        # % of weight over the lead foot at the mid frame
    trail_weight: float = 50.0
    velocity: float = 0.0            # tracked point, normalized units / second
    acceleration: float = 0.0        # normalized units / second^2
    club_position: Optional[Tuple[float, float, float]] = None


@dataclass(frozen=True)
class Phase:
    name: str
    start_frame: int
    end_frame: int
    start_time: float       # ms
    end_time: float         # ms
    confidence: float
    metrics: PhaseMetrics = field(default_factory=PhaseMetrics)

    @property
    def duration(self) -> float:
        """Duration in milliseconds."""
        return self.end_time - self.start_time

    @property
    def duration_s(self) -> float:
        return self.duration / 1000.0

    @property
    def frame_count(self) -> int:
        return self.end_frame - self.start_frame

    @property
    def mid_frame(self) -> int:
        return (self.start_frame + self.end_frame) // 2


# ============================================
# CLUB PATH
# ============================================

@dataclass(frozen=True)
class ClubPathPoint:
    x: float
    y: float
    z: float
    frame: int
    timestamp: float        # ms
    velocity: float         # normalized units / second
    confidence: float

    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)


@dataclass(frozen=True)
class PathValidation:
    smoothness: float = 0.0
    arc_height: float = 0.0
    arc_height_deviation: float = 0.0
    continuity: float = 0.0
    physical_plausibility: float = 0.0
    reference_points: Dict[str, int] = field(default_factory=dict)
    issues: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ClubPath:
    points: Tuple[ClubPathPoint, ...] = ()
    accuracy: float = 0.0
    confidence: float = 0.0
    smoothness: float = 0.0
    arc_height_deviation: float = 0.0
    calibration_used: bool = False
    validation: PathValidation = field(default_factory=PathValidation)

    def __len__(self):
        return len(self.points)

    def frames(self) -> np.ndarray:
        return np.array([p.frame for p in self.points], dtype=int)

    def positions(self) -> np.ndarray:
        if not self.points:
            return np.zeros((0, 3))
        return np.array([[p.x, p.y, p.z] for p in self.points], dtype=float)

    def velocities(self) -> np.ndarray:
        return np.array([p.velocity for p in self.points], dtype=float)

    def timestamps(self) -> np.ndarray:
        return np.array([p.timestamp for p in self.points], dtype=float)

    def point_at(self, frame: int) -> Optional[ClubPathPoint]:
        for point in self.points:
            if point.frame == frame:
                return point
        return None


# ============================================
# IMPACT
# ============================================

@dataclass(frozen=True)
class MethodEstimate:
    method: str
    frame: int = 0
    confidence: float = 0.0
    raw_value: float = 0.0
    note: Optional[str] = None


@dataclass(frozen=True)
class ImpactDetectionResult:
    frame: int
    confidence: float
    methods: Tuple[MethodEstimate, ...]
    agreement: float = 0.0
    consistency: float = 0.0
    discrepancies: Tuple[str, ...] = ()

    def method(self, name: str) -> Optional[MethodEstimate]:
        for estimate in self.methods:
            if estimate.method == name:
                return estimate
        return None


# ============================================
# METRICS
# ============================================

@dataclass(frozen=True)
class _Category:
    RAW_FIELDS: ClassVar[Tuple[str, ...]] = ()

    def raw_values(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in self.RAW_FIELDS}


@dataclass(frozen=True)
class TempoMetrics(_Category):
    RAW_FIELDS: ClassVar[Tuple[str, ...]] = ('backswing_time', 'downswing_time', 'tempo_ratio')
    backswing_time: float = 0.0   # seconds
    downswing_time: float = 0.0   # seconds
    tempo_ratio: float = 0.0
    scores: Dict[str, float] = field(default_factory=dict)
    score: float = 0.0


@dataclass(frozen=True)
class RotationMetrics(_Category):
    RAW_FIELDS: ClassVar[Tuple[str, ...]] = ('shoulder_turn', 'hip_turn', 'x_factor')
    shoulder_turn: float = 0.0
    hip_turn: float = 0.0
    x_factor: float = 0.0
    scores: Dict[str, float] = field(default_factory=dict)
    score: float = 0.0


@dataclass(frozen=True)
class WeightTransferMetrics(_Category):
    RAW_FIELDS: ClassVar[Tuple[str, ...]] = ('address', 'top', 'impact')
    address: float = 50.0   # % lead foot
    top: float = 50.0
    impact: float = 50.0
    scores: Dict[str, float] = field(default_factory=dict)
    score: float = 0.0


@dataclass(frozen=True)
class SwingPlaneMetrics(_Category):
    RAW_FIELDS: ClassVar[Tuple[str, ...]] = ('plane_angle', 'plane_deviation', 'impact_path_angle')
    plane_angle: float = 0.0
    plane_deviation: float = 0.0
    impact_path_angle: float = 0.0
    scores: Dict[str, float] = field(default_factory=dict)
    score: float = 0.0


@dataclass(frozen=True)
class BodyAlignmentMetrics(_Category):
    RAW_FIELDS: ClassVar[Tuple[str, ...]] = ('spine_angle', 'head_movement', 'knee_flex')
    spine_angle: float = 0.0
    head_movement: float = 0.0    # lateral head shift / shoulder width
    knee_flex: float = 0.0
    scores: Dict[str, float] = field(default_factory=dict)
    score: float = 0.0


@dataclass(frozen=True)
class KinematicSequence:
    """Order of peak segment speeds over the downswing."""
    peak_frames: Dict[str, int] = field(default_factory=dict)
    order: Tuple[str, ...] = ()
    in_order: bool = False
    score: float = 0.0


@dataclass(frozen=True)
class SwingMetrics:
    tempo: TempoMetrics
    rotation: RotationMetrics
    weight_transfer: WeightTransferMetrics
    swing_plane: SwingPlaneMetrics
    body_alignment: BodyAlignmentMetrics
    overall_score: float
    letter_grade: str
    skill_level: str = 'intermediate'
    club: str = 'driver'
    sequence: KinematicSequence = field(default_factory=KinematicSequence)
    feedback: Tuple[str, ...] = ()
    key_improvements: Tuple[str, ...] = ()
    unmeasured: Tuple[str, ...] = ()   # metric names without a measurement

    CATEGORY_NAMES: ClassVar[Tuple[str, ...]] = (
        'tempo', 'rotation', 'weight_transfer', 'swing_plane', 'body_alignment')

    def categories(self) -> Dict[str, _Category]:
        return {name: getattr(self, name) for name in self.CATEGORY_NAMES}


# ============================================
# VALIDATION + BUNDLE
# ============================================

@dataclass(frozen=True)
class ValidationReport:
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    reliability: float = 0.0
    reliability_grade: str = 'F'
    checks: Dict[str, bool] = field(default_factory=dict)

    @property
    def is_usable(self) -> bool:
        return not self.errors

    def has_issue(self, code: str) -> bool:
        prefix = f"{code}:"
        return any(msg.startswith(prefix) for msg in self.errors + self.warnings)


@dataclass(frozen=True)
class SwingAnalysisResult:
    phases: Tuple[Phase, ...]
    impact: ImpactDetectionResult
    club_path: ClubPath
    metrics: SwingMetrics
    validation: ValidationReport

    def phase(self, name: str) -> Optional[Phase]:
        for phase in self.phases:
            if phase.name == name:
                return phase
        return None

    def to_dict(self) -> Dict:
        """Plain-dict form (JSON-serializable)."""
        return asdict(self)
