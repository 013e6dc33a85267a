"""
Impact Consensus Detector

Four independent impact-frame heuristics, merged with the shared
confidence-weighted consensus:

- club_speed: frame of peak club-head speed
- weight_transfer: frame of the largest hip/knee lateral shift from address
- club_position: frame of the lowest club-head position
- dynamics: frame of peak club-head acceleration

A failure inside one heuristic only zeroes that heuristic.
"""

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from ..biomechanics.angles import GolfBiomechanics
from ..config import ImpactDetectionConfig
from ..consensus import weighted_consensus
from ..errors import (INSUFFICIENT_DATA, LOW_CONFIDENCE, InsufficientDataError,
                      InvalidLandmarksError, issue)
from ..models import ClubPath, ImpactDetectionResult, MethodEstimate
from ..pose.frames import PoseFrame

logger = logging.getLogger(__name__)

# Methods disagreeing with the consensus by more than this many frames get a note
DISAGREEMENT_FRAMES = 10


class ImpactConsensusDetector:
    """
    Detect the impact frame from the pose sequence and the club path.

    Args:
        config: ImpactDetectionConfig with expected maxima and sample minimum
        biomechanics: Angle helper used by the weight-transfer heuristic
    """

    METHODS = ('club_speed', 'weight_transfer', 'club_position', 'dynamics')

    def __init__(self, config: Optional[ImpactDetectionConfig] = None,
                 biomechanics: Optional[GolfBiomechanics] = None):
        self.config = config or ImpactDetectionConfig()
        self.biomechanics = biomechanics or GolfBiomechanics()

    def detect(self, frames: Sequence[PoseFrame], club_path: ClubPath,
               corroborating_frame: Optional[int] = None) -> ImpactDetectionResult:
        """
        Run all heuristics and merge them.

        Args:
            frames: Pose frames
            club_path: Estimated club-head path over the same frames
            corroborating_frame: Impact frame from an external, pre-extracted
                signal; only used to produce discrepancy notes

        Returns:
            ImpactDetectionResult (confidence 0 and frame 0 with too few samples)
        """
        n = len(frames)
        samples = len(club_path.points)

        if samples < self.config.min_samples:
            note = issue(INSUFFICIENT_DATA,
                         f"{samples} club path samples, impact detection needs {self.config.min_samples}")
            logger.warning(note)
            return ImpactDetectionResult(
                frame=0,
                confidence=0.0,
                methods=tuple(MethodEstimate(name, note=note) for name in self.METHODS),
                discrepancies=(note,)
            )

        heuristics = {
            'club_speed': lambda: self._club_speed(club_path),
            'weight_transfer': lambda: self._weight_transfer(frames),
            'club_position': lambda: self._club_position(club_path),
            'dynamics': lambda: self._dynamics(club_path),
        }

        estimates = []
        discrepancies = []
        for name in self.METHODS:
            try:
                estimates.append(heuristics[name]())
            except (InsufficientDataError, InvalidLandmarksError) as exc:
                logger.info("Impact method %s unavailable: %s", name, exc)
                estimates.append(MethodEstimate(name, note=str(exc)))
                discrepancies.append(f"{name}: {exc}")

        consensus = weighted_consensus([(e.frame, e.confidence) for e in estimates])
        frame = int(np.clip(math.floor(consensus.scalar + 0.5), 0, max(n - 1, 0)))
        confidence = float(np.clip(consensus.confidence, 0.0, 1.0))

        discrepancies.extend(self._discrepancy_notes(estimates, frame, n, corroborating_frame))
        if consensus.total_weight <= 0:
            discrepancies.append(issue(LOW_CONFIDENCE, "no impact heuristic produced evidence"))

        logger.debug("Impact consensus frame=%d confidence=%.2f agreement=%.2f",
                     frame, confidence, consensus.agreement)

        return ImpactDetectionResult(
            frame=frame,
            confidence=confidence,
            methods=tuple(estimates),
            agreement=float(consensus.agreement),
            consistency=self._consistency(estimates, n),
            discrepancies=tuple(discrepancies)
        )

    # ============================================
    # HEURISTICS
    # ============================================

    def _require(self, available: int, method: str):
        if available < self.config.min_samples:
            raise InsufficientDataError(
                f"{method} needs {self.config.min_samples} samples, got {available}",
                required=self.config.min_samples, available=available)

    def _club_speed(self, club_path: ClubPath) -> MethodEstimate:
        points = club_path.points
        self._require(len(points), 'club_speed')
        speeds = club_path.velocities()[1:-1]
        k = 1 + int(np.argmax(speeds))
        max_speed = float(speeds.max())
        return MethodEstimate('club_speed', frame=points[k].frame,
                              confidence=min(1.0, max_speed / self.config.expected_max_speed),
                              raw_value=max_speed)

    def _weight_transfer(self, frames: Sequence[PoseFrame]) -> MethodEstimate:
        bio = self.biomechanics
        usable = [i for i, f in enumerate(frames)
                  if bio.get_center(f, 'hip') is not None and bio.get_center(f, 'knee') is not None]
        if not usable:
            raise InvalidLandmarksError("hips and knees not visible in any frame")
        self._require(len(usable), 'weight_transfer')

        reference = frames[usable[0]]
        shifts = np.array([bio.get_lateral_shift(frames[i], reference) for i in usable], dtype=float)
        k = int(np.argmax(shifts))
        shift = float(shifts[k])
        return MethodEstimate('weight_transfer', frame=usable[k],
                              confidence=min(1.0, shift / self.config.expected_shift),
                              raw_value=shift)

    def _club_position(self, club_path: ClubPath) -> MethodEstimate:
        points = club_path.points
        self._require(len(points), 'club_position')
        ys = club_path.positions()[:, 1]
        k = int(np.argmax(ys))
        variance = float(ys.var())
        return MethodEstimate('club_position', frame=points[k].frame,
                              confidence=min(1.0, variance * self.config.position_variance_scale),
                              raw_value=float(ys[k]))

    def _dynamics(self, club_path: ClubPath) -> MethodEstimate:
        points = club_path.points
        self._require(len(points), 'dynamics')
        positions = club_path.positions()
        times = club_path.timestamps() / 1000.0

        accel = np.zeros(len(points))
        for k in range(1, len(points) - 1):
            dt0, dt1 = times[k] - times[k - 1], times[k + 1] - times[k]
            if dt0 <= 0 or dt1 <= 0:
                continue
            v_back = (positions[k] - positions[k - 1]) / dt0
            v_fwd = (positions[k + 1] - positions[k]) / dt1
            accel[k] = np.linalg.norm(v_fwd - v_back) / ((dt0 + dt1) / 2.0)

        k = int(np.argmax(accel))
        peak = float(accel[k])
        return MethodEstimate('dynamics', frame=points[k].frame,
                              confidence=min(1.0, peak / self.config.expected_max_acceleration),
                              raw_value=peak)

    # ============================================
    # DIAGNOSTICS
    # ============================================

    def _discrepancy_notes(self, estimates: Sequence[MethodEstimate], frame: int, n: int,
                           corroborating_frame: Optional[int]) -> List[str]:
        cfg = self.config
        notes = []
        for estimate in estimates:
            if estimate.confidence > 0 and abs(estimate.frame - frame) > DISAGREEMENT_FRAMES:
                notes.append(f"{estimate.method} places impact at frame {estimate.frame}, "
                             f"{abs(estimate.frame - frame)} frames from consensus")
        if frame < cfg.early_fraction * n:
            notes.append("Impact detected unusually early in sequence")
        elif frame > cfg.late_fraction * n:
            notes.append("Impact detected unusually late in sequence")
        if corroborating_frame is not None and abs(int(corroborating_frame) - frame) > cfg.corroboration_window:
            notes.append(f"External signal places impact at frame {int(corroborating_frame)} "
                         f"(consensus {frame})")
        return notes

    @staticmethod
    def _consistency(estimates: Sequence[MethodEstimate], n: int) -> float:
        """1 minus the variance of the evidenced method frames, normalized by sequence length."""
        frames = [e.frame for e in estimates if e.confidence > 0]
        if not frames or n <= 0:
            return 0.0
        return float(max(0.0, 1.0 - np.var(frames) / (n * 10.0) ** 2))
