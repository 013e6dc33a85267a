"""
Impact Detection Module
=======================
Multi-method impact-frame consensus.
"""

from .detector import ImpactConsensusDetector

__all__ = ['ImpactConsensusDetector']
