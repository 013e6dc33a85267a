"""
Club Path Module
================
Club-head trajectory estimation from arm landmarks.
"""

from .path import ClubPathEstimator, central_difference_speeds, reference_points

__all__ = ['ClubPathEstimator', 'central_difference_speeds', 'reference_points']
