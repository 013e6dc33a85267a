"""
Validation Module
=================
Plausibility and consistency checks over one analysis result.
"""

from .validator import SwingValidator, reliability_grade

__all__ = ['SwingValidator', 'reliability_grade']
