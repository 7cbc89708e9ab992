"""
Motion, sensor and environment models for range-only localization.
"""

from mcloc.models.agent import Robot
from mcloc.models.environment import Environment, square_room
from mcloc.models.motion import TWO_PI, sample_motion, wrap_heading
from mcloc.models.sensor import (
    check_alignment,
    expected_ranges,
    range_likelihood,
    sense_ranges,
)

__all__ = [
    'Robot',
    'Environment',
    'square_room',
    'TWO_PI',
    'sample_motion',
    'wrap_heading',
    'check_alignment',
    'expected_ranges',
    'range_likelihood',
    'sense_ranges',
]
