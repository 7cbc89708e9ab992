"""
Metrics for evaluating localization runs.

This package provides metrics for:
- Accuracy: RMSE, position, per-axis and heading errors
- Particle filter diagnostics: ESS, weight entropy, weight variance
"""

from __future__ import annotations

from mcloc.metrics.accuracy import (
    compute_rmse,
    compute_position_errors,
    compute_per_axis_errors,
    compute_heading_errors,
)

from mcloc.metrics.particle_filter_metrics import (
    compute_effective_sample_size,
    compute_weight_entropy,
    compute_weight_variance,
    summarize_weights,
)

__all__ = [
    # Accuracy metrics
    'compute_rmse',
    'compute_position_errors',
    'compute_per_axis_errors',
    'compute_heading_errors',
    # Particle filter metrics
    'compute_effective_sample_size',
    'compute_weight_entropy',
    'compute_weight_variance',
    'summarize_weights',
]
