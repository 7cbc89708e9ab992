"""
Resampling algorithms for particle filters.

This module provides the resampling strategies used by the localization
filter to counter weight degeneracy, and the effective sample size test that
decides when to resample.

Supported Methods
-----------------
- Multinomial: independent categorical draws (default)
- Systematic: Low variance, O(N), one random offset
- Stratified: one uniform draw per stratum

Every sampler takes an explicit tf.random.Generator so runs are reproducible
and independent of the global TensorFlow seed.

Key Concept: Effective Sample Size (ESS)
----------------------------------------
ESS = 1 / Σᵢ(wᵢ)² measures how many particles have significant weight.
- ESS = N: All weights equal (ideal)
- ESS = 1: One particle has all weight (severe degeneracy)
- The filter resamples when ESS < 0.5N

References
----------
- Douc, R., Cappe, O., & Moulines, E. (2005). "Comparison of resampling schemes"
- Thrun, S., Burgard, W., & Fox, D. (2005). "Probabilistic Robotics", ch. 4
"""

from __future__ import annotations

import tensorflow as tf

ESS_EPSILON = 1e-6


def _normalized_cdf(weights: tf.Tensor) -> tf.Tensor:
    """Cumulative distribution of the weights, ending exactly at 1."""
    weights = tf.cast(weights, tf.float32)
    total = tf.reduce_sum(weights)
    if not total > 0.0:
        raise ValueError("Cannot resample from weights with a non-positive total")
    cumsum = tf.cumsum(weights / total)
    return cumsum / cumsum[-1]


def _lookup(cdf: tf.Tensor, positions: tf.Tensor) -> tf.Tensor:
    n = tf.shape(cdf)[0]
    indices = tf.searchsorted(cdf, positions, side='right')
    return tf.minimum(indices, n - 1)


def multinomial_resample(weights: tf.Tensor, rng: tf.random.Generator) -> tf.Tensor:
    """
    Multinomial resampling.

    Draws N indices with replacement; index i is drawn with probability equal
    to its normalized weight. Zero-weight particles are never selected.

    Parameters
    ----------
    weights : tf.Tensor
        Particle weights of shape (N,). Need not be normalized but must have
        a positive total.
    rng : tf.random.Generator
        Random source.

    Returns
    -------
    tf.Tensor
        Resampled indices of shape (N,), dtype int32.
    """
    cdf = _normalized_cdf(weights)
    positions = rng.uniform(tf.shape(cdf), dtype=tf.float32)
    return _lookup(cdf, positions)


def systematic_resample(weights: tf.Tensor, rng: tf.random.Generator) -> tf.Tensor:
    """
    Systematic resampling with low variance.

    Parameters
    ----------
    weights : tf.Tensor
        Particle weights of shape (N,).
    rng : tf.random.Generator
        Random source.

    Returns
    -------
    tf.Tensor
        Resampled indices of shape (N,), dtype int32.

    Notes
    -----
    The algorithm generates N positions using:
        positions[i] = (u + i) / N
    where u ~ Uniform(0, 1), then selects indices based on cumulative weights.
    """
    cdf = _normalized_cdf(weights)
    n_float = tf.cast(tf.shape(cdf)[0], tf.float32)
    u = rng.uniform([], dtype=tf.float32)
    positions = (u + tf.cast(tf.range(tf.shape(cdf)[0]), tf.float32)) / n_float
    return _lookup(cdf, positions)


def stratified_resample(weights: tf.Tensor, rng: tf.random.Generator) -> tf.Tensor:
    """
    Stratified resampling.

    Divides the CDF into N equal strata and samples one particle per stratum.
    Lower variance than multinomial but slightly higher than systematic.

    Parameters
    ----------
    weights : tf.Tensor
        Particle weights of shape (N,).
    rng : tf.random.Generator
        Random source.

    Returns
    -------
    tf.Tensor
        Resampled indices of shape (N,), dtype int32.
    """
    cdf = _normalized_cdf(weights)
    n = tf.shape(cdf)[0]
    n_float = tf.cast(n, tf.float32)
    u = rng.uniform([n], dtype=tf.float32)
    positions = (tf.cast(tf.range(n), tf.float32) + u) / n_float
    return _lookup(cdf, positions)


RESAMPLERS = {
    'multinomial': multinomial_resample,
    'systematic': systematic_resample,
    'stratified': stratified_resample,
}


def resample_indices(weights: tf.Tensor, rng: tf.random.Generator,
                     method: str = 'multinomial') -> tf.Tensor:
    """Draw N resampling indices with the named method."""
    try:
        resampler = RESAMPLERS[method]
    except KeyError:
        raise ValueError(f"Unknown resampling method: {method}") from None
    return resampler(weights, rng)


def resample_particles(
    particles: tf.Tensor,
    weights: tf.Tensor,
    rng: tf.random.Generator,
    method: str = 'multinomial'
) -> tuple[tf.Tensor, tf.Tensor]:
    """
    Resample particles using the specified method.

    This is a convenience function that handles the full resampling process:
    1. Compute resampling indices
    2. Gather resampled particles
    3. Reset weights to uniform

    Parameters
    ----------
    particles : tf.Tensor
        Particle states of shape (N, d).
    weights : tf.Tensor
        Particle weights of shape (N,).
    rng : tf.random.Generator
        Random source.
    method : str, optional
        Resampling method. One of 'multinomial', 'systematic', 'stratified'.
        Default 'multinomial'.

    Returns
    -------
    resampled_particles : tf.Tensor
        Resampled particles of shape (N, d).
    uniform_weights : tf.Tensor
        Uniform weights of shape (N,).
    """
    N = tf.shape(particles)[0]
    indices = resample_indices(weights, rng, method)
    resampled = tf.gather(particles, indices)
    uniform_weights = tf.ones(N, dtype=tf.float32) / tf.cast(N, tf.float32)
    return resampled, uniform_weights


def compute_ess(weights: tf.Tensor, eps: float = ESS_EPSILON) -> tf.Tensor:
    """
    Compute Effective Sample Size (ESS).

    ESS = 1 / (sum(w_i^2) + eps)

    The small ``eps`` keeps the value finite when every weight is zero.

    Parameters
    ----------
    weights : tf.Tensor
        Normalized particle weights of shape (N,).
    eps : float, optional
        Stabilizing constant. Default 1e-6.

    Returns
    -------
    tf.Tensor
        Effective sample size (scalar).
    """
    weights = tf.cast(weights, tf.float32)
    return 1.0 / (tf.reduce_sum(weights ** 2) + eps)


def should_resample(weights: tf.Tensor, threshold: float = 0.5) -> tf.Tensor:
    """
    Determine if resampling should be performed based on ESS.

    Parameters
    ----------
    weights : tf.Tensor
        Normalized particle weights of shape (N,).
    threshold : float, optional
        ESS threshold as fraction of N. Default 0.5.

    Returns
    -------
    tf.Tensor
        Boolean scalar indicating whether to resample.
    """
    N = tf.shape(weights)[0]
    ess = compute_ess(weights)
    ess_threshold = threshold * tf.cast(N, tf.float32)
    return ess < ess_threshold
