"""
Weight diagnostics for the localization particle filter.

ESS, entropy and variance of the weight vector tell how concentrated the
population has become. The particle filter summarizes its weights after every
weighting pass, before any resampling, and the scenario driver keeps one
summary per step so that degeneracy and resampling events can be inspected.
"""

from __future__ import annotations

import tensorflow as tf
import tensorflow_probability as tfp


def compute_effective_sample_size(weights: tf.Tensor) -> tf.Tensor:
    """
    Effective Sample Size 1 / sum(w_i^2) of normalized weights.

    Ranges from 1 (one particle holds all weight) to N (uniform weights).
    Unlike the filter's resampling test this has no stabilizing epsilon, so
    it is exact for normalized weights and infinite for all-zero weights.

    Examples
    --------
    >>> compute_effective_sample_size(tf.constant([0.25, 0.25, 0.25, 0.25]))
    <tf.Tensor: shape=(), dtype=float32, numpy=4.0>
    """
    weights = tf.convert_to_tensor(weights, dtype=tf.float32)
    return 1.0 / tf.reduce_sum(weights ** 2)


def compute_weight_entropy(weights: tf.Tensor, normalize: bool = True) -> tf.Tensor:
    """
    Shannon entropy -sum(w_i log w_i) of the weight distribution.

    Parameters
    ----------
    weights : tf.Tensor
        Normalized particle weights of shape (N,).
    normalize : bool, optional
        Divide by log(N) so the result lies in [0, 1]; 1 means uniform
        weights, 0 means a single particle carries everything.
        Defaults to True.

    Returns
    -------
    tf.Tensor
        Entropy (scalar).
    """
    weights = tf.convert_to_tensor(weights, dtype=tf.float32)
    positive = tf.boolean_mask(weights, weights > 1e-12)

    if tf.size(positive) == 0:
        return tf.constant(0.0, dtype=tf.float32)

    entropy = -tf.reduce_sum(positive * tf.math.log(positive))

    if normalize:
        max_entropy = tf.math.log(tf.cast(tf.size(weights), tf.float32))
        if max_entropy > 0.0:
            entropy = entropy / max_entropy
        else:
            entropy = tf.constant(0.0, dtype=tf.float32)

    return entropy


def compute_weight_variance(weights: tf.Tensor) -> tf.Tensor:
    """Variance of the weights; zero for a uniform population."""
    weights = tf.convert_to_tensor(weights, dtype=tf.float32)
    return tfp.stats.variance(weights)


def summarize_weights(weights: tf.Tensor) -> dict:
    """ESS, normalized entropy, variance and largest weight as plain floats."""
    weights = tf.convert_to_tensor(weights, dtype=tf.float32)
    return {
        'ess': float(compute_effective_sample_size(weights)),
        'entropy': float(compute_weight_entropy(weights)),
        'variance': float(compute_weight_variance(weights)),
        'max_weight': float(tf.reduce_max(weights)),
    }
