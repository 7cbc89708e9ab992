"""
Accuracy metrics for pose estimates.

Poses are [x, y, theta] rows. Position errors are Euclidean; heading errors
are wrapped to [0, pi] so that estimates on either side of the 0/2*pi
boundary compare correctly.
"""

from __future__ import annotations

import math

import tensorflow as tf


def _as_poses(poses: tf.Tensor) -> tf.Tensor:
    poses = tf.convert_to_tensor(poses, dtype=tf.float32)
    if len(poses.shape) == 1:
        poses = poses[tf.newaxis, :]
    return poses


def compute_rmse(estimates: tf.Tensor, ground_truth: tf.Tensor) -> float:
    """
    Root mean squared position error over a trajectory.

    Parameters
    ----------
    estimates : tf.Tensor
        Estimated poses of shape (T, 3).
    ground_truth : tf.Tensor
        True poses of shape (T, 3).

    Returns
    -------
    float
        RMSE of the (x, y) error.

    Examples
    --------
    >>> x_true = tf.constant([[1.0, 2.0, 0.0], [3.0, 4.0, 0.0]])
    >>> x_est = tf.constant([[1.1, 2.0, 0.0], [3.0, 4.1, 0.0]])
    >>> rmse = compute_rmse(x_est, x_true)
    >>> print(f"RMSE: {rmse:.4f}")
    RMSE: 0.1000
    """
    errors = compute_position_errors(estimates, ground_truth)
    return float(tf.sqrt(tf.reduce_mean(errors ** 2)))


def compute_position_errors(estimates: tf.Tensor, ground_truth: tf.Tensor) -> tf.Tensor:
    """Euclidean (x, y) error at each step, shape (T,)."""
    estimates = _as_poses(estimates)
    ground_truth = _as_poses(ground_truth)
    diff = estimates[:, :2] - ground_truth[:, :2]
    return tf.norm(diff, axis=1)


def compute_per_axis_errors(estimates: tf.Tensor, ground_truth: tf.Tensor) -> tf.Tensor:
    """Absolute x and y errors at each step, shape (T, 2)."""
    estimates = _as_poses(estimates)
    ground_truth = _as_poses(ground_truth)
    return tf.abs(estimates[:, :2] - ground_truth[:, :2])


def compute_heading_errors(estimates: tf.Tensor, ground_truth: tf.Tensor) -> tf.Tensor:
    """Absolute heading error at each step, wrapped to [0, pi], shape (T,)."""
    estimates = _as_poses(estimates)
    ground_truth = _as_poses(ground_truth)
    diff = estimates[:, 2] - ground_truth[:, 2]
    wrapped = tf.math.atan2(tf.sin(diff), tf.cos(diff))
    return tf.minimum(tf.abs(wrapped), math.pi)
