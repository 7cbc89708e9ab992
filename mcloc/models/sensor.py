"""
Range-only sensor model for localization with known landmarks.

The robot measures its distance to every landmark. Measurements are ordered
like the landmarks: measurement i always refers to landmark i.
"""

from __future__ import annotations

import tensorflow as tf
import tensorflow_probability as tfp

tfd = tfp.distributions


def check_alignment(measurements: tf.Tensor, landmarks: tf.Tensor) -> None:
    """Raise ValueError unless there is exactly one measurement per landmark."""
    num_measurements = int(tf.size(measurements))
    num_landmarks = int(tf.shape(landmarks)[0])
    if num_measurements != num_landmarks:
        raise ValueError(
            f"Got {num_measurements} measurements for {num_landmarks} landmarks; "
            "measurements must be index-aligned with landmarks"
        )


def expected_ranges(poses: tf.Tensor, landmarks: tf.Tensor) -> tf.Tensor:
    """
    Noise-free distances from poses to landmarks.

    Parameters
    ----------
    poses : tf.Tensor
        Poses of shape (N, 3) or (3,). Only x and y are used.
    landmarks : tf.Tensor
        Landmark positions of shape (M, 2).

    Returns
    -------
    tf.Tensor
        Ranges of shape (N, M), or (M,) for a single pose.
    """
    poses = tf.cast(poses, tf.float32)
    landmarks = tf.cast(landmarks, tf.float32)
    single = len(poses.shape) == 1
    if single:
        poses = poses[tf.newaxis, :]

    dx = landmarks[tf.newaxis, :, 0] - poses[:, 0:1]
    dy = landmarks[tf.newaxis, :, 1] - poses[:, 1:2]
    ranges = tf.sqrt(dx ** 2 + dy ** 2)

    return ranges[0] if single else ranges


def sense_ranges(pose: tf.Tensor, landmarks: tf.Tensor, sigma_sense: float,
                 rng: tf.random.Generator) -> tf.Tensor:
    """
    Noisy range measurements from a single pose to every landmark.

    Parameters
    ----------
    pose : tf.Tensor
        True pose [x, y, theta].
    landmarks : tf.Tensor
        Landmark positions of shape (M, 2).
    sigma_sense : float
        Standard deviation of the range noise.
    rng : tf.random.Generator
        Noise source.

    Returns
    -------
    tf.Tensor
        Measurements of shape (M,).
    """
    ranges = expected_ranges(tf.reshape(tf.cast(pose, tf.float32), [3]), landmarks)
    noise = rng.normal(tf.shape(ranges), stddev=sigma_sense, dtype=tf.float32)
    return ranges + noise


def range_likelihood(poses: tf.Tensor, measurements: tf.Tensor,
                     landmarks: tf.Tensor, sigma_sense: float) -> tf.Tensor:
    """
    Unnormalized likelihood of the measurements for each pose.

    The likelihood is the product over landmarks of the Gaussian density of
    the residual between the measured and the expected range. Landmarks are
    treated as independent. Far-off poses can underflow to exactly zero.

    Parameters
    ----------
    poses : tf.Tensor
        Particle poses of shape (N, 3).
    measurements : tf.Tensor
        Measured ranges of shape (M,), aligned with ``landmarks``.
    landmarks : tf.Tensor
        Landmark positions of shape (M, 2).
    sigma_sense : float
        Standard deviation of the range noise.

    Returns
    -------
    tf.Tensor
        Likelihoods of shape (N,).
    """
    measurements = tf.reshape(tf.cast(measurements, tf.float32), [-1])
    check_alignment(measurements, landmarks)

    predicted = expected_ranges(poses, landmarks)
    residuals = measurements[tf.newaxis, :] - predicted

    noise = tfd.Normal(loc=0.0, scale=tf.cast(sigma_sense, tf.float32))
    return tf.reduce_prod(noise.prob(residuals), axis=1)
