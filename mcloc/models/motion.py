"""
Stochastic motion model for a planar robot.

A motion command is a forward distance followed by a rotation. The executed
motion differs from the command by independent Gaussian noise on both parts:

    d' = d + N(0, sigma_pos)
    r' = r + N(0, sigma_rot)
    x  <- x + d' cos(theta)
    y  <- y + d' sin(theta)
    theta <- (theta + r') mod 2*pi

The same transition drives the simulated robot and every particle of the
filter. Each caller passes its own tf.random.Generator, so the robot and the
particles draw from independent noise streams.
"""

from __future__ import annotations

import math

import tensorflow as tf

TWO_PI = 2.0 * math.pi


def wrap_heading(theta: tf.Tensor) -> tf.Tensor:
    """
    Map angles into [0, 2*pi).

    Parameters
    ----------
    theta : tf.Tensor
        Angles in radians, any shape.

    Returns
    -------
    tf.Tensor
        Angles in [0, 2*pi), same shape.
    """
    theta = tf.cast(theta, tf.float32)
    wrapped = tf.math.floormod(theta, TWO_PI)
    # floormod of a tiny negative angle can round up to exactly 2*pi in float32
    return tf.where(wrapped >= TWO_PI, wrapped - TWO_PI, wrapped)


def sample_motion(poses: tf.Tensor, distance: float, rotation: float,
                  sigma_pos: float, sigma_rot: float,
                  rng: tf.random.Generator) -> tf.Tensor:
    """
    Apply a noisy (distance, rotation) command to a batch of poses.

    Every pose receives its own noise draw. Translation uses the heading
    before the rotation is applied.

    Parameters
    ----------
    poses : tf.Tensor
        Poses [x, y, theta] of shape (N, 3) or (3,).
    distance : float
        Commanded forward distance.
    rotation : float
        Commanded rotation in radians.
    sigma_pos : float
        Standard deviation of the distance noise.
    sigma_rot : float
        Standard deviation of the rotation noise.
    rng : tf.random.Generator
        Noise source.

    Returns
    -------
    tf.Tensor
        Moved poses with the same shape as ``poses``; headings in [0, 2*pi).
    """
    poses = tf.cast(poses, tf.float32)
    single = len(poses.shape) == 1
    if single:
        poses = poses[tf.newaxis, :]

    shape = tf.shape(poses)[:1]
    noisy_distance = distance + rng.normal(shape, stddev=sigma_pos, dtype=tf.float32)
    noisy_rotation = rotation + rng.normal(shape, stddev=sigma_rot, dtype=tf.float32)

    x = poses[:, 0]
    y = poses[:, 1]
    theta = poses[:, 2]

    x_next = x + noisy_distance * tf.cos(theta)
    y_next = y + noisy_distance * tf.sin(theta)
    theta_next = wrap_heading(theta + noisy_rotation)

    moved = tf.stack([x_next, y_next, theta_next], axis=1)
    return moved[0] if single else moved
