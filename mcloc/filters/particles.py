"""
Particle population container.

A population of N pose hypotheses is stored as two tensors: poses of shape
(N, 3) holding [x, y, theta] rows, and weights of shape (N,). The size N is
fixed when the set is created. Sets are treated as values: operations return
new sets instead of modifying tensors shared with a caller.
"""

from __future__ import annotations

from typing import NamedTuple

import tensorflow as tf

from mcloc.models.motion import wrap_heading


class Particle(NamedTuple):
    """A single weighted pose hypothesis."""
    x: float
    y: float
    theta: float
    weight: float


class ParticleSet:
    """
    Weighted pose hypotheses.

    Parameters
    ----------
    poses : tf.Tensor
        Particle poses of shape (N, 3).
    weights : tf.Tensor, optional
        Particle weights of shape (N,). Defaults to uniform 1/N.
    """

    def __init__(self, poses: tf.Tensor, weights: tf.Tensor | None = None):
        poses = tf.convert_to_tensor(poses, dtype=tf.float32)
        if len(poses.shape) != 2 or poses.shape[1] != 3:
            raise ValueError(f"poses must have shape (N, 3), got {poses.shape}")
        n = int(poses.shape[0])
        if n <= 0:
            raise ValueError("A particle set needs at least one particle")

        if weights is None:
            weights = tf.fill([n], 1.0 / n)
        weights = tf.reshape(tf.convert_to_tensor(weights, dtype=tf.float32), [-1])
        if int(weights.shape[0]) != n:
            raise ValueError(f"Got {int(weights.shape[0])} weights for {n} particles")

        self._poses = poses
        self._weights = weights

    @property
    def poses(self) -> tf.Tensor:
        return self._poses

    @property
    def weights(self) -> tf.Tensor:
        return self._weights

    @property
    def size(self) -> int:
        return int(self._poses.shape[0])

    def __len__(self) -> int:
        return self.size

    @property
    def x(self) -> tf.Tensor:
        return self._poses[:, 0]

    @property
    def y(self) -> tf.Tensor:
        return self._poses[:, 1]

    @property
    def theta(self) -> tf.Tensor:
        return self._poses[:, 2]

    def __getitem__(self, index: int) -> Particle:
        x, y, theta = (float(v) for v in self._poses[index].numpy())
        return Particle(x, y, theta, float(self._weights[index]))

    def weight_sum(self) -> tf.Tensor:
        return tf.reduce_sum(self._weights)

    def with_poses(self, poses: tf.Tensor) -> "ParticleSet":
        """New set with the given poses and the current weights."""
        poses = tf.convert_to_tensor(poses, dtype=tf.float32)
        if poses.shape != self._poses.shape:
            raise ValueError(f"Expected poses of shape {self._poses.shape}, got {poses.shape}")
        return ParticleSet(poses, self._weights)

    def with_weights(self, weights: tf.Tensor) -> "ParticleSet":
        """New set with the current poses and the given weights."""
        return ParticleSet(self._poses, weights)

    def __repr__(self) -> str:
        return f"ParticleSet(size={self.size}, weight_sum={float(self.weight_sum()):.4f})"


def sample_gaussian_particles(x: float, y: float, theta: float, num_particles: int,
                              sigma_pos: float, sigma_rot: float,
                              rng: tf.random.Generator) -> ParticleSet:
    """
    Draw an initial population around a pose estimate.

    x and y are drawn from N(x, sigma_pos) and N(y, sigma_pos), the heading
    from N(theta, sigma_rot) wrapped into [0, 2*pi). Every particle starts
    with weight 1/N.

    Parameters
    ----------
    x, y, theta : float
        Initial pose estimate.
    num_particles : int
        Population size N, must be positive.
    sigma_pos : float
        Position spread.
    sigma_rot : float
        Heading spread.
    rng : tf.random.Generator
        Noise source.

    Returns
    -------
    ParticleSet
        Population of exactly N particles with weights summing to 1.
    """
    if int(num_particles) <= 0:
        raise ValueError(f"num_particles must be positive, got {num_particles}")
    n = int(num_particles)

    xs = rng.normal([n], mean=x, stddev=sigma_pos, dtype=tf.float32)
    ys = rng.normal([n], mean=y, stddev=sigma_pos, dtype=tf.float32)
    thetas = wrap_heading(rng.normal([n], mean=theta, stddev=sigma_rot, dtype=tf.float32))

    poses = tf.stack([xs, ys, thetas], axis=1)
    weights = tf.fill([n], 1.0 / n)
    return ParticleSet(poses, weights)
