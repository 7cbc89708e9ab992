"""
Simulated robot that moves and senses with noise.

The robot carries the true pose, which is only read for evaluation and
reporting. The filter sees the commands and the measurements, never the pose.
"""

from __future__ import annotations

import tensorflow as tf

from mcloc.models.motion import sample_motion, wrap_heading
from mcloc.models.sensor import sense_ranges


class Robot:
    """
    Planar robot with noisy motion and range sensing.

    Parameters
    ----------
    sigma_pos : float
        Standard deviation of translation noise.
    sigma_rot : float
        Standard deviation of rotation noise.
    sigma_sense : float
        Standard deviation of range measurement noise.
    x, y, theta : float
        Initial true pose.
    rng : tf.random.Generator, optional
        Noise source. Defaults to a generator seeded with ``seed``.
    seed : int, optional
        Seed used when ``rng`` is not given. None gives a nondeterministic
        generator.
    """

    def __init__(self, sigma_pos: float, sigma_rot: float, sigma_sense: float,
                 x: float = 0.0, y: float = 0.0, theta: float = 0.0,
                 rng: tf.random.Generator | None = None, seed: int | None = None):
        self.sigma_pos = float(sigma_pos)
        self.sigma_rot = float(sigma_rot)
        self.sigma_sense = float(sigma_sense)

        if rng is None:
            rng = (tf.random.Generator.from_seed(seed) if seed is not None
                   else tf.random.Generator.from_non_deterministic_state())
        self.rng = rng

        self._pose = tf.stack([
            tf.constant(x, dtype=tf.float32),
            tf.constant(y, dtype=tf.float32),
            wrap_heading(tf.constant(theta, dtype=tf.float32)),
        ])

    @property
    def pose(self) -> tf.Tensor:
        """True pose [x, y, theta] (evaluation only)."""
        return tf.identity(self._pose)

    def move(self, distance: float, rotation: float) -> tf.Tensor:
        """Execute a noisy (distance, rotation) command and return the new pose."""
        self._pose = sample_motion(self._pose, distance, rotation,
                                   self.sigma_pos, self.sigma_rot, self.rng)
        return self.pose

    def move_forward(self, distance: float) -> tf.Tensor:
        return self.move(distance, 0.0)

    def rotate(self, rotation: float) -> tf.Tensor:
        return self.move(0.0, rotation)

    def sense(self, landmarks: tf.Tensor) -> tf.Tensor:
        """Noisy ranges to every landmark, in landmark order."""
        return sense_ranges(self._pose, landmarks, self.sigma_sense, self.rng)

    def __repr__(self) -> str:
        x, y, theta = (float(v) for v in self._pose.numpy())
        return f"Robot(x={x:.3f}, y={y:.3f}, theta={theta:.3f})"
