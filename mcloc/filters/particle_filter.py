"""
Particle Filter for range-only Monte Carlo localization.

This module implements Sequential Importance Resampling for a planar robot
with a known landmark map. Each step moves every particle through the noisy
motion model, re-weights the population against the robot's range
measurements, resamples when the effective sample size collapses, and
returns a pose estimate.
"""

from __future__ import annotations

import tensorflow as tf

from mcloc.filters.particles import ParticleSet, sample_gaussian_particles
from mcloc.filters.resampling import (
    RESAMPLERS, compute_ess, resample_particles, should_resample
)
from mcloc.metrics.particle_filter_metrics import summarize_weights
from mcloc.models.motion import sample_motion
from mcloc.models.sensor import check_alignment, range_likelihood
from mcloc.utils.logging_config import get_logger

logger = get_logger(__name__)


class ParticleFilter:
    """
    Monte Carlo localization with range measurements to known landmarks.

    Parameters
    ----------
    sigma_pos : float
        Translation noise of the motion model and position spread of the
        initial population.
    sigma_rot : float
        Rotation noise of the motion model and heading spread of the initial
        population.
    sigma_sense : float
        Range measurement noise used by the likelihood.
    resample_threshold : float, optional
        Resample when ESS < resample_threshold * N. Defaults to 0.5.
    resample_method : str, optional
        'multinomial' (default), 'systematic' or 'stratified'.
    rng : tf.random.Generator, optional
        Random source for initialization, motion noise and resampling.
    seed : int, optional
        Seed used when ``rng`` is not given.

    Attributes
    ----------
    particles : ParticleSet
        Current population. Replaced as a whole when resampling.
    ess : float or None
        Effective sample size computed in the last step.
    weight_stats : dict or None
        summarize_weights() of the last step's weights, taken before
        resampling.
    did_resample : bool
        Whether the last step resampled.
    degenerate : bool
        Whether the last weighting found a non-positive total likelihood.
    """

    def __init__(self, sigma_pos: float, sigma_rot: float, sigma_sense: float,
                 resample_threshold: float = 0.5, resample_method: str = 'multinomial',
                 rng: tf.random.Generator | None = None, seed: int | None = None):
        if sigma_pos < 0 or sigma_rot < 0:
            raise ValueError("Motion noise must be non-negative")
        if sigma_sense <= 0:
            raise ValueError(f"sigma_sense must be positive, got {sigma_sense}")
        if not 0.0 < resample_threshold <= 1.0:
            raise ValueError(f"resample_threshold must be in (0, 1], got {resample_threshold}")
        if resample_method not in RESAMPLERS:
            raise ValueError(f"Unknown resampling method: {resample_method}")

        self.sigma_pos = float(sigma_pos)
        self.sigma_rot = float(sigma_rot)
        self.sigma_sense = float(sigma_sense)
        self.resample_threshold = float(resample_threshold)
        self.resample_method = resample_method

        if rng is None:
            rng = (tf.random.Generator.from_seed(seed) if seed is not None
                   else tf.random.Generator.from_non_deterministic_state())
        self.rng = rng

        self._particles: ParticleSet | None = None
        self.ess: float | None = None
        self.weight_stats: dict | None = None
        self.did_resample = False
        self.degenerate = False

    @property
    def particles(self) -> ParticleSet:
        return self._require_particles()

    @property
    def num_particles(self) -> int:
        return self._require_particles().size

    def _require_particles(self) -> ParticleSet:
        if self._particles is None:
            raise RuntimeError("Particle filter is not initialized; call initialize_particles() first")
        return self._particles

    def initialize_particles(self, x: float, y: float, theta: float,
                             num_particles: int) -> ParticleSet:
        """
        Draw the initial population around (x, y, theta).

        Raises
        ------
        ValueError
            If num_particles is not positive.
        """
        self._particles = sample_gaussian_particles(
            x, y, theta, num_particles, self.sigma_pos, self.sigma_rot, self.rng
        )
        self.ess = None
        self.weight_stats = None
        self.did_resample = False
        self.degenerate = False
        logger.debug("Initialized %d particles around (%.3f, %.3f, %.3f)",
                     num_particles, x, y, theta)
        return self._particles

    def update_motion(self, distance: float, rotation: float) -> None:
        """Move every particle with its own noise draw; weights are unchanged."""
        particles = self._require_particles()
        moved = sample_motion(particles.poses, distance, rotation,
                              self.sigma_pos, self.sigma_rot, self.rng)
        self._particles = particles.with_poses(moved)

    def calculate_weights(self, measurements: tf.Tensor, landmarks: tf.Tensor) -> tf.Tensor:
        """
        Weight particles by the likelihood of the measurements.

        Unnormalized weights are the product of per-landmark Gaussian
        densities of the range residuals. They are then divided by their
        total. If the total is not positive (every likelihood underflowed),
        normalization is skipped, the step is flagged as degenerate and the
        weights are reset to uniform.

        Parameters
        ----------
        measurements : tf.Tensor
            Measured ranges of shape (M,), aligned with ``landmarks``.
        landmarks : tf.Tensor
            Landmark positions of shape (M, 2).

        Returns
        -------
        tf.Tensor
            Total unnormalized weight (scalar).
        """
        particles = self._require_particles()
        landmarks = tf.cast(landmarks, tf.float32)
        measurements = tf.reshape(tf.cast(measurements, tf.float32), [-1])
        check_alignment(measurements, landmarks)

        weights = range_likelihood(particles.poses, measurements, landmarks, self.sigma_sense)
        total_weight = tf.reduce_sum(weights)

        if total_weight > 0.0:
            self.degenerate = False
            self._particles = particles.with_weights(weights / total_weight)
        else:
            self.degenerate = True
            logger.warning(
                "All %d particle likelihoods are zero; resetting to uniform weights",
                particles.size
            )
            n = particles.size
            self._particles = particles.with_weights(tf.fill([n], 1.0 / n))

        return total_weight

    def effective_sample_size(self) -> tf.Tensor:
        """ESS of the current weights."""
        return compute_ess(self._require_particles().weights)

    def resample_particles(self) -> None:
        """
        Replace the population by N draws with replacement, proportional to weight.

        Weights of the new population are reset to 1/N.
        """
        particles = self._require_particles()
        poses, weights = resample_particles(particles.poses, particles.weights,
                                            self.rng, self.resample_method)
        self._particles = ParticleSet(poses, weights)

    def estimate_state(self, weighted: bool = False) -> tf.Tensor:
        """
        Point estimate of the pose.

        x and y are averaged; the heading is the circular mean
        atan2(mean sin(theta), mean cos(theta)), in (-pi, pi].

        Parameters
        ----------
        weighted : bool, optional
            Use the particle weights instead of a plain average.
            Defaults to False.

        Returns
        -------
        tf.Tensor
            Estimate [x, y, theta] of shape (3,).
        """
        particles = self._require_particles()
        if weighted:
            w = particles.weights / tf.reduce_sum(particles.weights)
        else:
            w = tf.fill([particles.size], 1.0 / particles.size)

        x = tf.reduce_sum(w * particles.x)
        y = tf.reduce_sum(w * particles.y)
        mean_sin = tf.reduce_sum(w * tf.sin(particles.theta))
        mean_cos = tf.reduce_sum(w * tf.cos(particles.theta))
        theta = tf.math.atan2(mean_sin, mean_cos)

        return tf.stack([x, y, theta])

    def update_and_estimate(self, distance: float, rotation: float,
                            measurements: tf.Tensor, landmarks: tf.Tensor) -> tf.Tensor:
        """
        Run one filter step and return the pose estimate.

        The order is fixed: motion update, weighting, ESS check with
        conditional resampling, estimation.

        Parameters
        ----------
        distance : float
            Commanded forward distance.
        rotation : float
            Commanded rotation.
        measurements : tf.Tensor
            Ranges measured after the motion, shape (M,).
        landmarks : tf.Tensor
            Landmark positions of shape (M, 2).

        Returns
        -------
        tf.Tensor
            Estimate [x, y, theta] of shape (3,).
        """
        # Fail before touching the population
        check_alignment(tf.reshape(measurements, [-1]), landmarks)

        self.update_motion(distance, rotation)
        self.calculate_weights(measurements, landmarks)

        weights = self.particles.weights
        self.weight_stats = summarize_weights(weights)
        self.ess = float(compute_ess(weights))
        self.did_resample = bool(should_resample(weights, self.resample_threshold))
        if self.did_resample:
            self.resample_particles()

        estimate = self.estimate_state()
        logger.debug(
            "Step (d=%.3f, r=%.3f): ESS=%.1f resampled=%s degenerate=%s estimate=(%.3f, %.3f, %.3f)",
            distance, rotation, self.ess, self.did_resample, self.degenerate,
            float(estimate[0]), float(estimate[1]), float(estimate[2])
        )
        return estimate
