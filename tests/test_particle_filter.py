"""
Unit tests for the localization Particle Filter.
"""

import math
import unittest
import tensorflow as tf
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from mcloc.filters.particle_filter import ParticleFilter
from mcloc.filters.particles import ParticleSet, sample_gaussian_particles
from mcloc.filters.resampling import resample_particles
from mcloc.models.environment import square_room
from mcloc.models.motion import TWO_PI
from mcloc.models.sensor import expected_ranges
from mcloc.metrics.particle_filter_metrics import compute_effective_sample_size


class TestParticleSet(unittest.TestCase):
    """Test cases for the particle population container."""

    def setUp(self):
        """Set up test fixtures."""
        self.poses = tf.constant([[0.0, 0.0, 0.0],
                                  [1.0, 1.0, 1.0],
                                  [2.0, 2.0, 2.0]], dtype=tf.float32)

    def test_default_uniform_weights(self):
        """Test that weights default to 1/N."""
        ps = ParticleSet(self.poses)

        self.assertEqual(len(ps), 3)
        tf.debugging.assert_near(ps.weights, tf.fill([3], 1.0 / 3))

    def test_getitem_returns_value(self):
        """Test indexing returns a Particle copy."""
        ps = ParticleSet(self.poses, [0.2, 0.3, 0.5])
        p = ps[1]

        self.assertAlmostEqual(p.x, 1.0)
        self.assertAlmostEqual(p.theta, 1.0)
        self.assertAlmostEqual(p.weight, 0.3, places=6)

    def test_shape_validation(self):
        """Test that malformed inputs are rejected."""
        with self.assertRaises(ValueError):
            ParticleSet(tf.zeros([3, 2]))
        with self.assertRaises(ValueError):
            ParticleSet(self.poses, [0.5, 0.5])
        with self.assertRaises(ValueError):
            ParticleSet(tf.zeros([0, 3]))

    def test_sample_gaussian_particles(self):
        """Test initial sampling statistics and weights."""
        rng = tf.random.Generator.from_seed(0)
        ps = sample_gaussian_particles(1.0, 2.0, 0.5, 2000, 0.1, 0.05, rng)

        self.assertEqual(len(ps), 2000)
        tf.debugging.assert_near(ps.weight_sum(), 1.0, atol=1e-4)
        tf.debugging.assert_near(tf.reduce_mean(ps.x), 1.0, atol=0.01)
        tf.debugging.assert_near(tf.reduce_mean(ps.y), 2.0, atol=0.01)
        tf.debugging.assert_near(tf.math.reduce_std(ps.x), 0.1, atol=0.01)
        tf.debugging.assert_near(tf.reduce_mean(ps.theta), 0.5, atol=0.01)

    def test_sample_invalid_size(self):
        """Test that a non-positive population size fails fast."""
        rng = tf.random.Generator.from_seed(0)
        for n in (0, -5):
            with self.assertRaises(ValueError):
                sample_gaussian_particles(0.0, 0.0, 0.0, n, 0.1, 0.05, rng)


class TestParticleFilter(unittest.TestCase):
    """Test cases for Particle Filter."""

    def setUp(self):
        """Set up test fixtures."""
        tf.random.set_seed(42)

        self.sigma_pos = 0.1
        self.sigma_rot = 0.05
        self.sigma_sense = 0.3
        self.num_particles = 200
        self.landmarks = square_room(10.0).landmark_tensor()

        self.pf = ParticleFilter(self.sigma_pos, self.sigma_rot, self.sigma_sense, seed=42)
        self.pf.initialize_particles(1.0, 1.0, 0.0, self.num_particles)

    def _set_population(self, poses, weights=None):
        self.pf._particles = ParticleSet(poses, weights)

    def test_filter_initialization(self):
        """Test Particle Filter initialization."""
        particles = self.pf.particles

        self.assertEqual(particles.poses.shape, (self.num_particles, 3))
        self.assertEqual(particles.weights.shape, (self.num_particles,))
        tf.debugging.assert_near(particles.weight_sum(), 1.0, atol=1e-5)
        tf.debugging.assert_near(particles.weights,
                                 tf.fill([self.num_particles], 1.0 / self.num_particles))
        self.assertTrue(tf.reduce_all(particles.theta >= 0.0))
        self.assertTrue(tf.reduce_all(particles.theta < TWO_PI))

    def test_invalid_population_size(self):
        """Test that N <= 0 raises."""
        pf = ParticleFilter(0.1, 0.05, 0.3, seed=1)
        with self.assertRaises(ValueError):
            pf.initialize_particles(1.0, 1.0, 0.0, 0)
        with self.assertRaises(ValueError):
            pf.initialize_particles(1.0, 1.0, 0.0, -10)

    def test_use_before_initialization(self):
        """Test that steps before initialization raise RuntimeError."""
        pf = ParticleFilter(0.1, 0.05, 0.3, seed=1)
        with self.assertRaises(RuntimeError):
            pf.estimate_state()
        with self.assertRaises(RuntimeError):
            pf.update_motion(1.0, 0.0)

    def test_invalid_parameters(self):
        """Test constructor validation."""
        with self.assertRaises(ValueError):
            ParticleFilter(0.1, 0.05, 0.0)
        with self.assertRaises(ValueError):
            ParticleFilter(-0.1, 0.05, 0.3)
        with self.assertRaises(ValueError):
            ParticleFilter(0.1, 0.05, 0.3, resample_threshold=0.0)
        with self.assertRaises(ValueError):
            ParticleFilter(0.1, 0.05, 0.3, resample_method='invalid')

    def test_motion_update(self):
        """Test that motion moves poses, keeps weights and wraps headings."""
        weights_before = tf.identity(self.pf.particles.weights)
        x_before = tf.reduce_mean(self.pf.particles.x)

        self.pf.update_motion(1.0, -math.pi / 2)
        particles = self.pf.particles

        tf.debugging.assert_near(tf.reduce_mean(particles.x), x_before + 1.0, atol=0.05)
        tf.debugging.assert_near(particles.weights, weights_before)
        self.assertTrue(tf.reduce_all(particles.theta >= 0.0))
        self.assertTrue(tf.reduce_all(particles.theta < TWO_PI))
        self.assertEqual(len(particles), self.num_particles)

    def test_weight_normalization(self):
        """Test that weights sum to one after weighting."""
        measurements = expected_ranges(tf.constant([1.0, 1.0, 0.0]), self.landmarks)
        total = self.pf.calculate_weights(measurements, self.landmarks)

        self.assertGreater(float(total), 0.0)
        self.assertFalse(self.pf.degenerate)
        tf.debugging.assert_near(self.pf.particles.weight_sum(), 1.0, atol=1e-5)
        self.assertTrue(tf.reduce_all(self.pf.particles.weights >= 0.0))

    def test_weights_favor_consistent_particles(self):
        """Test that the particle at the measured pose gets the largest weight."""
        poses = tf.constant([[1.0, 1.0, 0.0], [3.0, 1.0, 0.0], [1.0, 2.0, 0.0]])
        self._set_population(poses)
        measurements = expected_ranges(poses[0], self.landmarks)

        self.pf.calculate_weights(measurements, self.landmarks)

        self.assertEqual(int(tf.argmax(self.pf.particles.weights)), 0)

    def test_degenerate_weights_reset_to_uniform(self):
        """Test recovery when every likelihood underflows to zero."""
        poses = tf.tile(tf.constant([[9.0, 9.0, 0.0]]), [10, 1])
        self._set_population(poses)
        measurements = expected_ranges(tf.constant([1.0, 1.0, 0.0]), self.landmarks)

        with self.assertLogs('mcloc.filters.particle_filter', level='WARNING'):
            total = self.pf.calculate_weights(measurements, self.landmarks)

        self.assertEqual(float(total), 0.0)
        self.assertTrue(self.pf.degenerate)
        tf.debugging.assert_near(self.pf.particles.weights, tf.fill([10], 0.1))
        self.assertTrue(bool(tf.reduce_all(tf.math.is_finite(self.pf.estimate_state()))))

    def test_degenerate_step_does_not_resample(self):
        """Test a full step with an all-zero likelihood stays finite and sized."""
        poses = tf.tile(tf.constant([[9.0, 9.0, 0.0]]), [50, 1])
        self._set_population(poses)
        measurements = expected_ranges(tf.constant([1.0, 1.0, 0.0]), self.landmarks)

        estimate = self.pf.update_and_estimate(0.0, 0.0, measurements, self.landmarks)

        self.assertTrue(self.pf.degenerate)
        self.assertFalse(self.pf.did_resample)
        self.assertEqual(self.pf.num_particles, 50)
        self.assertTrue(bool(tf.reduce_all(tf.math.is_finite(estimate))))

    def test_misaligned_measurements_raise(self):
        """Test that measurement/landmark length mismatch fails before mutating."""
        poses_before = tf.identity(self.pf.particles.poses)
        with self.assertRaises(ValueError):
            self.pf.update_and_estimate(1.0, 0.0, tf.constant([1.0, 2.0]), self.landmarks)
        tf.debugging.assert_near(self.pf.particles.poses, poses_before)

    def test_circular_mean(self):
        """Test that headings straddling 0/2*pi average to about 0, not pi."""
        poses = tf.constant([[0.0, 0.0, 0.1], [2.0, 4.0, TWO_PI - 0.1]])
        self._set_population(poses)

        estimate = self.pf.estimate_state()

        tf.debugging.assert_near(estimate[:2], [1.0, 2.0], atol=1e-5)
        self.assertLess(abs(float(estimate[2])), 1e-3)

    def test_estimate_is_unweighted_by_default(self):
        """Test that default estimation ignores weights and the variant uses them."""
        poses = tf.constant([[0.0, 0.0, 0.0], [4.0, 0.0, 0.0]])
        self._set_population(poses, [0.9, 0.1])

        unweighted = self.pf.estimate_state()
        weighted = self.pf.estimate_state(weighted=True)

        tf.debugging.assert_near(unweighted[0], 2.0, atol=1e-5)
        tf.debugging.assert_near(weighted[0], 0.4, atol=1e-5)

    def test_estimation_idempotent(self):
        """Test that estimation is a pure read."""
        self.pf.update_motion(1.0, 0.3)
        first = self.pf.estimate_state()
        second = self.pf.estimate_state()

        self.assertTrue(bool(tf.reduce_all(first == second)))

    def test_resampling_trigger(self):
        """Test that a single dominant weight triggers resampling."""
        n = self.num_particles
        weights = tf.ones(n, dtype=tf.float32) * 1e-6
        weights = tf.tensor_scatter_nd_update(weights, [[0]], [1.0 - (n - 1) * 1e-6])
        self._set_population(self.pf.particles.poses, weights)

        ess = self.pf.effective_sample_size()
        tf.debugging.assert_near(ess, 1.0, atol=0.01)
        self.assertLess(float(ess), n / 2)

        dominant = self.pf.particles.poses[0]
        self.pf.resample_particles()
        particles = self.pf.particles

        self.assertEqual(len(particles), n)
        tf.debugging.assert_near(particles.weights, tf.fill([n], 1.0 / n))
        # Nearly every copy comes from the dominant particle
        matches = tf.reduce_all(tf.abs(particles.poses - dominant) < 1e-6, axis=1)
        self.assertGreater(int(tf.reduce_sum(tf.cast(matches, tf.int32))), int(0.9 * n))

    def test_step_resamples_on_collapse(self):
        """Test that a sharp observation collapses the weights and forces a resample."""
        pf = ParticleFilter(0.1, 0.05, 0.3, seed=7)
        pf.initialize_particles(5.0, 5.0, 0.0, 300)
        # Spread particles far wider than the sensor noise
        spread = tf.random.stateless_uniform([300, 2], seed=[3, 4], minval=0.0, maxval=10.0)
        pf._particles = ParticleSet(tf.concat([spread, tf.zeros([300, 1])], axis=1))
        measurements = expected_ranges(tf.constant([5.0, 5.0, 0.0]), self.landmarks)

        pf.update_and_estimate(0.0, 0.0, measurements, self.landmarks)

        self.assertTrue(pf.did_resample)
        self.assertLess(pf.ess, 150.0)
        self.assertEqual(pf.num_particles, 300)
        tf.debugging.assert_near(pf.particles.weights, tf.fill([300], 1.0 / 300))
        # Summary describes the collapsed weights, not the uniform reset
        self.assertLess(pf.weight_stats['ess'], 150.0)
        self.assertGreater(pf.weight_stats['max_weight'], 1.0 / 300)

    def test_resample_matches_resampling_module(self):
        """Test that the filter draws the same population as resample_particles."""
        weights = tf.constant([0.05, 0.6, 0.05, 0.3] * 50, dtype=tf.float32) / 50.0
        self._set_population(self.pf.particles.poses, weights)
        poses = self.pf.particles.poses

        self.pf.rng = tf.random.Generator.from_seed(9)
        self.pf.resample_particles()
        expected_poses, expected_weights = resample_particles(
            poses, weights, tf.random.Generator.from_seed(9), method='multinomial'
        )

        tf.debugging.assert_near(self.pf.particles.poses, expected_poses)
        tf.debugging.assert_near(self.pf.particles.weights, expected_weights)

    def test_step_records_weight_summary(self):
        """Test that each step keeps a summary of its weights."""
        self.assertIsNone(self.pf.weight_stats)
        z = expected_ranges(tf.constant([2.0, 1.0, 0.0]), self.landmarks)
        self.pf.update_and_estimate(1.0, 0.0, z, self.landmarks)

        stats = self.pf.weight_stats
        self.assertEqual(set(stats), {'ess', 'entropy', 'variance', 'max_weight'})
        self.assertAlmostEqual(stats['ess'], self.pf.ess, delta=1e-3 * self.pf.ess)
        self.assertGreaterEqual(stats['entropy'], 0.0)
        self.assertLessEqual(stats['entropy'], 1.0 + 1e-5)

    def test_no_resample_with_uniform_likelihood(self):
        """Test that near-uniform weights leave the population in place."""
        # All particles share one pose, so every likelihood is equal
        poses = tf.tile(tf.constant([[5.0, 5.0, 0.0]]), [100, 1])
        pf = ParticleFilter(0.0, 0.0, 0.3, seed=3)
        pf.initialize_particles(5.0, 5.0, 0.0, 100)
        pf._particles = ParticleSet(poses)
        measurements = expected_ranges(tf.constant([5.0, 5.0, 0.0]), self.landmarks)

        pf.update_and_estimate(0.0, 0.0, measurements, self.landmarks)

        self.assertFalse(pf.did_resample)
        self.assertGreater(pf.ess, 99.0)
        tf.debugging.assert_near(pf.particles.poses, poses)
        tf.debugging.assert_near(pf.particles.weights, tf.fill([100], 0.01))

    def test_population_size_invariant(self):
        """Test that N is preserved across many steps."""
        true_pose = tf.constant([1.0, 1.0, 0.0])
        for _ in range(5):
            true_pose = true_pose + tf.constant([1.0, 0.0, 0.0])
            z = expected_ranges(true_pose, self.landmarks)
            self.pf.update_and_estimate(1.0, 0.0, z, self.landmarks)

            self.assertEqual(self.pf.num_particles, self.num_particles)
            tf.debugging.assert_near(self.pf.particles.weight_sum(), 1.0, atol=1e-4)

    def test_tracks_noise_free_measurements(self):
        """Test that the estimate follows a straight noise-free path."""
        true_pose = tf.constant([1.0, 1.0, 0.0])
        for _ in range(6):
            true_pose = true_pose + tf.constant([1.0, 0.0, 0.0])
            z = expected_ranges(true_pose, self.landmarks)
            estimate = self.pf.update_and_estimate(1.0, 0.0, z, self.landmarks)

        tf.debugging.assert_near(estimate[:2], true_pose[:2], atol=0.3)

    def test_reproducible_with_seed(self):
        """Test that equal seeds give identical runs."""
        def run(seed):
            pf = ParticleFilter(0.1, 0.05, 0.3, seed=seed)
            pf.initialize_particles(1.0, 1.0, 0.0, 100)
            z = expected_ranges(tf.constant([2.0, 1.0, 0.0]), self.landmarks)
            return pf.update_and_estimate(1.0, 0.0, z, self.landmarks)

        tf.debugging.assert_near(run(5), run(5))

    def test_ess_metric_matches_filter(self):
        """Test that the filter ESS agrees with the diagnostic metric."""
        z = expected_ranges(tf.constant([1.2, 0.9, 0.0]), self.landmarks)
        self.pf.calculate_weights(z, self.landmarks)

        tf.debugging.assert_near(self.pf.effective_sample_size(),
                                 compute_effective_sample_size(self.pf.particles.weights),
                                 rtol=1e-3)


if __name__ == '__main__':
    unittest.main()
