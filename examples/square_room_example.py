"""
Example: Range-only Monte Carlo localization in a square room.

This example drives the filter by hand: the robot moves, senses the four
corner landmarks, and the particle filter runs one step per motion. For the
configurable experiment with plots, see
mcloc/experiments/run_square_path.py
"""

from __future__ import annotations

import math
import sys
from pathlib import Path

import tensorflow as tf
import matplotlib.pyplot as plt

sys.path.insert(0, str(Path(__file__).parent.parent))

from mcloc.filters.particle_filter import ParticleFilter
from mcloc.metrics.accuracy import compute_position_errors, compute_rmse
from mcloc.models.agent import Robot
from mcloc.models.environment import square_room
from mcloc.simulation.scenario import make_generators


def main():
    """Run a square path and compare true and estimated trajectories."""
    sigma_pos, sigma_rot, sigma_sense = 0.1, 0.05, 0.3
    x, y, theta = 1.0, 1.0, 0.0
    num_particles = 500

    room = square_room(10.0)
    landmarks = room.landmark_tensor()
    robot_rng, filter_rng = make_generators(seed=7)

    robot = Robot(sigma_pos, sigma_rot, sigma_sense, x, y, theta, rng=robot_rng)
    pf = ParticleFilter(sigma_pos, sigma_rot, sigma_sense, rng=filter_rng)
    pf.initialize_particles(x, y, theta, num_particles)

    true_states = []
    estimates = []
    forward_distance = 1.0
    turn_angle = math.pi / 2

    for side in range(4):
        for _ in range(8):
            robot.move_forward(forward_distance)
            z = robot.sense(landmarks)
            estimates.append(pf.update_and_estimate(forward_distance, 0.0, z, landmarks))
            true_states.append(robot.pose)

        robot.rotate(turn_angle)
        z = robot.sense(landmarks)
        estimates.append(pf.update_and_estimate(0.0, turn_angle, z, landmarks))
        true_states.append(robot.pose)

    true_states = tf.stack(true_states)
    estimates = tf.stack(estimates)

    print(f"Position RMSE: {compute_rmse(estimates, true_states):.3f}")
    print(f"Final robot:    {robot}")
    print(f"Final estimate: x = {float(estimates[-1, 0]):.3f}, "
          f"y = {float(estimates[-1, 1]):.3f}, theta = {float(estimates[-1, 2]):.3f}")

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))
    ax1.plot(true_states[:, 0], true_states[:, 1], 'b-o', markersize=3, label='True')
    ax1.plot(estimates[:, 0], estimates[:, 1], 'r--s', markersize=3, label='PF estimate')
    ax1.scatter(landmarks[:, 0], landmarks[:, 1], marker='*', s=200, c='gold',
                edgecolors='black', label='Landmarks')
    ax1.set_aspect('equal')
    ax1.legend()
    ax1.grid(True, alpha=0.3)
    ax1.set_title('Square path')

    ax2.plot(compute_position_errors(estimates, true_states), 'r-')
    ax2.set_xlabel('Step')
    ax2.set_ylabel('Position error')
    ax2.grid(True, alpha=0.3)
    ax2.set_title('Tracking error')

    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
