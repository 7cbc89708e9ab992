"""
Status reporting for localization runs.
"""

from __future__ import annotations

import tensorflow as tf

from mcloc.utils.logging_config import get_logger

logger = get_logger(__name__)


class StatusReporter:
    """
    Write-only sink for the true and estimated pose of each step.

    Every report is logged and kept in memory so a run can be summarized or
    plotted afterwards.

    Parameters
    ----------
    verbose : bool, optional
        Log each step at INFO instead of DEBUG. Defaults to True.
    """

    def __init__(self, verbose: bool = True):
        self.verbose = verbose
        self.steps: list[int] = []
        self.true_poses: list[tf.Tensor] = []
        self.estimates: list[tf.Tensor] = []

    def report(self, step: int, true_pose: tf.Tensor, estimate: tf.Tensor) -> None:
        true_pose = tf.reshape(tf.cast(true_pose, tf.float32), [3])
        estimate = tf.reshape(tf.cast(estimate, tf.float32), [3])
        self.steps.append(step)
        self.true_poses.append(true_pose)
        self.estimates.append(estimate)

        level_log = logger.info if self.verbose else logger.debug
        level_log("Step %3d | Robot state: x = %.3f, y = %.3f, theta = %.3f",
                  step, float(true_pose[0]), float(true_pose[1]), float(true_pose[2]))
        level_log("Step %3d | Estimated state: x = %.3f, y = %.3f, theta = %.3f",
                  step, float(estimate[0]), float(estimate[1]), float(estimate[2]))

    def __len__(self) -> int:
        return len(self.steps)
