"""
Trajectory and diagnostics plots for a finished run.
"""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt

from mcloc.metrics.accuracy import compute_heading_errors, compute_position_errors
from mcloc.utils.logging_config import get_logger

logger = get_logger(__name__)


def plot_trajectory(result, save_path: Path | None = None,
                    figsize: tuple[int, int] = (14, 6)) -> plt.Figure:
    """
    Plot the room, the true path and the estimated path, plus error and ESS traces.

    Parameters
    ----------
    result : ScenarioResult
        Output of run_square_path().
    save_path : Path, optional
        Where to save the figure as PNG. The figure is closed after saving.
    figsize : tuple of int, optional
        Figure size in inches.

    Returns
    -------
    plt.Figure
        The figure.
    """
    fig, (ax_map, ax_err) = plt.subplots(1, 2, figsize=figsize)

    for (x1, y1), (x2, y2) in result.environment.walls:
        ax_map.plot([x1, x2], [y1, y2], color='black', linewidth=2)
    lm_x = [lm[0] for lm in result.environment.landmarks]
    lm_y = [lm[1] for lm in result.environment.landmarks]
    ax_map.scatter(lm_x, lm_y, marker='*', s=200, color='gold',
                   edgecolors='black', zorder=5, label='Landmarks')

    if result.num_steps > 0:
        true_np = result.true_poses.numpy()
        est_np = result.estimates.numpy()
        ax_map.plot(true_np[:, 0], true_np[:, 1], 'o-', color='tab:blue',
                    markersize=3, label='True')
        ax_map.plot(est_np[:, 0], est_np[:, 1], 's--', color='tab:red',
                    markersize=3, label='Estimate')
        for step in result.resample_steps:
            ax_map.plot(est_np[step, 0], est_np[step, 1], 'x', color='tab:green', markersize=6)

        steps = range(result.num_steps)
        pos_err = compute_position_errors(result.estimates, result.true_poses).numpy()
        head_err = compute_heading_errors(result.estimates, result.true_poses).numpy()
        ax_err.plot(steps, pos_err, color='tab:red', label='Position error')
        ax_err.plot(steps, head_err, color='tab:purple', label='Heading error (rad)')

        ax_ess = ax_err.twinx()
        ax_ess.plot(steps, result.ess_history, color='tab:gray', alpha=0.6, label='ESS')
        ax_ess.axhline(result.config.resample_threshold * result.config.num_particles,
                       color='tab:gray', linestyle=':', linewidth=1)
        ax_ess.set_ylabel('ESS')

    ax_map.set_aspect('equal')
    ax_map.set_title('Square path localization')
    ax_map.set_xlabel('x')
    ax_map.set_ylabel('y')
    ax_map.legend(loc='best')
    ax_map.grid(True, alpha=0.3)

    ax_err.set_title(f'Errors (position RMSE = {result.rmse:.3f})')
    ax_err.set_xlabel('Step')
    ax_err.set_ylabel('Error')
    ax_err.legend(loc='upper left')
    ax_err.grid(True, alpha=0.3)

    fig.tight_layout()

    if save_path is not None:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info("Saved trajectory plot to %s", save_path)
        plt.close(fig)

    return fig
