"""
Scenario driver, status reporting and plots for localization runs.
"""

from mcloc.simulation.plotting import plot_trajectory
from mcloc.simulation.reporter import StatusReporter
from mcloc.simulation.scenario import (
    ScenarioResult,
    make_generators,
    run_square_path,
    square_path_commands,
)

__all__ = [
    'plot_trajectory',
    'StatusReporter',
    'ScenarioResult',
    'make_generators',
    'run_square_path',
    'square_path_commands',
]
