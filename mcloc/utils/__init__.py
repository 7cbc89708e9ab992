"""
Utility modules for shared functionality across the codebase.

This package provides common utilities for:
- Run configuration (config.py)
- Logging configuration (logging_config.py)
"""

from __future__ import annotations

from mcloc.utils.config import (
    LocalizationConfig,
    load_config,
)

from mcloc.utils.logging_config import (
    add_file_handler,
    get_logger,
    setup_logging,
    set_level,
)

__all__ = [
    # Configuration
    "LocalizationConfig",
    "load_config",
    # Logging
    "get_logger",
    "add_file_handler",
    "setup_logging",
    "set_level",
]
