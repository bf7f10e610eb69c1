"""
stock_config -- single public entrypoint for application configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files directly.

Architecture position:
    Configuration -- YAML-driven settings.  This package sits above
    ``stock_kernel`` and below ``stock_services`` / ``stock_modules``.
    The kernel and the engines MUST NEVER import from ``stock_config``;
    services translate settings into engine parameters.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``InvalidConfigurationError`` -- a value fails validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``STOCK_CONFIG_TRACE`` log entry with the source path and checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from stock_config.loader import load_configuration
from stock_config.schema import StockConfiguration

_logger = logging.getLogger("stock_kernel.config")

# Default configuration file
DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | str | None = None) -> StockConfiguration:
    """The ONLY public configuration entrypoint.

    Args:
        path: Override YAML file.  Defaults to stock_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidConfigurationError: If a value fails validation.
    """
    source = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = load_configuration(source)

    _logger.info(
        "STOCK_CONFIG_TRACE",
        extra={
            "trace_type": "STOCK_CONFIG_TRACE",
            "source_path": str(source),
            "checksum": config.checksum,
            "arrival_year_policy": config.valuation.arrival_year_policy,
            "epsilon": config.valuation.epsilon,
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "StockConfiguration",
    "get_active_config",
]
