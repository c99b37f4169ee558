"""
precast_config -- single public entrypoint for pricing configuration.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_settings()``.  No other component may read settings
    files or environment variables directly.

Architecture position:
    Configuration -- sits above ``precast_kernel`` and beside
    ``precast_services``.  The kernel MUST NEVER import from
    ``precast_config``; the ``from_settings`` constructors and
    ``precast_services.factories`` hand its values to the kernel.

Resolution order:
    1. ``defaults.yaml`` shipped with this package.
    2. The YAML file named by ``PRECAST_PRICING_CONFIG`` (or the
       ``config_path`` argument), overlaid section by section.
    3. ``PRECAST_DATABASE_URL`` overrides ``database.url``.

Failure modes:
    - ``FileNotFoundError`` -- the overlay file does not exist.
    - ``ValueError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful call emits a ``PRICING_CONFIG_TRACE`` log entry naming
    the files that were applied.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from precast_config.loader import load_yaml_file, merge_settings, parse_settings
from precast_config.schema import DatabaseSettings, PrecastSettings, PricingSettings

_logger = logging.getLogger("precast_kernel.config")

DEFAULTS_FILE = Path(__file__).parent / "defaults.yaml"
CONFIG_PATH_ENV = "PRECAST_PRICING_CONFIG"
DATABASE_URL_ENV = "PRECAST_DATABASE_URL"


def get_active_settings(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> PrecastSettings:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Overlay file; defaults to $PRECAST_PRICING_CONFIG.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        Frozen PrecastSettings.

    Raises:
        FileNotFoundError: If the overlay file does not exist.
        ValueError: If any value fails validation.
    """
    env = os.environ if environ is None else environ
    data = load_yaml_file(DEFAULTS_FILE)
    applied = [str(DEFAULTS_FILE)]

    overlay_path = config_path or env.get(CONFIG_PATH_ENV)
    if overlay_path:
        data = merge_settings(data, load_yaml_file(Path(overlay_path)))
        applied.append(str(overlay_path))
    else:
        data = merge_settings({}, data)

    database_url = env.get(DATABASE_URL_ENV)
    if database_url:
        data["database"]["url"] = database_url

    settings = parse_settings(data, source_files=tuple(applied))

    _logger.info(
        "PRICING_CONFIG_TRACE",
        extra={
            "trace_type": "PRICING_CONFIG_TRACE",
            "source_files": list(settings.source_files),
            "database_url_from_env": bool(database_url),
            "money_decimal_places": settings.pricing.money_decimal_places,
            "fan_out_workers": settings.pricing.fan_out_workers,
        },
    )
    return settings


__all__ = [
    "CONFIG_PATH_ENV",
    "DATABASE_URL_ENV",
    "DatabaseSettings",
    "PrecastSettings",
    "PricingSettings",
    "get_active_settings",
]
