"""
Settings loader (``precast_config.loader``).

Responsibility
--------------
Loads YAML settings files and parses them into the frozen dataclasses of
``precast_config.schema``.  This is internal tooling; the single public
entry point for runtime settings is ``precast_config.get_active_settings()``.

Invariants enforced
-------------------
* Unknown sections or keys raise ``ValueError``; a typo never silently
  falls back to a default.
* Decimal settings are parsed from their string form; YAML floats are
  converted through ``str`` so 0.1 stays Decimal("0.1").

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values  -> ``ValueError`` from the schema constructors.
"""

from __future__ import annotations

from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from precast_config.schema import (
    DatabaseSettings,
    PrecastSettings,
    PricingSettings,
    validate_tariffs,
)
from precast_kernel.domain.quotation import QuotationTariffs

_SECTIONS = ("database", "pricing", "quotation")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def merge_settings(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Overlay section by section; keys absent from ``overlay`` keep their base value."""
    merged = {name: dict(base.get(name) or {}) for name in _SECTIONS}
    for name, section in overlay.items():
        if name not in _SECTIONS:
            raise ValueError(f"Unknown settings section: {name!r}")
        if section is None:
            continue
        if not isinstance(section, dict):
            raise ValueError(f"Settings section {name!r} must be a mapping")
        merged[name].update(section)
    return merged


def parse_decimal(value: Any, key: str) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{key}: expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{key}: expected a number, got {value!r}") from exc


def _coerce(cls: type, section_name: str, data: dict[str, Any]) -> dict[str, Any]:
    """Match keys to dataclass fields and coerce Decimal and int values."""
    known = {f.name: f for f in fields(cls)}
    unknown = set(data) - set(known)
    if unknown:
        raise ValueError(
            f"Unknown keys in settings section {section_name!r}: {sorted(unknown)}"
        )
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        default = known[key].default
        qualified = f"{section_name}.{key}"
        if isinstance(default, Decimal):
            kwargs[key] = parse_decimal(value, qualified)
        elif isinstance(default, bool):
            if not isinstance(value, bool):
                raise ValueError(f"{qualified}: expected true/false, got {value!r}")
            kwargs[key] = value
        elif isinstance(default, int):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{qualified}: expected an integer, got {value!r}")
            kwargs[key] = value
        else:
            kwargs[key] = str(value)
    return kwargs


def parse_settings(
    data: dict[str, Any],
    source_files: tuple[str, ...] = (),
) -> PrecastSettings:
    """Build PrecastSettings from a merged settings dict."""
    data = merge_settings({}, data)
    return PrecastSettings(
        database=DatabaseSettings(**_coerce(DatabaseSettings, "database", data["database"])),
        pricing=PricingSettings(**_coerce(PricingSettings, "pricing", data["pricing"])),
        quotation=validate_tariffs(
            QuotationTariffs(**_coerce(QuotationTariffs, "quotation", data["quotation"]))
        ),
        source_files=source_files,
    )
