"""
Settings loader (``rent_config.loader``).

Reads one YAML file and turns it into a validated ``EngineSettings``.  Only
``rent_config.get_active_settings`` should call this module.

Failure modes
-------------
* Missing file -> ``FileNotFoundError`` propagates.
* Malformed YAML -> ``yaml.YAMLError`` propagates.
* Missing required keys -> ``KeyError`` propagates.
* Invalid values -> ``ValueError`` from ``EngineSettings.__post_init__``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from rent_config.schema import EngineSettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_settings(data: dict[str, Any]) -> EngineSettings:
    """Build settings from a parsed YAML mapping; absent keys take defaults."""
    kwargs: dict[str, Any] = {
        "config_id": data["config_id"],
        "version": int(data["version"]),
        "checksum": compute_checksum(data),
    }
    engine = data.get("engine") or {}
    if "upcoming_cheque_windows" in engine:
        kwargs["upcoming_cheque_windows"] = tuple(engine["upcoming_cheque_windows"])
    if "cheque_payment_method" in engine:
        kwargs["cheque_payment_method"] = str(engine["cheque_payment_method"])
    if "cheque_reference_template" in engine:
        kwargs["cheque_reference_template"] = str(engine["cheque_reference_template"])
    if "recompute_on_payment_delete" in engine:
        kwargs["recompute_on_payment_delete"] = bool(
            engine["recompute_on_payment_delete"]
        )
    if "max_due_day" in engine:
        kwargs["max_due_day"] = int(engine["max_due_day"])
    if "country_currencies" in data:
        kwargs["country_currencies"] = {
            str(k): str(v) for k, v in data["country_currencies"].items()
        }
    return EngineSettings(**kwargs)


def load_settings(path: Path) -> EngineSettings:
    return parse_settings(load_yaml_file(path))
