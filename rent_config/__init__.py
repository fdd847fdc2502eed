"""
rent_config -- single public entrypoint for rent engine settings.

Responsibility:
    ``get_active_settings()`` is the only way runtime code obtains
    settings.  The kernel never imports this package; ``rent_services``
    passes plain values from the settings into kernel constructors.

Failure modes:
    - ``FileNotFoundError`` -- the settings file does not exist.
    - ``ValueError`` -- a setting fails validation.

Every successful load emits a ``rent_config_loaded`` log entry carrying
the config id, version and checksum.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from rent_config.loader import compute_checksum, load_settings
from rent_config.schema import EngineSettings

_logger = logging.getLogger("rent_kernel.config")

_DEFAULT_SETTINGS_FILE = Path(__file__).parent / "sets" / "default.yaml"

ENV_VAR = "RENT_ENGINE_CONFIG"


def get_active_settings(path: Path | str | None = None) -> EngineSettings:
    """
    Load the active settings.

    Resolution order: explicit ``path``, then the ``RENT_ENGINE_CONFIG``
    environment variable, then ``rent_config/sets/default.yaml``.
    """
    if path is None:
        path = os.environ.get(ENV_VAR) or _DEFAULT_SETTINGS_FILE
    settings = load_settings(Path(path))

    _logger.info(
        "rent_config_loaded",
        extra={
            "config_id": settings.config_id,
            "config_version": settings.version,
            "checksum": settings.checksum,
            "source": str(path),
        },
    )
    return settings


__all__ = [
    "ENV_VAR",
    "EngineSettings",
    "compute_checksum",
    "get_active_settings",
]
