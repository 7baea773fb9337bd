"""
Environment helpers for dataclass configs.

Each config declares an ``_ENV_MAP`` of ``field -> ENV_VAR``; these
helpers read the variables and coerce them to the field's declared type.
"""

from __future__ import annotations

import os
from dataclasses import MISSING, Field
from logging import getLogger
from typing import Any, Dict, Mapping

logger = getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


def _coerce(raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        return raw.strip().lower() in _TRUE_VALUES
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


def read_env_defaults(
    env_map: Mapping[str, str],
    fields: Mapping[str, Field],
) -> Dict[str, Any]:
    """Build constructor kwargs from environment variables.

    Only fields whose variable is set are returned, so the dataclass
    defaults apply to everything else. Values that cannot be coerced
    are skipped with a warning.
    """
    values: Dict[str, Any] = {}
    for name, env_var in env_map.items():
        raw = os.environ.get(env_var)
        if raw is None or name not in fields:
            continue
        default = fields[name].default
        if default is MISSING:
            default = ""
        try:
            values[name] = _coerce(raw, default)
        except ValueError:
            logger.warning(f"Ignoring invalid value for {env_var}: {raw!r}")
    return values
