"""
Workflow Builder Configuration.

Controls the workflow service endpoint, local storage directory,
quick-add placement offsets and the edit-session undo depth.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from flowbuilder.config.env_utils import read_env_defaults


@dataclass
class BuilderConfig:
    """Settings shared by the edit session, mutation engine and adapters."""

    api_base_url: str = "http://localhost:8000"
    company_id: int = 1
    request_timeout: float = 10.0
    storage_dir: str = ""
    stacked_offset_y: float = 150.0
    branch_offset_x: float = 250.0
    undo_limit: int = 50

    _ENV_MAP = {
        "api_base_url": "WORKFLOW_API_BASE_URL",
        "company_id": "WORKFLOW_COMPANY_ID",
        "request_timeout": "WORKFLOW_REQUEST_TIMEOUT",
        "storage_dir": "WORKFLOW_STORAGE_DIR",
        "stacked_offset_y": "WORKFLOW_STACKED_OFFSET_Y",
        "branch_offset_x": "WORKFLOW_BRANCH_OFFSET_X",
        "undo_limit": "WORKFLOW_UNDO_LIMIT",
    }

    @classmethod
    def get_default_instance(cls) -> "BuilderConfig":
        defaults = read_env_defaults(cls._ENV_MAP, cls.__dataclass_fields__)
        return cls(**defaults)

    def storage_path(self) -> Optional[Path]:
        """Return the configured storage directory, if any."""
        return Path(self.storage_dir) if self.storage_dir else None


# ── Singleton ──

_config_instance: Optional[BuilderConfig] = None


def get_builder_config() -> BuilderConfig:
    """Return the global BuilderConfig singleton."""
    global _config_instance
    if _config_instance is None:
        _config_instance = BuilderConfig.get_default_instance()
    return _config_instance
