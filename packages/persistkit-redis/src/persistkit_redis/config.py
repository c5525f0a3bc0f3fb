"""Configuration model for the persistkit-redis backend.

Provides ``RedisPersistConfig`` with all tunable parameters and sensible
defaults.  Supports loading overrides from YAML or JSON files via the
``from_file()`` classmethod.
"""

from __future__ import annotations

import json
import pathlib
from typing import Callable

from pydantic import BaseModel, field_validator

from persistkit_core.models import Node


class RedisPersistConfig(BaseModel):
    """All tunable parameters with sensible defaults.

    Override individual values via constructor kwargs or load a config from
    a file with ``RedisPersistConfig.from_file(path)``.  The derivation
    overrides are callables and can only be set in code.
    """

    # --- Connection ---
    url: str = "redis://localhost:6379/0"
    socket_connect_timeout: float | None = None
    socket_timeout: float | None = None
    decode_responses: bool = True

    # --- Batching ---
    batch_size: int = 256

    # --- Derivation overrides ---
    persist_key_fn: Callable[[Node], str] | None = None
    persist_value_fn: Callable[[Node], str] | None = None

    # --- Logging ---
    log_keys: bool = False

    @field_validator("batch_size")
    @classmethod
    def _positive_batch_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("batch_size must be >= 1")
        return value

    @classmethod
    def from_file(cls, path: str) -> RedisPersistConfig:
        """Load configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.  Any keys present in the file override the
        corresponding defaults; keys not present retain their defaults.

        Args:
            path: Filesystem path to the configuration file.

        Returns:
            A fully-populated ``RedisPersistConfig`` instance.

        Raises:
            FileNotFoundError: If *path* does not exist.
            ValueError: If the file extension is not recognized.
            ImportError: If a YAML file is provided but ``pyyaml`` is not
                installed.
        """
        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            try:
                import yaml  # type: ignore[import-untyped]
            except ImportError as exc:
                raise ImportError(
                    "pyyaml is required to load YAML config files. "
                    "Install it with: pip install 'persistkit[yaml]'"
                ) from exc
            with open(file_path) as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path) as fh:
                data = json.load(fh)
        else:
            raise ValueError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}

        return cls(**data)
