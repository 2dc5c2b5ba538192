"""Desk configuration for pcreg."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pcreg._constants import AUTOSAVE_DELAY_MS, SNAPSHOT_KEY, SNAPSHOT_LIMIT, STATE_KEY
from pcreg.exceptions import ConfigError


def _env_int(env: Mapping[str, str], key: str) -> int | None:
    value = env.get(key)
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class DeskConfig:
    """Store configuration.

    Parameters
    ----------
    storage_dir : Path or None
        Directory used by :class:`pcreg.storage.FileStorage`. ``None``
        keeps everything in memory (useful for tests and dry runs).
    state_key : str
        Substrate key holding the live document.
    snapshot_key : str
        Substrate key holding the snapshot list. Must differ from
        ``state_key`` so a corrupt snapshot list cannot clobber the
        document.
    autosave_delay_ms : int
        Debounce window for autosave, in milliseconds.
    snapshot_limit : int
        Maximum number of snapshots kept; older ones are evicted.
    """

    storage_dir: Path | None = None
    state_key: str = STATE_KEY
    snapshot_key: str = SNAPSHOT_KEY
    autosave_delay_ms: int = AUTOSAVE_DELAY_MS
    snapshot_limit: int = SNAPSHOT_LIMIT

    def __post_init__(self) -> None:
        if self.state_key == self.snapshot_key:
            raise ConfigError("state_key and snapshot_key must be distinct")
        if self.autosave_delay_ms < 0:
            raise ConfigError("autosave_delay_ms must be >= 0")
        if self.snapshot_limit < 1:
            raise ConfigError("snapshot_limit must be >= 1")
        if self.storage_dir is not None:
            object.__setattr__(self, "storage_dir", Path(self.storage_dir).expanduser())

    @property
    def autosave_delay(self) -> float:
        """Debounce window in seconds."""
        return self.autosave_delay_ms / 1000.0

    @classmethod
    def from_env(cls, **overrides: Any) -> DeskConfig:
        """Create configuration from environment variables.

        Reads ``PCREG_STORAGE_DIR``, ``PCREG_STATE_KEY``,
        ``PCREG_SNAPSHOT_KEY``, ``PCREG_AUTOSAVE_DELAY_MS`` and
        ``PCREG_SNAPSHOT_LIMIT``. Explicit keyword arguments override
        environment values.

        Raises
        ------
        ConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        storage_dir = env.get("PCREG_STORAGE_DIR")
        if storage_dir:
            config_kwargs["storage_dir"] = Path(storage_dir).expanduser()

        _ENV_KEY_MAP = {
            "PCREG_STATE_KEY": "state_key",
            "PCREG_SNAPSHOT_KEY": "snapshot_key",
        }
        for env_key, field_name in _ENV_KEY_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        delay = _env_int(env, "PCREG_AUTOSAVE_DELAY_MS")
        if delay is not None and "autosave_delay_ms" not in overrides:
            config_kwargs["autosave_delay_ms"] = delay

        limit = _env_int(env, "PCREG_SNAPSHOT_LIMIT")
        if limit is not None and "snapshot_limit" not in overrides:
            config_kwargs["snapshot_limit"] = limit

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
