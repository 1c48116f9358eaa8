"""Runtime configuration.

Settings can be passed directly or read from the environment::

    export SATAR_CACHE_DIR="$HOME/.cache/satar"
    export SATAR_MAX_AGE_HOURS=6
    export SATAR_MERGE_POLICY=strict
    export SATAR_ACTIVE_ONLY=1
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Mapping, Optional

from satar.core.catalog import MergePolicy
from satar.utils.constants import (
    DEFAULT_DOWNLOAD_TIMEOUT_S,
    DEFAULT_MAX_AGE_HOURS,
    DEFAULT_MAX_WORKERS,
    DEFAULT_PROPAGATION_TIMEOUT_S,
    DEFAULT_TICK_INTERVAL_S,
    ORBITAL_FEED_FILENAME,
    ORBITAL_FEED_URL,
    RADIO_FEED_FILENAME,
    RADIO_FEED_URL,
)

ENV_PREFIX = "SATAR_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def default_cache_dir() -> Path:
    return Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache")) / "satar"


@dataclass(frozen=True)
class SatarConfig:
    """Feed locations, refresh policy and tracking limits.

    Attributes:
        cache_dir: Directory holding one local copy per feed.
        orbital_url: Orbital element feed URL.
        radio_url: Radio metadata feed URL.
        orbital_filename: Local file name for the orbital feed.
        radio_filename: Local file name for the radio feed.
        max_age: Local copies at least this old are downloaded again.
        download_timeout_s: Upper bound on one download.
        merge_policy: Keep element sets without radios (permissive) or not.
        active_only: Drop radio rows whose status is not active.
        tick_interval_s: Nominal tracking tick interval.
        propagation_timeout_s: Upper bound on one tick batch.
        max_workers: Tick thread pool size.
    """

    cache_dir: Path = field(default_factory=default_cache_dir)
    orbital_url: str = ORBITAL_FEED_URL
    radio_url: str = RADIO_FEED_URL
    orbital_filename: str = ORBITAL_FEED_FILENAME
    radio_filename: str = RADIO_FEED_FILENAME
    max_age: timedelta = timedelta(hours=DEFAULT_MAX_AGE_HOURS)
    download_timeout_s: float = DEFAULT_DOWNLOAD_TIMEOUT_S
    merge_policy: MergePolicy = MergePolicy.PERMISSIVE
    active_only: bool = False
    tick_interval_s: float = DEFAULT_TICK_INTERVAL_S
    propagation_timeout_s: float = DEFAULT_PROPAGATION_TIMEOUT_S
    max_workers: int = DEFAULT_MAX_WORKERS

    @property
    def orbital_path(self) -> Path:
        return Path(self.cache_dir) / self.orbital_filename

    @property
    def radio_path(self) -> Path:
        return Path(self.cache_dir) / self.radio_filename

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> SatarConfig:
        """Build a config from ``SATAR_*`` variables, then apply ``overrides``.

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            return env.get(ENV_PREFIX + name)

        kwargs: dict = {}
        if (v := get("CACHE_DIR")) is not None:
            kwargs["cache_dir"] = Path(v).expanduser()
        if (v := get("ORBITAL_URL")) is not None:
            kwargs["orbital_url"] = v
        if (v := get("RADIO_URL")) is not None:
            kwargs["radio_url"] = v
        if (v := get("MAX_AGE_HOURS")) is not None:
            kwargs["max_age"] = timedelta(hours=_positive_float("MAX_AGE_HOURS", v))
        if (v := get("DOWNLOAD_TIMEOUT")) is not None:
            kwargs["download_timeout_s"] = _positive_float("DOWNLOAD_TIMEOUT", v)
        if (v := get("MERGE_POLICY")) is not None:
            try:
                kwargs["merge_policy"] = MergePolicy(v.strip().lower())
            except ValueError:
                raise ValueError(
                    f"{ENV_PREFIX}MERGE_POLICY must be 'permissive' or 'strict', got {v!r}"
                ) from None
        if (v := get("ACTIVE_ONLY")) is not None:
            kwargs["active_only"] = _flag("ACTIVE_ONLY", v)
        if (v := get("TICK_INTERVAL")) is not None:
            kwargs["tick_interval_s"] = _positive_float("TICK_INTERVAL", v)
        if (v := get("PROPAGATION_TIMEOUT")) is not None:
            kwargs["propagation_timeout_s"] = _positive_float("PROPAGATION_TIMEOUT", v)
        if (v := get("MAX_WORKERS")) is not None:
            kwargs["max_workers"] = int(_positive_float("MAX_WORKERS", v))

        kwargs.update({k: val for k, val in overrides.items() if val is not None})
        return cls(**kwargs)


def _positive_float(name: str, value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {value!r}") from None
    if number <= 0:
        raise ValueError(f"{ENV_PREFIX}{name} must be positive, got {value!r}")
    return number


def _flag(name: str, value: str) -> bool:
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean flag, got {value!r}")
