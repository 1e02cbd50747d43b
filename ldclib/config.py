"""
Load duration curve configuration.

Holds the site, regulatory standard, unit conversion factor and the
policies that resolve ambiguous input (same-day samples, tied flows).
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional

import pandas as pd

from ldclib.core import InvalidConfiguration

logger = logging.getLogger(__name__)

# mL per cubic foot
ML_PER_CUBIC_FOOT = 28316.8
SECONDS_PER_DAY = 86400

# cfs x (counts / 100 mL) -> counts / day, after dividing concentration by 100
DEFAULT_CONVERSION_FACTOR = ML_PER_CUBIC_FOOT * SECONDS_PER_DAY

# E. coli geometric-mean criterion, counts / 100 mL
DEFAULT_STANDARD = 126.0

DUPLICATE_POLICIES = ("mean", "first", "reject")
TIE_METHODS = ("ordinal", "average")

_ENV_OVERRIDES = {
    "LDCLIB_STANDARD": "standard",
    "LDCLIB_CONVERSION_FACTOR": "conversion_factor",
}


@dataclass
class LDCConfig:
    """Configuration for one load duration curve computation.

    Parameters
    ----------
    site_no : str or None
        USGS site number of the flow gage.
    standard : float
        Regulatory concentration threshold in units per 100 mL.
    conversion_factor : float
        Factor taking ``flow * concentration / 100`` to load per day.
        The default assumes cfs flows and per-100-mL concentrations.
    start_date, end_date : str or None
        Flow period of record (``YYYY-MM-DD``).
    duplicate_policy : str
        How same-day concentration samples are combined: ``"mean"``,
        ``"first"`` or ``"reject"``.
    ties : str
        Ranking of tied flows: ``"ordinal"`` (first occurrence gets the
        lower rank) or ``"average"``.
    """

    site_no: Optional[str] = None
    standard: float = DEFAULT_STANDARD
    conversion_factor: float = DEFAULT_CONVERSION_FACTOR
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    duplicate_policy: str = "mean"
    ties: str = "ordinal"

    def __post_init__(self) -> None:
        if self.site_no is not None:
            self.site_no = str(self.site_no).zfill(8)
        self.validate()

    def validate(self) -> None:
        """Raise :class:`InvalidConfiguration` if any setting is out of range.

        Numeric strings for ``standard`` and ``conversion_factor`` are
        stored back as floats.
        """
        self.standard = _to_float("standard", self.standard)
        self.conversion_factor = _to_float("conversion_factor", self.conversion_factor)
        validate_positive("standard", self.standard)
        validate_positive("conversion_factor", self.conversion_factor)

        if self.duplicate_policy not in DUPLICATE_POLICIES:
            raise InvalidConfiguration(
                f"duplicate_policy must be one of {DUPLICATE_POLICIES}, got {self.duplicate_policy!r}"
            )
        if self.ties not in TIE_METHODS:
            raise InvalidConfiguration(f"ties must be one of {TIE_METHODS}, got {self.ties!r}")

        if self.start_date and self.end_date:
            try:
                start = pd.Timestamp(self.start_date)
                end = pd.Timestamp(self.end_date)
            except (ValueError, TypeError) as e:
                raise InvalidConfiguration(f"unparseable date range: {e}")
            if start > end:
                raise InvalidConfiguration(
                    f"start_date {self.start_date} is after end_date {self.end_date}"
                )

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "LDCConfig":
        """Build a config from a flat mapping; unknown keys are ignored."""
        names = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - names)
        if unknown:
            logger.debug("Ignoring unknown config keys: %s", unknown)
        kwargs = {k: v for k, v in values.items() if k in names}
        for key in ("standard", "conversion_factor"):
            if key in kwargs:
                kwargs[key] = _to_float(key, kwargs[key])
        return cls(**kwargs)

    @classmethod
    def from_env(cls, **overrides: Any) -> "LDCConfig":
        """Build a config, reading numeric settings from ``LDCLIB_*`` variables.

        Keyword arguments take precedence over the environment.
        """
        values: Dict[str, Any] = {}
        for env_name, key in _ENV_OVERRIDES.items():
            raw = os.environ.get(env_name)
            if raw:
                logger.info("Using %s=%s from environment", env_name, raw)
                values[key] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _to_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"{name} must be numeric, got {value!r}")


def validate_positive(name: str, value: Any) -> None:
    """Raise :class:`InvalidConfiguration` unless *value* is a positive finite number."""
    value = _to_float(name, value)
    if not math.isfinite(value) or value <= 0:
        raise InvalidConfiguration(f"{name} must be positive and finite, got {value!r}")
