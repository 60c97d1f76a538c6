from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from .constants import DEFAULT_NEAR_THRESHOLD_M

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleanerConfig:
    """Options for a :class:`~moves_cleaner.cleaner.MovesCleaner`.

    Attributes:
        near_threshold_m: Two locations closer than this many metres count
            as the same spot when closing gaps around place segments.
    """

    near_threshold_m: float = DEFAULT_NEAR_THRESHOLD_M

    def __post_init__(self) -> None:
        threshold = self.near_threshold_m
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise ValueError(f"near_threshold_m must be a number, got {threshold!r}")
        if not math.isfinite(threshold) or threshold <= 0:
            raise ValueError(f"near_threshold_m must be a positive finite number, got {threshold!r}")

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> "CleanerConfig":
        if not options:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            logger.debug("Ignoring unknown cleaner options: %s", ", ".join(unknown))
        return cls(**{key: value for key, value in options.items() if key in known and value is not None})
