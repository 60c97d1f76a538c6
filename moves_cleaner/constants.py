from __future__ import annotations

from typing import Final

DEFAULT_NEAR_THRESHOLD_M: Final[float] = 100.0

# Equatorial radius used by the export service's own distance tooling.
EARTH_RADIUS_M: Final[float] = 6_378_137.0
EARTH_RADIUS_KM: Final[float] = EARTH_RADIUS_M / 1000.0

PLACE: Final[str] = "place"
MOVE: Final[str] = "move"
OFF: Final[str] = "off"

MOVES_TIME_FORMAT: Final[str] = "%Y%m%dT%H%M%S%z"
