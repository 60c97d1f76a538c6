"""
Storyline cleaner package.

Normalises place / move / off segment timelines from location-history
exports: flattens compound moves, merges adjacent episodes, closes gaps
around places, and drops ``off`` periods. The public entrypoint is
``moves_cleaner.cleaner.MovesCleaner``.
"""

from .cleaner import MovesCleaner, clean_segments  # noqa: F401
from .config import CleanerConfig  # noqa: F401
from .models import Location, Move, Off, Place, PlaceInfo, Segment, TrackPoint  # noqa: F401
from .records import clean_records, segment_from_record, segment_to_record, segments_from_payload  # noqa: F401
