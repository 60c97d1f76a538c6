from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Mapping, Sequence, Tuple, Union

from . import stages
from .config import CleanerConfig
from .models import Segment

logger = logging.getLogger(__name__)

Stage = Callable[[Iterable[Segment]], List[Segment]]


class MovesCleaner:
    """Normalise a storyline of place, move and off segments.

    ``apply`` runs every stage in a fixed order::

        flatten -> sort -> merge moves -> merge places -> close gaps -> drop off

    Each stage is also exposed on its own. Stages never mutate their input.
    """

    def __init__(self, config: Union[CleanerConfig, Mapping[str, Any], None] = None) -> None:
        if isinstance(config, CleanerConfig):
            self.config = config
        else:
            self.config = CleanerConfig.from_options(config)

    @property
    def pipeline(self) -> Sequence[Tuple[str, Stage]]:
        return (
            ("flatten_move_segments", self.flatten_move_segments),
            ("sort_segments", self.sort_segments),
            ("merge_move_segments", self.merge_move_segments),
            ("merge_place_segments", self.merge_place_segments),
            ("close_gaps", self.close_gaps),
            ("filter_off_segments", self.filter_off_segments),
        )

    def apply(self, segments: Iterable[Segment]) -> List[Segment]:
        current = stages.ensure_segment_list(segments)
        logger.debug("Cleaning %d segments", len(current))
        for name, stage in self.pipeline:
            current = stage(current)
            logger.debug("%s -> %d segments", name, len(current))
        return current

    def flatten_move_segments(self, segments: Iterable[Segment]) -> List[Segment]:
        return stages.flatten_move_segments(segments)

    def sort_segments(self, segments: Iterable[Segment]) -> List[Segment]:
        return stages.sort_segments(segments)

    def merge_move_segments(self, segments: Iterable[Segment]) -> List[Segment]:
        return stages.merge_move_segments(segments)

    def merge_place_segments(self, segments: Iterable[Segment]) -> List[Segment]:
        return stages.merge_place_segments(segments)

    def close_gaps(self, segments: Iterable[Segment]) -> List[Segment]:
        return stages.close_gaps(segments, near_threshold_m=self.config.near_threshold_m)

    def filter_off_segments(self, segments: Iterable[Segment]) -> List[Segment]:
        return stages.filter_off_segments(segments)


def clean_segments(
    segments: Iterable[Segment],
    config: Union[CleanerConfig, Mapping[str, Any], None] = None,
) -> List[Segment]:
    return MovesCleaner(config).apply(segments)
