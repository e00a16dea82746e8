"""
Conflict detection and resolution between overlapping annotations.

Annotations from different recognizers may claim the same characters.
Overlapping annotations are grouped into conflicts (connected components
of the overlap graph) and each conflict keeps a single winner.
"""

from typing import Callable, List, Sequence

import structlog

from smart_task_parser.models import Annotation, Conflict


logger = structlog.get_logger(__name__)


PriorityLookup = Callable[[str], int]


def detect_conflicts(tags: Sequence[Annotation]) -> List[Conflict]:
    """
    Group overlapping annotations into conflicts.

    Every overlapping pair joins each existing conflict whose bounds
    intersect the pair's span; when several conflicts match they are merged
    into the first. A conflict's members cover its bounds without gaps, so
    intersecting the bounds means overlapping a member, and the resulting
    groups are exactly the transitive overlap clusters.

    Args:
        tags: Annotations from all recognizers, in collection order

    Returns:
        Conflicts in order of first detection, with `resolved` unset
    """
    conflicts: List[Conflict] = []

    for i in range(len(tags)):
        for j in range(i + 1, len(tags)):
            first, second = tags[i], tags[j]
            if not first.overlaps(second):
                continue

            pair_start = min(first.start_index, second.start_index)
            pair_end = max(first.end_index, second.end_index)

            matching = [
                c for c in conflicts
                if c.contains(first) or c.contains(second) or c.intersects(pair_start, pair_end)
            ]

            if not matching:
                conflict = Conflict(start_index=pair_start, end_index=pair_end)
                conflicts.append(conflict)
            else:
                conflict = matching[0]
                for other in matching[1:]:
                    for member in other.tags:
                        conflict.add(member)
                    conflicts.remove(other)

            conflict.add(first)
            conflict.add(second)

    logger.debug(
        "conflict_detection_complete",
        tags_count=len(tags),
        conflicts_count=len(conflicts),
    )

    return conflicts


def resolve_conflicts(
    tags: Sequence[Annotation],
    conflicts: Sequence[Conflict],
    priority_of: PriorityLookup,
) -> List[Annotation]:
    """
    Keep one annotation per conflict.

    Priority rules (in order):
    1. Recognizer priority of the annotation's source (higher wins)
    2. Annotation confidence (higher wins)
    3. Collection order (earlier wins)

    Sets `resolved` on every conflict.

    Args:
        tags: All collected annotations
        conflicts: Conflicts from detect_conflicts
        priority_of: Maps a source id to its recognizer priority

    Returns:
        Annotations with conflict losers removed, in collection order
    """
    position = {t.id: k for k, t in enumerate(tags)}
    to_remove = set()

    for conflict in conflicts:
        ranked = sorted(
            conflict.tags,
            key=lambda t: (-priority_of(t.source), -t.confidence, position.get(t.id, len(position))),
        )
        winner = ranked[0]
        conflict.resolved = winner

        for loser in ranked[1:]:
            to_remove.add(loser.id)
            logger.debug(
                "annotation_discarded",
                kept=repr(winner),
                discarded=repr(loser),
                reason=f"priority: {priority_of(winner.source)} > {priority_of(loser.source)}"
                if priority_of(winner.source) != priority_of(loser.source)
                else f"confidence: {winner.confidence} >= {loser.confidence}",
            )

    return [t for t in tags if t.id not in to_remove]
