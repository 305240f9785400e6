import logging
from dataclasses import dataclass, asdict
from typing import Iterable, List, Optional

from flask import Blueprint, jsonify

from .models import Assignment
from .stores import get_result_store
from .time_grid import slot_range_label

logger = logging.getLogger(__name__)

conflicts_bp = Blueprint('conflicts', __name__, url_prefix='/api/conflicts')


# ---------- Overlap ----------
def overlaps(a, b):
    """Half-open interval overlap of two (day, start_slot, duration) blocks.

    Accepts plain tuples or anything with day/start_slot/duration attributes.
    """
    day_a, start_a, dur_a = _as_block(a)
    day_b, start_b, dur_b = _as_block(b)
    return day_a == day_b and start_a < start_b + dur_b and start_b < start_a + dur_a


def _as_block(item):
    if isinstance(item, tuple):
        return item
    return (item.day, item.start_slot, item.duration)


def has_instructor_conflict(placed: Iterable[Assignment], instructor_id: str, day: str,
                            start_slot: int, duration: int, ignore_id: Optional[str] = None) -> bool:
    candidate = (day, start_slot, duration)
    for item in placed:
        if ignore_id is not None and item.id == ignore_id:
            continue
        if item.instructor_id == instructor_id and overlaps(item, candidate):
            return True
    return False


def has_section_conflict(placed: Iterable[Assignment], section_id: str, day: str,
                         start_slot: int, duration: int, ignore_id: Optional[str] = None) -> bool:
    candidate = (day, start_slot, duration)
    for item in placed:
        if ignore_id is not None and item.id == ignore_id:
            continue
        if item.section_id == section_id and overlaps(item, candidate):
            return True
    return False


# ---------- Audit of a stored schedule ----------
@dataclass(frozen=True)
class Conflict:
    first_id: Optional[str]
    second_id: Optional[str]
    conflict_type: str
    description: str
    recommendation: str

    def to_dict(self):
        return asdict(self)


def detect_conflicts(assignments: List[Assignment]) -> List[Conflict]:
    """Every instructor or section double booking among `assignments`."""
    found = []
    for i, s1 in enumerate(assignments):
        for s2 in assignments[i + 1:]:
            if not overlaps(s1, s2):
                continue
            when = (
                f"on {s1.day} {slot_range_label(s1.start_slot, s1.duration)} and "
                f"{slot_range_label(s2.start_slot, s2.duration)}"
            )
            if s1.instructor_id == s2.instructor_id:
                found.append(Conflict(
                    s1.id, s2.id, "Instructor Double Booking",
                    f"Instructor {s1.instructor_name} has overlapping classes: "
                    f"'{s1.subject_name}' ({s1.section_name}) and '{s2.subject_name}' ({s2.section_name}) {when}",
                    f"Reassign one of the overlapping classes for {s1.instructor_name} "
                    f"to another instructor or move it to a different time.",
                ))
            if s1.section_id == s2.section_id:
                found.append(Conflict(
                    s1.id, s2.id, "Section Double Booking",
                    f"Section {s1.section_name} has overlapping classes: "
                    f"'{s1.subject_name}' and '{s2.subject_name}' {when}",
                    "Move one of the classes to a free time for this section.",
                ))
    return found


@conflicts_bp.route('/', methods=['GET'])
def list_conflicts():
    assignments = get_result_store().list()
    conflicts = detect_conflicts(assignments)
    if conflicts:
        logger.warning(f"{len(conflicts)} conflict(s) found in stored schedule")
    return jsonify({'conflicts': [c.to_dict() for c in conflicts], 'total': len(conflicts)})
