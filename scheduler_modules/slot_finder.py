from typing import Iterable, Optional

from .conflicts import has_section_conflict
from .models import Assignment
from .time_grid import candidate_start_slots


def find_section_slot(day: str, section_id: str, duration: int,
                      placed: Iterable[Assignment]) -> Optional[int]:
    """Earliest start slot on `day` at which the section is free for `duration` hours.

    Only the section's own bookings are considered; the instructor is
    checked separately against the slot this returns.
    """
    same_day = [a for a in placed if a.day == day and a.section_id == section_id]
    for slot in candidate_start_slots(duration):
        if not has_section_conflict(same_day, section_id, day, slot, duration):
            return slot
    return None
