from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .errors import LoadError
from .models import Instructor
from .time_grid import fits_in_grid

MAX_HOURS_PER_WEEK = 36
MAX_HOURS_PER_DAY = 8


class InstructorLoad:
    """Hours an instructor has been given so far in one generation run."""

    def __init__(self, instructor: Instructor):
        self.instructor = instructor
        self.total_hours = 0
        self.hours_per_day: Dict[str, int] = defaultdict(int)
        self.occupied_slots: Dict[str, Set[int]] = defaultdict(set)

    @property
    def id(self):
        return self.instructor.id

    @property
    def name(self):
        return self.instructor.name

    def can_accept(self, day: str, duration: int,
                   weekly_cap: int = MAX_HOURS_PER_WEEK,
                   daily_cap: int = MAX_HOURS_PER_DAY) -> Tuple[bool, Optional[str]]:
        if self.total_hours + duration > weekly_cap:
            return False, f"Would exceed weekly limit ({weekly_cap}h)"
        if self.hours_per_day.get(day, 0) + duration > daily_cap:
            return False, f"Would exceed daily limit for {day} ({daily_cap}h)"
        return True, None

    def commit(self, day: str, start_slot: int, duration: int) -> None:
        if not fits_in_grid(start_slot, duration):
            raise LoadError(f"Block {day} {start_slot}+{duration} is outside the grid")
        block = set(range(start_slot, start_slot + duration))
        taken = self.occupied_slots.get(day, set()) & block
        if taken:
            raise LoadError(
                f"{self.name} already teaches {day} slot(s) {sorted(taken)}; block was not checked"
            )

        self.total_hours += duration
        self.hours_per_day[day] += duration
        self.occupied_slots[day].update(block)

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'total_hours': self.total_hours,
            'hours_per_day': {d: h for d, h in self.hours_per_day.items() if h},
        }


class LoadTracker:
    """Per-run load state for every instructor, owned by a single generator."""

    def __init__(self, instructors: Iterable[Instructor]):
        self._loads: Dict[str, InstructorLoad] = {}
        for instructor in instructors:
            self._loads[instructor.id] = InstructorLoad(instructor)

    def __iter__(self):
        return iter(self._loads.values())

    def __len__(self):
        return len(self._loads)

    def get(self, instructor_id: str) -> InstructorLoad:
        return self._loads[instructor_id]

    def least_loaded(self, instructor_ids: Iterable[str]) -> List[InstructorLoad]:
        # sorted() is stable, so ties keep catalog order
        return sorted((self._loads[i] for i in instructor_ids), key=lambda load: load.total_hours)

    def snapshot(self) -> List[Dict]:
        return [load.to_dict() for load in self._loads.values()]
