from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional, Tuple

# Subjects with fewer (or unknown) hours still get a block this long.
MIN_TEACHING_DURATION = 3


@dataclass(frozen=True)
class Department:
    id: str
    name: str
    code: str = ''


@dataclass(frozen=True)
class Program:
    id: str
    name: str
    code: str = ''
    department_id: Optional[str] = None


@dataclass(frozen=True)
class Subject:
    id: str
    code: str
    name: str
    program_id: Optional[str]
    year_level: int
    semester: int
    lecture_hours: int = 0
    lab_hours: int = 0
    total_hours: int = 0  # explicit override of lecture + lab when non-zero

    @property
    def teaching_duration(self) -> int:
        hours = self.total_hours or (self.lecture_hours or 0) + (self.lab_hours or 0)
        return max(hours, MIN_TEACHING_DURATION)


@dataclass(frozen=True)
class Section:
    id: str
    name: str
    program_id: str
    year_level: int


@dataclass(frozen=True)
class Instructor:
    id: str
    name: str
    department_ids: FrozenSet[str] = frozenset()
    role: str = 'instructor'


@dataclass(frozen=True)
class SubjectSectionPair:
    subject: Subject
    section: Section
    semester: int
    academic_year: str

    @property
    def key(self) -> Tuple[str, str]:
        return (self.section.id, self.subject.code)


@dataclass(frozen=True)
class Assignment:
    subject_id: str
    subject_code: str
    subject_name: str
    section_id: str
    section_name: str
    program_id: Optional[str]
    program_name: str
    year_level: int
    instructor_id: str
    instructor_name: str
    day: str
    start_slot: int
    duration: int
    semester: int
    academic_year: str
    lecture_hours: int = 0
    lab_hours: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    id: Optional[str] = None

    @property
    def end_slot(self) -> int:
        return self.start_slot + self.duration

    @property
    def pair_key(self) -> Tuple[str, str]:
        return (self.section_id, self.subject_code)

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['end_slot'] = self.end_slot
        data['created_at'] = self.created_at.isoformat()
        return data


@dataclass(frozen=True)
class UnassignedRecord:
    subject_code: str
    subject_name: str
    section_id: str
    section_name: str
    program_name: str
    year_level: int
    reason: str

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class CatalogSnapshot:
    """Flat catalog records read once at the start of a run."""
    subjects: List[Subject]
    sections: List[Section]
    instructors: List[Instructor]
    programs: List[Program]
    departments: List[Department]

    def __post_init__(self):
        self.programs_by_id = {p.id: p for p in self.programs}
        self.departments_by_id = {d.id: d for d in self.departments}
        self.instructors_by_id = {i.id: i for i in self.instructors}
