import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np

from .load_tracker import LoadTracker
from .models import Assignment, SubjectSectionPair, UnassignedRecord
from .time_grid import DAYS

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    total_sections: int
    total_pairs: int
    total_assigned: int
    total_unassigned: int
    total_hours_assigned: int
    total_hours_needed: int
    unassigned: List[UnassignedRecord] = field(default_factory=list)
    instructor_workload: List[Dict] = field(default_factory=list)
    workload_summary: Dict = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            'total_sections': self.total_sections,
            'total_subject_section_pairs': self.total_pairs,
            'total_assigned': self.total_assigned,
            'total_unassigned': self.total_unassigned,
            'total_hours_assigned': self.total_hours_assigned,
            'total_hours_needed': self.total_hours_needed,
            'unassigned_subjects': [u.to_dict() for u in self.unassigned],
            'instructor_workload': self.instructor_workload,
            'workload_summary': self.workload_summary,
        }

    def log_summary(self, log=logger, max_unassigned=10):
        log.info("=" * 70)
        log.info("SCHEDULE GENERATION SUMMARY")
        log.info(f"Sections processed: {self.total_sections}")
        log.info(f"Subject-section pairs: {self.total_pairs}")
        log.info(f"Assigned: {self.total_assigned} | Unassigned: {self.total_unassigned}")
        log.info(f"Teaching hours assigned: {self.total_hours_assigned} of {self.total_hours_needed} needed")

        for entry in self.instructor_workload:
            if entry['total_hours'] > 0:
                per_day = ", ".join(
                    f"{d}: {entry['hours_per_day'][d]}h" for d in DAYS if entry['hours_per_day'].get(d)
                )
                log.info(f"  {entry['name']}: {entry['total_hours']}h ({per_day})")

        for u in self.unassigned[:max_unassigned]:
            log.info(f"  x {u.subject_code} ({u.section_name}) - {u.reason}")
        log.info("=" * 70)


def workload_summary(hours: Sequence[int]) -> Dict:
    if not len(hours):
        return {'mean_hours': 0.0, 'max_hours': 0, 'min_hours': 0, 'std_hours': 0.0, 'idle_instructors': 0}
    arr = np.asarray(hours, dtype=float)
    return {
        'mean_hours': round(float(arr.mean()), 2),
        'max_hours': int(arr.max()),
        'min_hours': int(arr.min()),
        'std_hours': round(float(arr.std()), 2),
        'idle_instructors': int(np.count_nonzero(arr == 0)),
    }


def build_run_report(pairs: Sequence[SubjectSectionPair],
                     placed: Sequence[Assignment],
                     unassigned: Sequence[UnassignedRecord],
                     loads: LoadTracker,
                     total_sections: int) -> RunReport:
    workload = loads.snapshot()
    return RunReport(
        total_sections=total_sections,
        total_pairs=len(pairs),
        total_assigned=len(placed),
        total_unassigned=len(unassigned),
        total_hours_assigned=sum(a.duration for a in placed),
        total_hours_needed=sum(p.subject.teaching_duration for p in pairs),
        unassigned=list(unassigned),
        instructor_workload=workload,
        workload_summary=workload_summary([w['total_hours'] for w in workload]),
    )
