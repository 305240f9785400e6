# auto_scheduler.py
import logging
import random
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional

from flask import Blueprint, current_app, jsonify, request

from .conflicts import has_instructor_conflict, has_section_conflict
from .errors import PreflightError
from .load_tracker import LoadTracker, MAX_HOURS_PER_DAY, MAX_HOURS_PER_WEEK
from .models import Assignment, CatalogSnapshot, SubjectSectionPair, UnassignedRecord
from .qualification import department_name_for, is_qualified
from .report import RunReport, build_run_report
from .slot_finder import find_section_slot
from .stores import CatalogStore, ResultStore, get_catalog_store, get_result_store
from .time_grid import DAYS

logger = logging.getLogger(__name__)

auto_scheduler_bp = Blueprint('auto_scheduler', __name__, url_prefix='/api/schedule')

# How many (instructor, day) capacity checks are sampled to explain a failed pair
REASON_SAMPLE_INSTRUCTORS = 3
REASON_SAMPLE_DAYS = 2
REASON_SAMPLE_LIMIT = 3


@dataclass
class GenerationResult:
    schedule: List[Assignment]
    report: RunReport

    def to_dict(self):
        return {
            'schedule': [a.to_dict() for a in self.schedule],
            'stats': self.report.to_dict(),
        }


class ScheduleGenerator:
    """One greedy, randomized generation run over a catalog snapshot.

    Pairs are visited once each in shuffled order. For every pair the days
    are tried in shuffled order; on each day the section's earliest free
    slot is found and then offered to qualified instructors, least loaded
    first. The first instructor with capacity and no clash gets the class.
    All run state (loads, placed and unassigned lists) lives on the
    instance, so separate runs never share anything.
    """

    def __init__(self, catalog: CatalogSnapshot, semester: int, academic_year: str,
                 section_ids: Optional[Iterable[str]] = None,
                 rng: Optional[random.Random] = None,
                 weekly_cap: int = MAX_HOURS_PER_WEEK,
                 daily_cap: int = MAX_HOURS_PER_DAY):
        self.catalog = catalog
        self.semester = semester
        self.academic_year = academic_year
        self.section_ids = set(section_ids) if section_ids else None
        self.rng = rng or random.Random()
        self.weekly_cap = weekly_cap
        self.daily_cap = daily_cap

        self.loads = LoadTracker(catalog.instructors)
        self.placed: List[Assignment] = []
        self.unassigned: List[UnassignedRecord] = []

    # ---------- Pre-flight ----------
    def preflight(self):
        if not self.catalog.subjects:
            raise PreflightError("No subjects found. Please create subjects first.")
        if not self.catalog.sections:
            raise PreflightError("No sections found. Please create sections first.")
        if not self.catalog.instructors:
            raise PreflightError("No instructors found. Please add instructors first.")

    # ---------- Work list ----------
    def target_sections(self):
        if self.section_ids is None:
            return list(self.catalog.sections)
        return [s for s in self.catalog.sections if s.id in self.section_ids]

    def build_work_list(self) -> List[SubjectSectionPair]:
        pairs = []
        seen = set()
        for section in self.target_sections():
            for subject in self.catalog.subjects:
                if not subject.program_id:
                    continue
                if (subject.program_id != section.program_id
                        or subject.year_level != section.year_level
                        or subject.semester != self.semester):
                    continue
                pair = SubjectSectionPair(subject, section, self.semester, self.academic_year)
                if pair.key in seen:
                    continue
                seen.add(pair.key)
                pairs.append(pair)
        return pairs

    # ---------- Run ----------
    def run(self) -> RunReport:
        self.preflight()
        pairs = self.build_work_list()
        logger.info(
            f"Generating semester {self.semester} ({self.academic_year}): {len(pairs)} subject-section pairs, "
            f"{len(self.loads)} instructors, caps {self.weekly_cap}h/week {self.daily_cap}h/day"
        )

        order = list(pairs)
        self.rng.shuffle(order)
        for pair in order:
            self.place(pair)

        sections = self.target_sections()
        return build_run_report(pairs, self.placed, self.unassigned, self.loads, len(sections))

    def place(self, pair: SubjectSectionPair) -> Optional[Assignment]:
        subject, section = pair.subject, pair.section
        duration = subject.teaching_duration

        qualified = [
            i.id for i in self.catalog.instructors
            if is_qualified(i, subject, self.catalog.programs_by_id)
        ]
        if not qualified:
            department = department_name_for(subject, self.catalog.programs_by_id,
                                             self.catalog.departments_by_id)
            self._unassigned(pair, f"No qualified instructors in department: {department}")
            return None

        days = list(DAYS)
        self.rng.shuffle(days)
        candidates = self.loads.least_loaded(qualified)

        for day in days:
            slot = find_section_slot(day, section.id, duration, self.placed)
            if slot is None:
                continue

            for load in candidates:
                ok, _ = load.can_accept(day, duration, self.weekly_cap, self.daily_cap)
                if not ok:
                    continue
                if has_instructor_conflict(self.placed, load.id, day, slot, duration):
                    continue
                if has_section_conflict(self.placed, section.id, day, slot, duration):
                    continue

                assignment = self._build_assignment(pair, load.instructor, day, slot, duration)
                load.commit(day, slot, duration)
                self.placed.append(assignment)
                logger.debug(
                    f"  + {subject.code} ({duration}h) -> {load.name} | {day} slot {slot} | {section.name}"
                )
                return assignment

        self._unassigned(pair, self._failure_reason(candidates, duration))
        return None

    def _failure_reason(self, candidates, duration):
        reasons = []
        for load in candidates[:REASON_SAMPLE_INSTRUCTORS]:
            for day in DAYS[:REASON_SAMPLE_DAYS]:
                ok, reason = load.can_accept(day, duration, self.weekly_cap, self.daily_cap)
                if not ok:
                    reasons.append(f"{load.name}: {reason}")
        if reasons:
            return f"Could not assign: {'; '.join(reasons[:REASON_SAMPLE_LIMIT])}"
        return "No available time slot or instructor capacity"

    def _build_assignment(self, pair, instructor, day, slot, duration):
        subject, section = pair.subject, pair.section
        program = self.catalog.programs_by_id.get(section.program_id)
        return Assignment(
            subject_id=subject.id,
            subject_code=subject.code,
            subject_name=subject.name,
            section_id=section.id,
            section_name=section.name,
            program_id=section.program_id,
            program_name=program.name if program else 'Unknown',
            year_level=section.year_level,
            instructor_id=instructor.id,
            instructor_name=instructor.name,
            day=day,
            start_slot=slot,
            duration=duration,
            semester=pair.semester,
            academic_year=pair.academic_year,
            lecture_hours=subject.lecture_hours,
            lab_hours=subject.lab_hours,
        )

    def _unassigned(self, pair, reason):
        program = self.catalog.programs_by_id.get(pair.section.program_id)
        self.unassigned.append(UnassignedRecord(
            subject_code=pair.subject.code,
            subject_name=pair.subject.name,
            section_id=pair.section.id,
            section_name=pair.section.name,
            program_name=program.name if program else 'Unknown',
            year_level=pair.section.year_level,
            reason=reason,
        ))
        logger.debug(f"  x {pair.subject.code} ({pair.section.name}) - {reason}")


def generate_schedule(catalog_store: CatalogStore, result_store: ResultStore,
                      semester: int, academic_year: str,
                      section_ids: Optional[Iterable[str]] = None,
                      seed: Optional[int] = None,
                      rng: Optional[random.Random] = None,
                      weekly_cap: int = MAX_HOURS_PER_WEEK,
                      daily_cap: int = MAX_HOURS_PER_DAY) -> GenerationResult:
    """Load the catalog, run one generation and persist what was placed.

    A run without `section_ids` supersedes every stored assignment; a
    section-scoped run only adds its own placements.
    """
    section_ids = list(section_ids) if section_ids else None
    catalog = catalog_store.load()

    generator = ScheduleGenerator(
        catalog, semester, academic_year,
        section_ids=section_ids,
        rng=rng or random.Random(seed),
        weekly_cap=weekly_cap,
        daily_cap=daily_cap,
    )
    started = time.time()
    report = generator.run()
    logger.info(f"Placement finished in {time.time() - started:.2f}s")

    if section_ids is None:
        saved = result_store.replace_all(generator.placed)
    else:
        saved = result_store.add_all(generator.placed)

    report.log_summary(logger)
    return GenerationResult(schedule=saved, report=report)


# ---------- Routes ----------
def _int_or_none(value, name):
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PreflightError(f"{name} must be an integer")


@auto_scheduler_bp.route('/generate', methods=['POST'])
def generate():
    payload = request.get_json(silent=True) or {}
    config = current_app.config

    semester = _int_or_none(payload.get('semester'), 'semester') or config['DEFAULT_SEMESTER']
    if semester not in (1, 2):
        raise PreflightError("semester must be 1 or 2")
    academic_year = payload.get('academic_year') or config['DEFAULT_ACADEMIC_YEAR']

    section_ids = payload.get('section_ids')
    if not section_ids and payload.get('section_id'):
        section_ids = [payload['section_id']]
    if section_ids is not None and not isinstance(section_ids, list):
        raise PreflightError("section_ids must be a list")

    seed = payload.get('seed', config.get('SCHEDULER_SEED'))
    seed = _int_or_none(seed, 'seed')

    result = generate_schedule(
        get_catalog_store(), get_result_store(),
        semester, academic_year,
        section_ids=[str(s) for s in section_ids] if section_ids else None,
        seed=seed,
        weekly_cap=config['MAX_HOURS_PER_WEEK'],
        daily_cap=config['MAX_HOURS_PER_DAY'],
    )
    return jsonify(result.to_dict())
