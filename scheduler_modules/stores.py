import json
import logging
import uuid
from collections import OrderedDict
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import mysql.connector
from flask import current_app

from .config import db_config_from
from .db import db_cursor, db_transaction
from .errors import AssignmentNotFound, CatalogError, PersistenceError
from .models import (
    Assignment, CatalogSnapshot, Department, Instructor, Program, Section, Subject,
)
from .time_grid import DAYS

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'timetable'

# Fields of a stored assignment a move may change
MOVABLE_FIELDS = ('day', 'start_slot', 'duration', 'instructor_id', 'instructor_name')


def _with_ids(assignments: Iterable[Assignment]) -> List[Assignment]:
    return [a if a.id else replace(a, id=uuid.uuid4().hex) for a in assignments]


# ==================== CATALOG STORES ====================
class CatalogStore:
    """Read-only source of subjects, sections, instructors, programs and departments."""

    def load(self) -> CatalogSnapshot:
        raise NotImplementedError


class MySQLCatalogStore(CatalogStore):

    def __init__(self, db_config, teaching_role='instructor'):
        self.db_config = db_config
        self.teaching_role = teaching_role

    def load(self) -> CatalogSnapshot:
        try:
            with db_cursor(self.db_config, dictionary=True) as cursor:
                cursor.execute("SELECT department_id, name, code FROM departments")
                departments = [
                    Department(id=str(r['department_id']), name=r['name'], code=r.get('code') or '')
                    for r in cursor.fetchall()
                ]

                cursor.execute("SELECT program_id, name, code, department_id FROM programs")
                programs = [
                    Program(
                        id=str(r['program_id']), name=r['name'], code=r.get('code') or '',
                        department_id=str(r['department_id']) if r.get('department_id') else None,
                    )
                    for r in cursor.fetchall()
                ]

                cursor.execute("""
                    SELECT subject_id, code, name, program_id, year_level, semester,
                           IFNULL(lecture_hours, 0) AS lecture_hours,
                           IFNULL(lab_hours, 0) AS lab_hours,
                           IFNULL(total_hours, 0) AS total_hours
                    FROM subjects
                """)
                subjects = [_row_to_subject(r) for r in cursor.fetchall()]

                cursor.execute("SELECT section_id, name, program_id, year_level FROM sections")
                sections = [
                    Section(id=str(r['section_id']), name=r['name'],
                            program_id=str(r['program_id']), year_level=int(r['year_level']))
                    for r in cursor.fetchall()
                ]

                cursor.execute("""
                    SELECT i.instructor_id, i.name, i.role, d.department_id
                    FROM instructors i
                    LEFT JOIN instructor_departments d ON i.instructor_id = d.instructor_id
                    WHERE i.role = %s
                    ORDER BY i.instructor_id
                """, (self.teaching_role,))
                instructors = _group_instructor_rows(cursor.fetchall())
        except mysql.connector.Error as err:
            logger.error(f"Catalog read failed: {err}")
            raise CatalogError(f"Could not read catalog: {err}") from err

        return CatalogSnapshot(subjects, sections, instructors, programs, departments)


def _row_to_subject(r) -> Subject:
    return Subject(
        id=str(r['subject_id']),
        code=r['code'],
        name=r['name'],
        program_id=str(r['program_id']) if r.get('program_id') else None,
        year_level=int(r['year_level']),
        semester=int(r['semester']),
        lecture_hours=int(r.get('lecture_hours') or 0),
        lab_hours=int(r.get('lab_hours') or 0),
        total_hours=int(r.get('total_hours') or 0),
    )


def _group_instructor_rows(rows) -> List[Instructor]:
    grouped: Dict[str, dict] = OrderedDict()
    for r in rows:
        iid = str(r['instructor_id'])
        entry = grouped.setdefault(iid, {'name': r['name'], 'role': r['role'], 'departments': set()})
        if r.get('department_id'):
            entry['departments'].add(str(r['department_id']))
    return [
        Instructor(id=iid, name=e['name'], department_ids=frozenset(e['departments']), role=e['role'])
        for iid, e in grouped.items()
    ]


class MemoryCatalogStore(CatalogStore):

    def __init__(self, subjects=(), sections=(), instructors=(), programs=(), departments=(),
                 teaching_role='instructor'):
        self.subjects = list(subjects)
        self.sections = list(sections)
        self.instructors = list(instructors)
        self.programs = list(programs)
        self.departments = list(departments)
        self.teaching_role = teaching_role

    def load(self) -> CatalogSnapshot:
        teaching = [i for i in self.instructors if i.role == self.teaching_role]
        return CatalogSnapshot(list(self.subjects), list(self.sections), teaching,
                               list(self.programs), list(self.departments))

    @classmethod
    def from_dict(cls, data, teaching_role='instructor'):
        """Build a catalog from plain records (the JSON catalog file format)."""
        return cls(
            subjects=[_row_to_subject(r) for r in data.get('subjects', [])],
            sections=[
                Section(id=str(r['section_id']), name=r['name'],
                        program_id=str(r['program_id']), year_level=int(r['year_level']))
                for r in data.get('sections', [])
            ],
            instructors=[
                Instructor(id=str(r['instructor_id']), name=r['name'],
                           department_ids=frozenset(str(d) for d in r.get('department_ids', [])),
                           role=r.get('role', 'instructor'))
                for r in data.get('instructors', [])
            ],
            programs=[
                Program(id=str(r['program_id']), name=r['name'], code=r.get('code', ''),
                        department_id=str(r['department_id']) if r.get('department_id') else None)
                for r in data.get('programs', [])
            ],
            departments=[
                Department(id=str(r['department_id']), name=r['name'], code=r.get('code', ''))
                for r in data.get('departments', [])
            ],
            teaching_role=teaching_role,
        )

    @classmethod
    def from_file(cls, path, teaching_role='instructor'):
        data = json.loads(Path(path).read_text(encoding='utf-8'))
        return cls.from_dict(data, teaching_role=teaching_role)


# ==================== RESULT STORES ====================
class ResultStore:
    """Durable home of generated assignments."""

    def replace_all(self, assignments: Iterable[Assignment]) -> List[Assignment]:
        """Atomically delete every stored assignment and insert `assignments`."""
        raise NotImplementedError

    def add_all(self, assignments: Iterable[Assignment]) -> List[Assignment]:
        """Atomically insert `assignments`, leaving stored ones untouched."""
        raise NotImplementedError

    def list(self, section_id=None, instructor_id=None, year_level=None) -> List[Assignment]:
        raise NotImplementedError

    def get(self, assignment_id) -> Assignment:
        raise NotImplementedError

    def update(self, assignment_id, changes: Dict) -> Assignment:
        raise NotImplementedError


_INSERT_ASSIGNMENT = """
    INSERT INTO assignments
    (assignment_id, subject_id, subject_code, subject_name, section_id, section_name,
     program_id, program_name, year_level, instructor_id, instructor_name,
     day_of_week, start_slot, duration, semester, academic_year,
     lecture_hours, lab_hours, created_at)
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
"""

_SELECT_ASSIGNMENTS = """
    SELECT assignment_id, subject_id, subject_code, subject_name, section_id, section_name,
           program_id, program_name, year_level, instructor_id, instructor_name,
           day_of_week, start_slot, duration, semester, academic_year,
           lecture_hours, lab_hours, created_at
    FROM assignments
"""

_COLUMN_FOR_FIELD = {
    'day': 'day_of_week',
    'start_slot': 'start_slot',
    'duration': 'duration',
    'instructor_id': 'instructor_id',
    'instructor_name': 'instructor_name',
}


def _assignment_row(a: Assignment):
    return (
        a.id, a.subject_id, a.subject_code, a.subject_name, a.section_id, a.section_name,
        a.program_id, a.program_name, a.year_level, a.instructor_id, a.instructor_name,
        a.day, a.start_slot, a.duration, a.semester, a.academic_year,
        a.lecture_hours, a.lab_hours, a.created_at,
    )


def _row_to_assignment(r) -> Assignment:
    return Assignment(
        id=str(r['assignment_id']),
        subject_id=str(r['subject_id']),
        subject_code=r['subject_code'],
        subject_name=r['subject_name'],
        section_id=str(r['section_id']),
        section_name=r['section_name'],
        program_id=str(r['program_id']) if r.get('program_id') else None,
        program_name=r['program_name'] or '',
        year_level=int(r['year_level'] or 0),
        instructor_id=str(r['instructor_id']),
        instructor_name=r['instructor_name'],
        day=r['day_of_week'],
        start_slot=int(r['start_slot']),
        duration=int(r['duration']),
        semester=int(r['semester']),
        academic_year=r['academic_year'],
        lecture_hours=int(r.get('lecture_hours') or 0),
        lab_hours=int(r.get('lab_hours') or 0),
        created_at=r['created_at'],
    )


class MySQLResultStore(ResultStore):

    def __init__(self, db_config):
        self.db_config = db_config

    def replace_all(self, assignments):
        rows = _with_ids(assignments)
        try:
            with db_transaction(self.db_config) as cursor:
                cursor.execute("DELETE FROM assignments")
                logger.info(f"Cleared {cursor.rowcount} previously stored assignment(s)")
                if rows:
                    cursor.executemany(_INSERT_ASSIGNMENT, [_assignment_row(a) for a in rows])
        except mysql.connector.Error as err:
            logger.error(f"Replacing stored schedule failed: {err}")
            raise PersistenceError(f"Schedule could not be saved: {err}") from err
        return rows

    def add_all(self, assignments):
        rows = _with_ids(assignments)
        if not rows:
            return rows
        try:
            with db_transaction(self.db_config) as cursor:
                cursor.executemany(_INSERT_ASSIGNMENT, [_assignment_row(a) for a in rows])
        except mysql.connector.Error as err:
            logger.error(f"Saving scoped schedule failed: {err}")
            raise PersistenceError(f"Schedule could not be saved: {err}") from err
        return rows

    def list(self, section_id=None, instructor_id=None, year_level=None):
        query = _SELECT_ASSIGNMENTS
        conditions = []
        params = []

        if section_id is not None:
            conditions.append("section_id = %s")
            params.append(section_id)
        if instructor_id is not None:
            conditions.append("instructor_id = %s")
            params.append(instructor_id)
        if year_level is not None:
            conditions.append("year_level = %s")
            params.append(int(year_level))

        if conditions:
            query += " WHERE " + " AND ".join(conditions)

        placeholders = ", ".join(["%s"] * len(DAYS))
        query += f" ORDER BY FIELD(day_of_week, {placeholders}), start_slot"
        params.extend(DAYS)

        with db_cursor(self.db_config, dictionary=True) as cursor:
            cursor.execute(query, tuple(params))
            rows = cursor.fetchall()
        return [_row_to_assignment(r) for r in rows]

    def get(self, assignment_id):
        with db_cursor(self.db_config, dictionary=True) as cursor:
            cursor.execute(_SELECT_ASSIGNMENTS + " WHERE assignment_id = %s", (assignment_id,))
            row = cursor.fetchone()
        if not row:
            raise AssignmentNotFound(f"Schedule item {assignment_id} not found")
        return _row_to_assignment(row)

    def update(self, assignment_id, changes):
        unknown = set(changes) - set(MOVABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        if not changes:
            return self.get(assignment_id)

        self.get(assignment_id)
        fields = list(changes)
        assignments = ", ".join(f"{_COLUMN_FOR_FIELD[f]} = %s" for f in fields)
        params = [changes[f] for f in fields] + [assignment_id]
        try:
            with db_transaction(self.db_config) as cursor:
                cursor.execute(f"UPDATE assignments SET {assignments} WHERE assignment_id = %s",
                               tuple(params))
        except mysql.connector.Error as err:
            logger.error(f"Updating schedule item {assignment_id} failed: {err}")
            raise PersistenceError(f"Schedule item could not be updated: {err}") from err
        return self.get(assignment_id)


class MemoryResultStore(ResultStore):

    def __init__(self, assignments=()):
        self._items: Dict[str, Assignment] = OrderedDict((a.id, a) for a in _with_ids(assignments))

    def replace_all(self, assignments):
        rows = _with_ids(assignments)
        self._items = OrderedDict((a.id, a) for a in rows)
        return rows

    def add_all(self, assignments):
        rows = _with_ids(assignments)
        items = OrderedDict(self._items)
        items.update((a.id, a) for a in rows)
        self._items = items
        return rows

    def list(self, section_id=None, instructor_id=None, year_level=None):
        rows = [
            a for a in self._items.values()
            if (section_id is None or a.section_id == section_id)
            and (instructor_id is None or a.instructor_id == instructor_id)
            and (year_level is None or a.year_level == int(year_level))
        ]
        return sorted(rows, key=lambda a: (DAYS.index(a.day) if a.day in DAYS else len(DAYS), a.start_slot))

    def get(self, assignment_id):
        try:
            return self._items[assignment_id]
        except KeyError:
            raise AssignmentNotFound(f"Schedule item {assignment_id} not found")

    def update(self, assignment_id, changes):
        unknown = set(changes) - set(MOVABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        current = self.get(assignment_id)
        updated = replace(current, **changes)
        self._items[assignment_id] = updated
        return updated


# ==================== APP WIRING ====================
def init_stores(app, catalog_store: Optional[CatalogStore] = None,
                result_store: Optional[ResultStore] = None):
    backend = app.config.get('STORE_BACKEND', 'mysql')
    role = app.config.get('TEACHING_ROLE', 'instructor')

    if catalog_store is None:
        if backend == 'memory':
            catalog_file = app.config.get('CATALOG_FILE')
            catalog_store = (MemoryCatalogStore.from_file(catalog_file, teaching_role=role)
                             if catalog_file else MemoryCatalogStore(teaching_role=role))
        else:
            catalog_store = MySQLCatalogStore(db_config_from(app.config), teaching_role=role)

    if result_store is None:
        result_store = MemoryResultStore() if backend == 'memory' else MySQLResultStore(db_config_from(app.config))

    app.extensions[EXTENSION_KEY] = {'catalog': catalog_store, 'results': result_store}
    logger.info(f"Stores ready: {type(catalog_store).__name__}, {type(result_store).__name__}")


def get_catalog_store() -> CatalogStore:
    return current_app.extensions[EXTENSION_KEY]['catalog']


def get_result_store() -> ResultStore:
    return current_app.extensions[EXTENSION_KEY]['results']
