import pytest

from app import create_app
from scheduler_modules.models import (
    Assignment, Department, Instructor, Program, Section, Subject,
)
from scheduler_modules.stores import MemoryCatalogStore, MemoryResultStore

IICT = Department(id='d-iict', name='Institute of Information and Communication Technology', code='IICT')
IBOA = Department(id='d-iboa', name='Institute of Business and Office Administration', code='IBOA')

BSCS = Program(id='p-bscs', name='BS Computer Science', code='BSCS', department_id='d-iict')
BSIT = Program(id='p-bsit', name='BS Information Technology', code='BSIT', department_id='d-iict')
BSBA = Program(id='p-bsba', name='BS Business Administration', code='BSBA', department_id='d-iboa')
NO_DEPT = Program(id='p-nodept', name='Undeclared', code='UND', department_id=None)


def subject(code, program_id='p-bscs', year=1, semester=1, lecture=3, lab=0, total=0, name=None):
    return Subject(id=f"s-{program_id}-{code}", code=code, name=name or f"Subject {code}",
                   program_id=program_id, year_level=year, semester=semester,
                   lecture_hours=lecture, lab_hours=lab, total_hours=total)


def section(sid, program_id='p-bscs', year=1, name=None):
    return Section(id=sid, name=name or sid.upper(), program_id=program_id, year_level=year)


def instructor(iid, *departments, name=None, role='instructor'):
    return Instructor(id=iid, name=name or f"Instructor {iid}",
                      department_ids=frozenset(departments), role=role)


def make_assignment(aid, **overrides):
    fields = dict(
        id=aid, subject_id='s-1', subject_code='CS101', subject_name='Intro',
        section_id='sec-1a', section_name='BSCS-1A', program_id='p-bscs',
        program_name='BS Computer Science', year_level=1,
        instructor_id='i-1', instructor_name='Ana Cruz',
        day='Mon', start_slot=1, duration=3, semester=1, academic_year='2024-2025',
    )
    fields.update(overrides)
    return Assignment(**fields)


def campus_catalog():
    """Two departments, three programs, several sections per year and more
    teaching demand than the staff can cover."""
    subjects = []
    sections = []
    for program in (BSCS, BSIT, BSBA):
        for year in (1, 2):
            for n in range(5):
                lab = 2 if n % 2 else 0
                subjects.append(subject(f"{program.code}{year}0{n}", program.id, year, 1,
                                        lecture=3, lab=lab))
                subjects.append(subject(f"{program.code}{year}5{n}", program.id, year, 2,
                                        lecture=3, lab=0))
            for letter in 'ABC':
                sections.append(section(f"{program.code.lower()}-{year}{letter.lower()}",
                                        program.id, year, name=f"{program.code}-{year}{letter}"))

    instructors = [
        instructor('i-1', 'd-iict', name='Ana Cruz'),
        instructor('i-2', 'd-iict', name='Ben Reyes'),
        instructor('i-3', 'd-iict', name='Carla Diaz'),
        instructor('i-4', 'd-iict', 'd-iboa', name='Dan Lim'),
        instructor('i-5', 'd-iboa', name='Eva Santos'),
        instructor('i-6', 'd-iboa', name='Fe Ramos'),
        instructor('i-7', name='Gil Tan'),
        instructor('a-1', 'd-iict', name='Admin User', role='admin'),
    ]
    return MemoryCatalogStore(subjects=subjects, sections=sections, instructors=instructors,
                              programs=[BSCS, BSIT, BSBA], departments=[IICT, IBOA])


@pytest.fixture
def catalog_store():
    return campus_catalog()


@pytest.fixture
def result_store():
    return MemoryResultStore()


@pytest.fixture
def app(catalog_store, result_store):
    return create_app(
        config={'TESTING': True, 'STORE_BACKEND': 'memory', 'LOG_LEVEL': 'WARNING'},
        catalog_store=catalog_store,
        result_store=result_store,
    )


@pytest.fixture
def client(app):
    return app.test_client()
