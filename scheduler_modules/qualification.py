from typing import Mapping, Optional

from .models import Department, Instructor, Program, Subject

UNKNOWN_DEPARTMENT = 'Unknown'


def subject_department_id(subject: Subject, programs_by_id: Mapping[str, Program]) -> Optional[str]:
    if not subject.program_id:
        return None
    program = programs_by_id.get(subject.program_id)
    if program is None:
        return None
    return program.department_id or None


def is_qualified(instructor: Instructor, subject: Subject, programs_by_id: Mapping[str, Program]) -> bool:
    """An instructor may teach a subject when they belong to the department
    that owns the subject's program. Anything unresolvable fails closed."""
    department_id = subject_department_id(subject, programs_by_id)
    if department_id is None:
        return False
    if not instructor.department_ids:
        return False
    return department_id in instructor.department_ids


def department_name_for(subject: Subject,
                        programs_by_id: Mapping[str, Program],
                        departments_by_id: Mapping[str, Department]) -> str:
    department_id = subject_department_id(subject, programs_by_id)
    department = departments_by_id.get(department_id) if department_id else None
    return department.name if department else UNKNOWN_DEPARTMENT
