import logging
from dataclasses import dataclass
from typing import Optional

from flask import Blueprint, current_app, jsonify, request

from .conflicts import has_instructor_conflict, has_section_conflict
from .errors import PreflightError
from .models import Assignment
from .stores import CatalogStore, ResultStore, get_catalog_store, get_result_store
from .time_grid import END_MARKER_SLOT, FIRST_SLOT, fits_in_grid, format_slot, normalize_day

logger = logging.getLogger(__name__)

schedules_bp = Blueprint('schedules', __name__, url_prefix='/api/schedule')

# The only fields a caller may change when moving an assignment
MOVE_FIELDS = ('day', 'start_slot', 'duration', 'instructor_id')

FILTER_TYPES = ('master', 'section', 'instructor', 'year')


@dataclass
class MoveResult:
    valid: bool
    reason: Optional[str] = None
    assignment: Optional[Assignment] = None
    status_code: int = 200


def _reject(reason, status_code=400):
    return MoveResult(valid=False, reason=reason, status_code=status_code)


def _as_int(value):
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def move_assignment(result_store: ResultStore, catalog_store: CatalogStore,
                    assignment_id: str, changes: dict,
                    check_section_conflicts: bool = False) -> MoveResult:
    """Validate and apply a move of one stored assignment.

    Fields not given keep their stored value. A rejected move leaves the
    stored record untouched.
    """
    unknown = sorted(set(changes) - set(MOVE_FIELDS))
    if unknown:
        return _reject(f"Unsupported field(s): {', '.join(unknown)}")

    current = result_store.get(assignment_id)

    day = normalize_day(changes.get('day', current.day))
    if day is None:
        return _reject(f"Invalid day: {changes.get('day')}")
    start_slot = _as_int(changes.get('start_slot', current.start_slot))
    duration = _as_int(changes.get('duration', current.duration))
    if start_slot is None or duration is None:
        return _reject("start_slot and duration must be integers")
    if start_slot < FIRST_SLOT or duration < 1:
        return _reject(f"start_slot must be at least {FIRST_SLOT} and duration at least 1")
    if not fits_in_grid(start_slot, duration):
        return _reject(f"Time exceeds closing limit ({format_slot(END_MARKER_SLOT)})")

    instructor_id = str(changes.get('instructor_id', current.instructor_id))
    instructor_name = current.instructor_name
    if instructor_id != current.instructor_id:
        instructor = catalog_store.load().instructors_by_id.get(instructor_id)
        if instructor is None:
            return _reject(f"Unknown instructor: {instructor_id}")
        instructor_name = instructor.name

    others = result_store.list()
    if has_instructor_conflict(others, instructor_id, day, start_slot, duration, ignore_id=assignment_id):
        return _reject("Conflict detected (Instructor)", status_code=409)
    if check_section_conflicts and has_section_conflict(
            others, current.section_id, day, start_slot, duration, ignore_id=assignment_id):
        return _reject("Conflict detected (Section)", status_code=409)

    updated = result_store.update(assignment_id, {
        'day': day,
        'start_slot': start_slot,
        'duration': duration,
        'instructor_id': instructor_id,
        'instructor_name': instructor_name,
    })
    logger.info(
        f"Moved schedule item {assignment_id} ({current.subject_code} {current.section_name}) "
        f"to {day} slot {start_slot} for {duration}h with {instructor_name}"
    )
    return MoveResult(valid=True, assignment=updated)


# ------------------------
# Routes
# ------------------------
@schedules_bp.route('', methods=['GET'])
@schedules_bp.route('/', methods=['GET'])
def list_schedule():
    filter_type = request.args.get('type', 'master')
    if filter_type not in FILTER_TYPES:
        raise PreflightError(f"Unknown filter type: {filter_type}")

    filters = {}
    if filter_type == 'section' and request.args.get('section_id'):
        filters['section_id'] = request.args['section_id']
    elif filter_type == 'instructor' and request.args.get('instructor_id'):
        filters['instructor_id'] = request.args['instructor_id']
    elif filter_type == 'year' and request.args.get('year'):
        year = _as_int(request.args['year'])
        if year is None:
            raise PreflightError("year must be an integer")
        filters['year_level'] = year

    schedule = get_result_store().list(**filters)
    return jsonify({'schedule': [a.to_dict() for a in schedule]})


@schedules_bp.route('/<assignment_id>', methods=['GET'])
def get_schedule_item(assignment_id):
    return jsonify({'item': get_result_store().get(assignment_id).to_dict()})


@schedules_bp.route('/<assignment_id>', methods=['PATCH'])
def update_schedule_item(assignment_id):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({'error': 'JSON object body required', 'valid': False}), 400

    result = move_assignment(
        get_result_store(), get_catalog_store(), assignment_id, payload,
        check_section_conflicts=current_app.config.get('MOVE_CHECKS_SECTION_CONFLICTS', False),
    )
    if not result.valid:
        logger.warning(f"Rejected move of schedule item {assignment_id}: {result.reason}")
        return jsonify({'error': result.reason, 'valid': False}), result.status_code
    return jsonify({'item': result.assignment.to_dict(), 'valid': True})
