import pytest

from scheduler_modules.stores import MemoryCatalogStore

from conftest import make_assignment


@pytest.fixture
def seeded(result_store):
    result_store.replace_all([
        make_assignment('a1', instructor_id='i-1', section_id='bscs-1a', day='Mon', start_slot=1),
        make_assignment('a2', instructor_id='i-1', section_id='bscs-1b', section_name='BSCS-1B',
                        day='Mon', start_slot=5),
        make_assignment('a3', instructor_id='i-2', instructor_name='Ben Reyes', section_id='bscs-1a',
                        day='Tue', start_slot=1, year_level=2),
    ])
    return result_store


# ----------------------------------------------
# Generation
# ----------------------------------------------
def test_generate_returns_schedule_and_stats(client, result_store):
    response = client.post('/api/schedule/generate', json={'semester': 1, 'seed': 42})

    assert response.status_code == 200
    data = response.get_json()
    stats = data['stats']
    assert stats['total_sections'] == 18
    assert stats['total_subject_section_pairs'] == 90
    assert stats['total_assigned'] + stats['total_unassigned'] == 90
    assert stats['total_assigned'] == len(data['schedule']) == len(result_store.list())
    assert all(item['id'] for item in data['schedule'])
    assert set(stats['workload_summary']) >= {'mean_hours', 'max_hours', 'min_hours'}


def test_generate_single_section(client, result_store):
    response = client.post('/api/schedule/generate', json={'section_id': 'bsit-2b', 'seed': 1})

    assert response.status_code == 200
    assert response.get_json()['stats']['total_sections'] == 1
    assert {a.section_id for a in result_store.list()} <= {'bsit-2b'}


def test_generate_on_empty_catalog(app, client, result_store):
    app.extensions['timetable']['catalog'] = MemoryCatalogStore()
    response = client.post('/api/schedule/generate', json={})

    assert response.status_code == 400
    assert response.get_json()['error'] == "No subjects found. Please create subjects first."
    assert result_store.list() == []


@pytest.mark.parametrize("payload", [{'semester': 3}, {'seed': 'abc'}, {'section_ids': 'bscs-1a'}])
def test_generate_rejects_bad_parameters(client, payload):
    assert client.post('/api/schedule/generate', json=payload).status_code == 400


# ----------------------------------------------
# Reading
# ----------------------------------------------
def test_master_schedule_is_ordered(client, seeded):
    data = client.get('/api/schedule').get_json()
    assert [item['id'] for item in data['schedule']] == ['a1', 'a2', 'a3']


@pytest.mark.parametrize("query,expected", [
    ('type=section&section_id=bscs-1a', ['a1', 'a3']),
    ('type=instructor&instructor_id=i-2', ['a3']),
    ('type=year&year=2', ['a3']),
])
def test_filtered_schedule(client, seeded, query, expected):
    data = client.get(f'/api/schedule?{query}').get_json()
    assert [item['id'] for item in data['schedule']] == expected


def test_unknown_filter_type(client, seeded):
    assert client.get('/api/schedule?type=room').status_code == 400


def test_get_item(client, seeded):
    item = client.get('/api/schedule/a3').get_json()['item']
    assert (item['day'], item['start_slot'], item['end_slot']) == ('Tue', 1, 4)
    assert client.get('/api/schedule/missing').status_code == 404


# ----------------------------------------------
# Moving
# ----------------------------------------------
def test_move_to_free_time(client, seeded):
    response = client.patch('/api/schedule/a1', json={'day': 'wednesday', 'start_slot': 9})

    assert response.status_code == 200
    item = response.get_json()['item']
    assert (item['day'], item['start_slot'], item['duration']) == ('Wed', 9, 3)
    assert seeded.get('a1').day == 'Wed'


def test_move_past_closing_time(client, seeded):
    response = client.patch('/api/schedule/a1', json={'start_slot': 13})

    assert response.status_code == 400
    assert response.get_json() == {'error': "Time exceeds closing limit (9:00 PM)", 'valid': False}
    assert seeded.get('a1').start_slot == 1


def test_move_onto_instructor_conflict(client, seeded):
    response = client.patch('/api/schedule/a1', json={'start_slot': 6})

    assert response.status_code == 409
    assert response.get_json()['error'] == "Conflict detected (Instructor)"


def test_move_may_touch_own_block(client, seeded):
    response = client.patch('/api/schedule/a1', json={'start_slot': 2})
    assert response.status_code == 200


def test_move_rejects_unsupported_fields(client, seeded):
    response = client.patch('/api/schedule/a1', json={'subject_code': 'HACK'})
    assert response.status_code == 400
    assert seeded.get('a1').subject_code == 'CS101'


def test_move_requires_json_object(client, seeded):
    assert client.patch('/api/schedule/a1', json=[1, 2]).status_code == 400


def test_move_to_another_instructor(client, seeded):
    response = client.patch('/api/schedule/a2', json={'instructor_id': 'i-3'})

    assert response.status_code == 200
    assert response.get_json()['item']['instructor_name'] == 'Carla Diaz'
    assert client.patch('/api/schedule/a2', json={'instructor_id': 'nobody'}).status_code == 400


def test_section_conflicts_checked_when_enabled(app, client, seeded):
    # a3 is taught by i-2, so only the section clash with a1 remains
    move = {'day': 'Mon', 'start_slot': 2}
    app.config['MOVE_CHECKS_SECTION_CONFLICTS'] = True
    response = client.patch('/api/schedule/a3', json=move)
    assert response.status_code == 409
    assert response.get_json()['error'] == "Conflict detected (Section)"

    app.config['MOVE_CHECKS_SECTION_CONFLICTS'] = False
    assert client.patch('/api/schedule/a3', json=move).status_code == 200


# ----------------------------------------------
# Conflict audit and CLI
# ----------------------------------------------
def test_conflict_audit(client, seeded):
    assert client.get('/api/conflicts/').get_json()['total'] == 0

    seeded.update('a3', {'day': 'Mon', 'start_slot': 2})
    data = client.get('/api/conflicts/').get_json()
    assert data['total'] == 1
    assert data['conflicts'][0]['conflict_type'] == 'Section Double Booking'


def test_generate_command(app, result_store):
    result = app.test_cli_runner().invoke(args=['generate', '--semester', '2', '--seed', '5'])

    assert result.exit_code == 0, result.output
    assert "of 90 pairs" in result.output
    assert all(a.semester == 2 for a in result_store.list())


def test_generate_command_reports_preflight(app):
    app.extensions['timetable']['catalog'] = MemoryCatalogStore()
    result = app.test_cli_runner().invoke(args=['generate'])

    assert result.exit_code != 0
    assert "No subjects found" in result.output
