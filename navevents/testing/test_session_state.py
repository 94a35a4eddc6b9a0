from navevents.models import AppState, DeviceOrientation, Location
from navevents.session_state import SessionState
from navevents.testing.stub_util import make_route


def make_session(capacity=40) -> SessionState:
    return SessionState(make_route(), 'session-1', 0, capacity)


def test_new_session_defaults():
    session = make_session()
    assert session.current_route is session.original_route
    assert session.departure_timestamp is None
    assert session.arrival_timestamp is None
    assert session.number_of_reroutes == 0
    assert session.terminated is False
    assert session.app_state == AppState.ACTIVE
    assert session.device_orientation == DeviceOrientation.UNKNOWN


def test_departure_is_set_once():
    session = make_session()
    assert session.mark_departed(100) is True
    assert session.mark_departed(200) is False
    assert session.departure_timestamp == 100


def test_arrival_is_set_once():
    session = make_session()
    assert session.mark_arrived(100) is True
    assert session.mark_arrived(200) is False
    assert session.arrival_timestamp == 100


def test_reroutes_only_count_when_reactive():
    session = make_session()
    session.record_reroute(make_route(request_identifier='a'), False, 1000)
    session.record_reroute(make_route(request_identifier='b'), True, 2000)
    assert session.number_of_reroutes == 1
    assert session.last_reroute_date == 2000
    assert session.current_route.request_identifier == 'b'
    assert session.original_route.request_identifier == 'request-1'


def test_seconds_since_last_reroute():
    session = make_session()
    assert session.seconds_since_last_reroute(5000) == -1
    session.record_reroute(make_route(), False, 1000)
    assert session.seconds_since_last_reroute(13400) == 12


def test_location_history_is_bounded_and_ordered():
    session = make_session(capacity=2)
    for ts in [1, 2, 3]:
        session.record_location(Location(0.0, 0.0, ts))
    assert [loc.timestamp for loc in session.past_locations] == [2, 3]


def test_locations_are_split_at_timestamp():
    session = make_session()
    for ts in [100, 200, 300]:
        session.record_location(Location(0.0, 0.0, ts))
    assert [loc.timestamp for loc in session.locations_before(200)] == [100, 200]
    assert [loc.timestamp for loc in session.locations_after(200)] == [300]


def test_percentages_are_full_with_no_elapsed_time():
    session = make_session()
    assert session.percent_time_in_portrait(0) == 100
    assert session.percent_time_in_foreground(0) == 100


def test_flat_orientations_are_not_counted():
    session = make_session()
    session.report_orientation_change(DeviceOrientation.LANDSCAPE_LEFT, 0)
    session.report_orientation_change(DeviceOrientation.FACE_UP, 1000)
    assert session.percent_time_in_portrait(50000) == 0
    assert session.time_in_landscape == 1000


def test_portrait_percentage_includes_current_orientation():
    session = make_session()
    session.report_orientation_change(DeviceOrientation.PORTRAIT_UPSIDE_DOWN, 0)
    session.report_orientation_change(DeviceOrientation.LANDSCAPE_RIGHT, 1000)
    assert session.percent_time_in_portrait(4000) == 25


def test_inactive_counts_as_background():
    session = make_session()
    session.report_app_state_change(AppState.INACTIVE, 1000)
    session.report_app_state_change(AppState.ACTIVE, 3000)
    assert session.percent_time_in_foreground(4000) == 50
    assert session.time_in_background == 2000
