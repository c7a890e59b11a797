"""
Tests for TripDispatcher: loading, the connect pass, lookups and request_trip.
"""
import os
import shutil
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import state
from dispatcher import TripDispatcher
from errors import DanglingReference, InvalidId
from loader import parse_time
from models import Driver, DriverStatus, Passenger, Trip

TEST_DATA_DIRECTORY = os.path.join(os.path.dirname(__file__), "test_data")


@pytest.fixture
def dispatcher():
    return TripDispatcher(directory=TEST_DATA_DIRECTORY)


def copy_test_data(tmp_path):
    for name in ("passengers.csv", "drivers.csv", "trips.csv"):
        shutil.copy(os.path.join(TEST_DATA_DIRECTORY, name), tmp_path / name)
    return tmp_path


# ────────────────────────── initializer ─────────────────────────────────────

def test_collections_are_lists(dispatcher):
    assert isinstance(dispatcher.trips, list)
    assert isinstance(dispatcher.passengers, list)
    assert isinstance(dispatcher.drivers, list)
    assert len(dispatcher.passengers) == 8
    assert len(dispatcher.drivers) == 3
    assert len(dispatcher.trips) == 5


def test_loads_development_data_by_default():
    path = os.path.join(state.DATA_DIR, "trips.csv")
    with open(path) as f:
        trip_count = sum(1 for _ in f) - 1
    dispatcher = TripDispatcher()
    assert len(dispatcher.trips) == trip_count


def test_repr_shows_counts(dispatcher):
    assert "5 trips" in repr(dispatcher)
    assert "3 drivers" in repr(dispatcher)
    assert "8 passengers" in repr(dispatcher)


def test_dangling_passenger_fails_load(tmp_path):
    copy_test_data(tmp_path)
    with open(tmp_path / "trips.csv", "a") as f:
        f.write("6,2,42,2018-08-05 08:58:00 -0700,2018-08-05 09:30:00 -0700,32,1\n")
    with pytest.raises(DanglingReference):
        TripDispatcher(directory=str(tmp_path))


def test_dangling_driver_fails_load(tmp_path):
    copy_test_data(tmp_path)
    with open(tmp_path / "trips.csv", "a") as f:
        f.write("6,42,2,2018-08-05 08:58:00 -0700,2018-08-05 09:30:00 -0700,32,1\n")
    with pytest.raises(DanglingReference):
        TripDispatcher(directory=str(tmp_path))


# ────────────────────────── passengers ──────────────────────────────────────

def test_find_passenger_bad_id(dispatcher):
    with pytest.raises(InvalidId):
        dispatcher.find_passenger(0)


def test_find_passenger(dispatcher):
    assert isinstance(dispatcher.find_passenger(2), Passenger)


def test_find_passenger_missing_is_none(dispatcher):
    assert dispatcher.find_passenger(999) is None


def test_find_passenger_returns_same_object(dispatcher):
    assert dispatcher.find_passenger(3) is dispatcher.find_passenger(3)


def test_passengers_loaded_in_order(dispatcher):
    first = dispatcher.passengers[0]
    last = dispatcher.passengers[-1]
    assert first.name == "Passenger 1"
    assert first.id == 1
    assert last.name == "Passenger 8"
    assert last.id == 8


def test_connects_trips_and_passengers(dispatcher):
    for trip in dispatcher.trips:
        assert trip.passenger is not None
        assert trip.passenger.id == trip.passenger_id
        assert trip.passenger.trips.count(trip) == 1


def test_passenger_with_two_trips(dispatcher):
    passenger = dispatcher.find_passenger(1)
    assert [t.id for t in passenger.trips] == [1, 4]
    assert passenger.net_expenditures() == 18


# ────────────────────────── drivers ─────────────────────────────────────────

def test_find_driver_bad_id(dispatcher):
    with pytest.raises(InvalidId):
        dispatcher.find_driver(0)


def test_find_driver(dispatcher):
    assert isinstance(dispatcher.find_driver(2), Driver)


def test_find_driver_returns_same_object(dispatcher):
    assert dispatcher.find_driver(2) is dispatcher.find_driver(2)


def test_drivers_loaded_in_order(dispatcher):
    first = dispatcher.drivers[0]
    last = dispatcher.drivers[-1]
    assert first.name == "Driver 1 (unavailable)"
    assert first.id == 1
    assert first.status == DriverStatus.UNAVAILABLE
    assert last.name == "Driver 3 (no trips)"
    assert last.id == 3
    assert last.status == DriverStatus.AVAILABLE
    assert last.trips == []


def test_connects_trips_and_drivers(dispatcher):
    for trip in dispatcher.trips:
        assert trip.driver is not None
        assert trip.driver.id == trip.driver_id
        assert trip.driver.trips.count(trip) == 1


# ────────────────────────── trips ───────────────────────────────────────────

def test_trips_loaded(dispatcher):
    first = dispatcher.trips[0]
    last = dispatcher.trips[-1]
    assert first.id == 1
    assert first.driver_id == 1
    assert first.passenger_id == 1
    assert first.start_time == parse_time("2018-05-25 11:52:40 -0700")
    assert first.end_time == parse_time("2018-05-25 12:25:00 -0700")
    assert first.cost == 10
    assert first.rating == 5
    assert last.id == 5
    assert last.driver_id == 2
    assert last.passenger_id == 6
    assert last.start_time == parse_time("2018-08-05 08:58:00 -0700")
    assert last.end_time == parse_time("2018-08-05 09:30:00 -0700")
    assert last.cost == 32
    assert last.rating == 1


def test_first_trip_reachable_from_passenger(dispatcher):
    trip = dispatcher.trips[0]
    assert trip in dispatcher.find_passenger(1).trips
    assert trip.cost == 10


def test_find_trip(dispatcher):
    assert dispatcher.find_trip(5) is dispatcher.trips[-1]
    assert dispatcher.find_trip(50) is None


# ────────────────────────── request_trip ────────────────────────────────────

def test_find_available_driver(dispatcher):
    assert dispatcher.find_available_driver().name == "Driver 2"


def test_no_available_driver(dispatcher):
    for driver in dispatcher.drivers:
        driver.status = DriverStatus.UNAVAILABLE
    assert dispatcher.find_available_driver() is None
    assert dispatcher.request_trip(8) is None
    assert len(dispatcher.trips) == 5


def test_request_trip(dispatcher):
    driver = dispatcher.find_available_driver()
    passenger = dispatcher.find_passenger(8)
    trip = dispatcher.request_trip(8)

    assert isinstance(trip, Trip)
    assert len(dispatcher.trips) == 6
    assert len(dispatcher.passengers) == 8
    assert trip.id == 6
    assert trip.driver is driver
    assert trip.passenger is passenger
    assert trip.driver.status == DriverStatus.UNAVAILABLE
    assert trip.end_time is None
    assert trip.rating is None
    assert trip.cost is None
    assert trip.start_time.tzinfo is not None
    assert driver.trips[-1] is trip
    assert passenger.trips == [trip]
    assert dispatcher.trips[-1] is trip


def test_request_trip_moves_to_next_driver(dispatcher):
    first = dispatcher.request_trip(2)
    second = dispatcher.request_trip(3)
    assert first.driver.id == 2
    assert second.driver.id == 3
    assert second.id == first.id + 1
    assert dispatcher.request_trip(4) is None


def test_request_trip_registers_new_trip_when_ids_have_gaps(tmp_path):
    copy_test_data(tmp_path)
    (tmp_path / "trips.csv").write_text(
        "id,driver_id,passenger_id,start_time,end_time,cost,rating\n"
        "1,1,8,2018-05-25 11:52:40 -0700,2018-05-25 12:25:00 -0700,10,5\n"
        "3,2,8,2018-08-05 08:58:00 -0700,2018-08-05 09:30:00 -0700,32,1\n"
    )
    dispatcher = TripDispatcher(directory=str(tmp_path))
    loaded = dispatcher.find_trip(3)
    passenger = dispatcher.find_passenger(8)

    trip = dispatcher.request_trip(8)

    assert trip.id == 3
    assert len(passenger.trips) == 3
    assert passenger.trips[-1] is trip
    assert trip.driver.trips[-1] is trip
    assert dispatcher.trips[-1] is trip
    assert dispatcher.find_trip(3) is loaded


def test_find_trip_sees_requested_trip(dispatcher):
    trip = dispatcher.request_trip(8)
    assert dispatcher.find_trip(6) is trip


def test_request_trip_unknown_passenger(dispatcher):
    with pytest.raises(DanglingReference):
        dispatcher.request_trip(999)
    assert len(dispatcher.trips) == 5
    assert dispatcher.find_driver(2).status == DriverStatus.AVAILABLE


def test_request_trip_bad_passenger_id(dispatcher):
    with pytest.raises(InvalidId):
        dispatcher.request_trip(-1)
