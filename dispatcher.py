import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

import state
from errors import DanglingReference
from models import Driver, DriverStatus, Passenger, Trip

logger = logging.getLogger(__name__)


class TripDispatcher:
    """Loads passengers, trips and drivers, links them, and hands out drivers.

    Entities are kept in load order and indexed by id; a trip resolves its
    passenger and driver through those indexes during the connect pass.
    Not thread-safe: callers serialize ``request_trip`` themselves.
    """

    def __init__(self, directory: Optional[str] = None):
        if directory is None:
            directory = state.DATA_DIR
        self.directory = directory
        self.passengers: List[Passenger] = Passenger.load_all(directory)
        self.trips: List[Trip] = Trip.load_all(directory)
        self.drivers: List[Driver] = Driver.load_all(directory)
        self._passengers_by_id: Dict[int, Passenger] = {p.id: p for p in self.passengers}
        self._drivers_by_id: Dict[int, Driver] = {d.id: d for d in self.drivers}
        self._trips_by_id: Dict[int, Trip] = {}
        for trip in self.trips:
            self._trips_by_id.setdefault(trip.id, trip)
        self._connect_trips()
        logger.info(
            "loaded %d passengers, %d drivers, %d trips from %s",
            len(self.passengers), len(self.drivers), len(self.trips), directory,
        )

    def __repr__(self):
        return (
            f"<{type(self).__name__} {len(self.trips)} trips, "
            f"{len(self.drivers)} drivers, {len(self.passengers)} passengers>"
        )

    def find_passenger(self, id) -> Optional[Passenger]:
        Passenger.validate_id(id)
        return self._passengers_by_id.get(id)

    def find_driver(self, id) -> Optional[Driver]:
        Driver.validate_id(id)
        return self._drivers_by_id.get(id)

    def find_trip(self, id) -> Optional[Trip]:
        Trip.validate_id(id)
        return self._trips_by_id.get(id)

    def find_available_driver(self) -> Optional[Driver]:
        for driver in self.drivers:
            if driver.status == DriverStatus.AVAILABLE:
                return driver
        return None

    def request_trip(self, passenger_id: int) -> Optional[Trip]:
        """Start a trip for ``passenger_id`` with the first available driver.

        Returns None when every driver is busy. Raises DanglingReference for an
        unknown passenger before any state changes.
        """
        driver = self.find_available_driver()
        if driver is None:
            logger.warning("no driver available for passenger %s", passenger_id)
            return None

        passenger = self.find_passenger(passenger_id)
        if passenger is None:
            raise DanglingReference(
                f"no passenger with id {passenger_id}", {"passenger_id": passenger_id}
            )

        trip = Trip(
            id=len(self.trips) + 1,
            driver=driver,
            passenger=passenger,
            start_time=datetime.now(timezone.utc),
            end_time=None,
            cost=None,
            rating=None,
        )
        driver.start_trip(trip)
        passenger.add_trip(trip)
        self.trips.append(trip)
        # a generated id can repeat one from a gapped file; the loaded trip keeps it
        self._trips_by_id.setdefault(trip.id, trip)
        logger.info("trip %d: driver %d assigned to passenger %d", trip.id, driver.id, passenger.id)
        return trip

    def _connect_trips(self) -> None:
        for trip in self.trips:
            passenger = self.find_passenger(trip.passenger_id)
            if passenger is None:
                raise DanglingReference(
                    f"trip {trip.id} references unknown passenger {trip.passenger_id}",
                    {"trip_id": trip.id, "passenger_id": trip.passenger_id},
                )
            driver = self.find_driver(trip.driver_id)
            if driver is None:
                raise DanglingReference(
                    f"trip {trip.id} references unknown driver {trip.driver_id}",
                    {"trip_id": trip.id, "driver_id": trip.driver_id},
                )
            trip.connect(passenger, driver)
