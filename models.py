from datetime import datetime, timedelta
from enum import Enum
from typing import ClassVar, Dict, List, Optional

from pydantic import PrivateAttr
from sqlmodel import SQLModel

from errors import InvalidId, InvalidRating, InvalidTimeRange, MissingAssociation
from loader import load_records, parse_time, require
from pricing import driver_revenue


class Record(SQLModel):
    """Entity with a positive integer id, loadable from a CSV file."""

    FILE_NAME: ClassVar[str] = ""

    id: int

    def __init__(self, **data):
        super().__init__(**data)
        self.validate_id(self.id)

    def __setattr__(self, name, value):
        if name == "id" and "id" in self.__dict__:
            raise AttributeError(f"{type(self).__name__}.id is read-only")
        super().__setattr__(name, value)

    # Identity is type + id. Trips and their passenger/driver point at each
    # other, so comparing private state would recurse.
    def __eq__(self, other):
        if not isinstance(other, Record):
            return NotImplemented
        return type(self) is type(other) and self.id == other.id

    def __hash__(self):
        return hash((type(self).__name__, self.id))

    @classmethod
    def validate_id(cls, id) -> None:
        if isinstance(id, bool) or not isinstance(id, int) or id <= 0:
            raise InvalidId(f"{cls.__name__} id must be a positive integer, got {id!r}", {"id": id})

    @classmethod
    def from_csv(cls, row: Dict[str, Optional[str]]) -> "Record":
        raise NotImplementedError

    @classmethod
    def load_all(cls, directory: str) -> list:
        return load_records(directory, cls.FILE_NAME, cls.from_csv)


class _TripHolder(Record):
    _trips: list = PrivateAttr(default_factory=list)

    @property
    def trips(self) -> List["Trip"]:
        return self._trips

    def add_trip(self, trip: "Trip") -> None:
        # same object already registered: connect may run more than once.
        # Checked by identity, a new trip may reuse an id from a gapped file.
        if any(t is trip for t in self._trips):
            return
        self._trips.append(trip)


class Passenger(_TripHolder):
    FILE_NAME: ClassVar[str] = "passengers.csv"

    name: str
    phone_number: Optional[str] = None

    @classmethod
    def from_csv(cls, row):
        return cls(id=require(row, "id"), name=require(row, "name"), phone_number=row.get("phone_num"))

    def net_expenditures(self) -> float:
        return sum(t.cost for t in self._trips if t.cost is not None)

    def total_time_spent(self) -> timedelta:
        return sum((t.duration() for t in self._trips), timedelta())


class DriverStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"


class Driver(_TripHolder):
    FILE_NAME: ClassVar[str] = "drivers.csv"

    name: str
    vehicle_id: str
    status: DriverStatus = DriverStatus.AVAILABLE

    @classmethod
    def from_csv(cls, row):
        return cls(
            id=require(row, "id"),
            name=require(row, "name"),
            vehicle_id=require(row, "vehicle_id"),
            status=require(row, "status"),
        )

    def start_trip(self, trip: "Trip") -> None:
        self.status = DriverStatus.UNAVAILABLE
        self.add_trip(trip)

    def average_rating(self) -> float:
        ratings = [t.rating for t in self._trips if t.rating is not None]
        if not ratings:
            return 0
        return sum(ratings) / len(ratings)

    def total_revenue(self) -> float:
        return round(sum(driver_revenue(t.cost) for t in self._trips if t.cost is not None), 2)


def _is_aware(t: datetime) -> bool:
    return t.tzinfo is not None and t.utcoffset() is not None


class Trip(Record):
    """One ride of a passenger with a driver.

    Only the foreign keys are fields. ``passenger`` and ``driver`` are cached
    lookups filled either at construction or by ``connect``; they stay None
    for a trip loaded from CSV until the dispatcher links it.
    """

    FILE_NAME: ClassVar[str] = "trips.csv"

    passenger_id: int
    driver_id: int
    start_time: datetime
    end_time: Optional[datetime] = None  # None while in progress
    cost: Optional[float] = None
    rating: Optional[int] = None

    _passenger: Optional[Passenger] = PrivateAttr(default=None)
    _driver: Optional[Driver] = PrivateAttr(default=None)

    def __init__(self, passenger: Optional[Passenger] = None, driver: Optional[Driver] = None, **data):
        if passenger is not None:
            data["passenger_id"] = passenger.id
        elif data.get("passenger_id") is None:
            raise MissingAssociation("passenger or passenger_id is required")
        if driver is not None:
            data["driver_id"] = driver.id
        elif data.get("driver_id") is None:
            raise MissingAssociation("driver or driver_id is required")

        super().__init__(**data)
        Passenger.validate_id(self.passenger_id)
        Driver.validate_id(self.driver_id)

        if self.end_time is not None and _is_aware(self.start_time) != _is_aware(self.end_time):
            raise InvalidTimeRange(
                "start and end time must both carry a UTC offset or both lack one",
                {"start_time": self.start_time, "end_time": self.end_time},
            )
        if self.end_time is not None and self.end_time < self.start_time:
            raise InvalidTimeRange(
                f"start time {self.start_time} is later than end time {self.end_time}",
                {"start_time": self.start_time, "end_time": self.end_time},
            )
        if self.rating is not None and not 1 <= self.rating <= 5:
            raise InvalidRating(f"invalid rating {self.rating}", {"rating": self.rating})

        self._passenger = passenger
        self._driver = driver

    @classmethod
    def from_csv(cls, row):
        end_time = row.get("end_time")
        return cls(
            id=require(row, "id"),
            passenger_id=require(row, "passenger_id"),
            driver_id=require(row, "driver_id"),
            start_time=parse_time(require(row, "start_time")),
            end_time=parse_time(end_time) if end_time is not None else None,
            cost=row.get("cost"),
            rating=row.get("rating"),
        )

    @property
    def passenger(self) -> Optional[Passenger]:
        return self._passenger

    @property
    def driver(self) -> Optional[Driver]:
        return self._driver

    @property
    def is_in_progress(self) -> bool:
        return self.end_time is None

    def connect(self, passenger: Passenger, driver: Driver) -> None:
        self._passenger = passenger
        self._driver = driver
        driver.add_trip(self)
        passenger.add_trip(self)

    def duration(self) -> timedelta:
        if self.end_time is None:
            return timedelta()
        return self.end_time - self.start_time
