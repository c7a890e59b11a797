from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from errors import DanglingReference, InvalidId
from models import Driver, Passenger, Trip
from state import get_dispatcher, get_lock


def _path_id(request: Request, name: str):
    raw = request.path_params[name]
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def passenger_json(passenger: Passenger):
    return {
        "id": passenger.id,
        "name": passenger.name,
        "trips": [t.id for t in passenger.trips],
        "net_expenditures": passenger.net_expenditures(),
    }


def driver_json(driver: Driver):
    return {
        "id": driver.id,
        "name": driver.name,
        "vehicle_id": driver.vehicle_id,
        "status": driver.status.value,
        "trips": [t.id for t in driver.trips],
        "average_rating": driver.average_rating(),
        "total_revenue": driver.total_revenue(),
    }


def trip_json(trip: Trip):
    return {
        "id": trip.id,
        "passenger_id": trip.passenger_id,
        "driver_id": trip.driver_id,
        "start_time": trip.start_time.isoformat(),
        "end_time": trip.end_time.isoformat() if trip.end_time else None,
        "cost": trip.cost,
        "rating": trip.rating,
        "duration_seconds": trip.duration().total_seconds(),
    }


async def get_passenger(request: Request):
    pid = _path_id(request, "passenger_id")
    if pid is None:
        return JSONResponse({"error": "invalid passenger id"}, status_code=400)
    passenger = get_dispatcher().find_passenger(pid)
    if not passenger:
        return JSONResponse({"error": "passenger not found"}, status_code=404)
    return JSONResponse(passenger_json(passenger))


async def get_driver(request: Request):
    did = _path_id(request, "driver_id")
    if did is None:
        return JSONResponse({"error": "invalid driver id"}, status_code=400)
    driver = get_dispatcher().find_driver(did)
    if not driver:
        return JSONResponse({"error": "driver not found"}, status_code=404)
    return JSONResponse(driver_json(driver))


async def available_driver(request: Request):
    driver = get_dispatcher().find_available_driver()
    if not driver:
        return JSONResponse({"error": "no driver available"}, status_code=404)
    return JSONResponse(driver_json(driver))


async def get_trip(request: Request):
    tid = _path_id(request, "trip_id")
    if tid is None:
        return JSONResponse({"error": "invalid trip id"}, status_code=400)
    trip = get_dispatcher().find_trip(tid)
    if not trip:
        return JSONResponse({"error": "trip not found"}, status_code=404)
    return JSONResponse(trip_json(trip))


async def request_trip(request: Request):
    try:
        payload = await request.json()
    except ValueError:
        return JSONResponse({"error": "body is not valid JSON"}, status_code=400)
    if not isinstance(payload, dict):
        return JSONResponse({"error": "body must be a JSON object"}, status_code=400)
    if "passenger_id" not in payload:
        return JSONResponse({"error": "missing passenger_id"}, status_code=400)
    lock = get_lock("dispatch")
    with lock:
        try:
            trip = get_dispatcher().request_trip(payload["passenger_id"])
        except InvalidId as exc:
            return JSONResponse({"error": exc.message}, status_code=400)
        except DanglingReference as exc:
            return JSONResponse({"error": exc.message}, status_code=404)
    if trip is None:
        return JSONResponse({"error": "no driver available"}, status_code=409)
    return JSONResponse(trip_json(trip), status_code=201)


routes = [
    Route("/passengers/{passenger_id}", get_passenger, methods=["GET"]),
    Route("/drivers/available", available_driver, methods=["GET"]),
    Route("/drivers/{driver_id}", get_driver, methods=["GET"]),
    Route("/trips/{trip_id}", get_trip, methods=["GET"]),
    Route("/trips", request_trip, methods=["POST"]),
]

app = Starlette(debug=False, routes=routes)
