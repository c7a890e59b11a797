import os
import threading

DATA_DIR = os.environ.get(
    "RIDESHARE_DATA_DIR", os.path.join(os.path.dirname(__file__), "support")
)

# Application-level locks keyed by a simple name (e.g., dispatch)
locks = {}
locks_lock = threading.Lock()

_dispatcher = None


def get_lock(name: str):
    with locks_lock:
        if name not in locks:
            locks[name] = threading.Lock()
        return locks[name]


def get_dispatcher():
    """Shared dispatcher, loaded from DATA_DIR on first use."""
    global _dispatcher
    with get_lock("init"):
        if _dispatcher is None:
            from dispatcher import TripDispatcher

            _dispatcher = TripDispatcher(DATA_DIR)
        return _dispatcher


def reset_dispatcher():
    global _dispatcher
    with get_lock("init"):
        _dispatcher = None
