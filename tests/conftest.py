import datetime as dt
from concurrent.futures import Future

import pytest
import requests

from clinic_calendar import create_app
from clinic_calendar.calendar.events import AppointmentEvent

UTC = dt.timezone.utc
DAY = dt.date(2024, 3, 13)  # a Wednesday


def at(hour, minute=0, day=DAY):
    return dt.datetime.combine(day, dt.time(hour, minute), tzinfo=UTC)


def make_event(event_id, start, minutes=30, **fields):
    defaults = {
        "patient_name": f"Patient {event_id}",
        "practitioner": "dr_lee",
        "appointment_type": "Lesion Review",
    }
    defaults.update(fields)
    return AppointmentEvent(id=event_id, start=start, end=start + dt.timedelta(minutes=minutes), **defaults)


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("CLINIC_DB_PATH", str(tmp_path / "store.db"))
    monkeypatch.delenv("CLINIC_PRACTITIONERS", raising=False)
    monkeypatch.delenv("CLINIC_APPOINTMENT_TYPES", raising=False)
    app = create_app({"TESTING": True, "RATELIMIT_ENABLED": False})
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


class _FlaskResponse:
    """The slice of ``requests.Response`` the store client reads."""

    def __init__(self, response):
        self.status_code = response.status_code
        self.text = response.get_data(as_text=True)
        self._json = response.get_json(silent=True)

    def json(self):
        if self._json is None:
            raise ValueError("no JSON body")
        return self._json


class FlaskHTTP:
    """Route ``requests.Session.request`` calls into a Flask test client."""

    def __init__(self, app, base_url="http://store.test"):
        self.client = app.test_client()
        self.base_url = base_url
        self.calls = []

    def request(self, method, url, timeout=None, json=None, params=None):
        path = url[len(self.base_url):] if url.startswith(self.base_url) else url
        self.calls.append((method, path))
        response = self.client.open(path, method=method, json=json, query_string=params)
        return _FlaskResponse(response)


class DownHTTP:
    """An HTTP session whose every call fails to connect."""

    def __init__(self):
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url))
        raise requests.ConnectionError("store unreachable")


class FlakyHTTP(FlaskHTTP):
    """A FlaskHTTP whose connection can be cut and restored."""

    def __init__(self, app, base_url="http://store.test"):
        super().__init__(app, base_url)
        self.down = False

    def request(self, method, url, timeout=None, json=None, params=None):
        if self.down:
            self.calls.append((method, "<down>"))
            raise requests.ConnectionError("store unreachable")
        return super().request(method, url, timeout=timeout, json=json, params=params)


class InlineExecutor:
    """Run submitted work immediately on the calling thread."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


@pytest.fixture
def store_http(app):
    return FlaskHTTP(app)


@pytest.fixture
def inline_executor():
    return InlineExecutor()
