"""Vehicle Docs API client.

This module wraps the Vehicle Docs REST API with the ``requests``
library.  It is meant for scripts and front‑ends that want to talk to
the service without building URLs and headers by hand.

The client exposes one method per endpoint:

* :meth:`VehicleDocsAPI.signup` / :meth:`VehicleDocsAPI.sign_in` – accounts.
* :meth:`VehicleDocsAPI.get_profile` / :meth:`VehicleDocsAPI.update_profile`.
* vehicle CRUD, document listing, upload, deletion and signed URLs.
* :meth:`VehicleDocsAPI.get_history` and :meth:`VehicleDocsAPI.get_stats`.

Besides the raw calls the module offers :func:`login` (sign in, then
fetch the profile with a short bounded retry while the new session
settles), :func:`build_notifications` (turn vehicles into expiry
alerts) and :class:`NotificationPoller`, which refreshes those alerts
in a background thread.

Errors are raised as :class:`ApiError`; a ``401`` is raised as
:class:`AuthError` so callers can send the user back to the login
screen.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar

import requests


logger = logging.getLogger(__name__)

T = TypeVar("T")

NOTIFICATION_TITLES = {
    "insurance": ("Insurance expiring", "Insurance expired"),
    "inspection": ("Inspection due", "Inspection expired"),
    "taxes": ("Taxes due", "Taxes overdue"),
}


class ApiError(Exception):
    """Raised when the API answers with an error or cannot be reached.

    Attributes:
        status_code: HTTP status, or ``None`` for network failures.
        message: Human readable message taken from the ``error`` field.
    """

    def __init__(self, status_code: Optional[int], message: str) -> None:
        super().__init__(f"{status_code}: {message}" if status_code else message)
        self.status_code = status_code
        self.message = message


class AuthError(ApiError):
    """The token is missing, expired or was refused."""


class VehicleDocsAPI:
    """Client for the Vehicle Docs API.

    Args:
        base_url: Base URL for the API, e.g. ``http://localhost:8000``.
        token: Optional access token.  When set it is sent as
            ``Authorization: Bearer <token>`` on every request.
        session: Optional requests session.  A new one is created when
            not supplied.
        timeout: Per‑request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Perform an HTTP request and return the decoded JSON body.

        Args:
            method: HTTP method (``GET``, ``POST``, ``PUT``, ``DELETE``).
            path: Path relative to :attr:`base_url` (e.g. ``/vehicles``).
            **kwargs: Passed through to :meth:`requests.Session.request`
                (``json``, ``params``, ``files``, ``data``).
        Returns:
            The parsed JSON response, or ``None`` for an empty body.
        Raises:
            AuthError: on a ``401`` answer.
            ApiError: on any other error status or a network failure.
        """
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(method=method, url=url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            raise ApiError(None, str(exc)) from exc

        if response.status_code >= 400:
            message = ""
            try:
                body = response.json()
                if isinstance(body, dict):
                    message = body.get("error") or body.get("detail") or ""
            except ValueError:
                message = response.text
            message = message or response.reason or f"HTTP {response.status_code}"
            logger.error("API request failed (%s): %s", response.status_code, message)
            if response.status_code == 401:
                raise AuthError(401, message)
            raise ApiError(response.status_code, message)

        if not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------
    # Accounts and profile
    # ------------------------------------------------------------------
    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    def signup(self, email: str, password: str, name: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"email": email, "password": password}
        if name:
            payload["name"] = name
        return self._request("POST", "/signup", json=payload)["user"]

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """Exchange credentials for a session and remember its token."""
        session = self._request("POST", "/signin", json={"email": email, "password": password})
        self.token = session["access_token"]
        return session

    def get_profile(self) -> Dict[str, Any]:
        return self._request("GET", "/profile")["user"]

    def update_profile(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", "/profile", json=changes)["profile"]

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------
    def list_vehicles(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/vehicles")["vehicles"]

    def create_vehicle(self, vehicle: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/vehicles", json=vehicle)["vehicle"]

    def update_vehicle(self, vehicle_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/vehicles/{vehicle_id}", json=changes)["vehicle"]

    def delete_vehicle(self, vehicle_id: str) -> bool:
        return bool(self._request("DELETE", f"/vehicles/{vehicle_id}")["success"])

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------
    def list_documents(self, vehicle_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/vehicles/{vehicle_id}/documents")["documents"]

    def add_document(self, vehicle_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Record a document without attaching a file."""
        return self._request("POST", f"/vehicles/{vehicle_id}/documents", json=document)["document"]

    def upload_document(
        self,
        vehicle_id: str,
        filename: str,
        content: bytes,
        content_type: str,
        document: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Upload a file together with its metadata as multipart form data."""
        result = self._request(
            "POST",
            f"/vehicles/{vehicle_id}/documents/upload",
            files={"file": (filename, content, content_type)},
            data={"documentData": json.dumps(document)},
        )
        return result["document"]

    def delete_document(self, vehicle_id: str, document_id: str) -> bool:
        return bool(self._request("DELETE", f"/vehicles/{vehicle_id}/documents/{document_id}")["success"])

    def get_document_url(self, document_id: str) -> str:
        return self._request("GET", f"/documents/{document_id}/url")["url"]

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------
    def get_history(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/history")["history"]

    def get_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/stats")["stats"]


def call_with_retry(func: Callable[[], T], attempts: int = 3, delay: float = 0.5) -> T:
    """Call ``func`` until it succeeds, at most ``attempts`` times.

    Only :class:`ApiError` is retried.  The last error is re‑raised
    once the attempts are used up.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except ApiError as exc:
            if attempt == attempts:
                raise
            logger.info("Attempt %d/%d failed (%s), retrying in %.1fs", attempt, attempts, exc, delay)
            time.sleep(delay)
    raise ValueError("attempts must be at least 1")


def login(
    api: VehicleDocsAPI,
    email: str,
    password: str,
    post_login_delay: float = 0.2,
    attempts: int = 3,
    delay: float = 0.5,
) -> Dict[str, Any]:
    """Sign in and return the user's profile.

    A freshly issued session can take a moment before every backend
    accepts it, so the profile fetch waits ``post_login_delay`` seconds
    and then retries a few times before giving up.
    """
    api.sign_in(email, password)
    time.sleep(post_login_delay)
    return call_with_retry(api.get_profile, attempts=attempts, delay=delay)


def _parse_day(value: Any) -> Optional[date]:
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def build_notifications(vehicles: List[Dict[str, Any]], today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Turn vehicles into expiry alerts.

    The alert kind follows the ``status`` the server derived for each
    compliance item, so the client never disagrees with ``/stats``.
    The date is only used to say how many days are left.

    Parameters
    ----------
    vehicles: list of dict
        Vehicles as returned by :meth:`VehicleDocsAPI.list_vehicles`.
    today: date, optional
        Reference day for ``daysLeft``; defaults to the local current date.

    Returns
    -------
    list of dict
        One ``error`` notification per ``expired`` item and one
        ``warning`` per ``warning`` item.  ``daysLeft`` is ``None`` when
        the item has no readable date.
    """
    today = today or date.today()
    notifications: List[Dict[str, Any]] = []
    for vehicle in vehicles:
        name = vehicle.get("name") or "Vehicle"
        for item_type, (warning_title, expired_title) in NOTIFICATION_TITLES.items():
            item = vehicle.get(item_type)
            if not isinstance(item, dict):
                continue
            due = _parse_day(item.get("date"))
            days = (due - today).days if due else None
            status = item.get("status")
            if status == "expired":
                kind, title, message = "error", expired_title, f"{expired_title} for {name}"
            elif status == "warning":
                kind, title = "warning", warning_title
                if days is None:
                    message = f"{warning_title} for {name}"
                else:
                    plural = "" if days == 1 else "s"
                    message = f"{warning_title} for {name} in {days} day{plural}"
            else:
                continue
            notifications.append(
                {
                    "id": f"{item_type}_{vehicle.get('id')}",
                    "type": kind,
                    "title": title,
                    "message": message,
                    "category": item_type,
                    "vehicleId": vehicle.get("id"),
                    "vehicleName": name,
                    "daysLeft": days,
                    "timestamp": datetime.now().isoformat(timespec="seconds"),
                    "read": False,
                }
            )
    return notifications


class NotificationPoller:
    """Refresh notifications from the API in a background thread.

    The vehicles are fetched right after :meth:`start` and then every
    ``interval`` seconds.  ``on_update`` receives the new notification
    list after each successful refresh; failures are logged and the
    poller keeps going.  :meth:`stop` wakes the thread immediately.
    """

    def __init__(
        self,
        api: VehicleDocsAPI,
        interval: float = 300,
        on_update: Optional[Callable[[List[Dict[str, Any]]], None]] = None,
    ) -> None:
        self.api = api
        self.interval = interval
        self.on_update = on_update
        self.notifications: List[Dict[str, Any]] = []
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def refresh(self) -> List[Dict[str, Any]]:
        self.notifications = build_notifications(self.api.list_vehicles())
        if self.on_update:
            self.on_update(self.notifications)
        return self.notifications

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.refresh()
            except ApiError as exc:
                logger.warning("Notification refresh failed: %s", exc)
            except Exception:
                # A broken callback must not end the polling thread.
                logger.exception("Notification update handler failed")
            self._stop.wait(self.interval)

    def start(self) -> "NotificationPoller":
        if self._thread and self._thread.is_alive():
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="notification-poller", daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: Optional[float] = 5) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def __enter__(self) -> "NotificationPoller":
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()
