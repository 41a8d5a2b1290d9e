"""Creature service API client.

This module defines a small client wrapper around the HTTP API served
by ``creature_service.app.main``.  The client uses the ``requests``
library internally and exposes one method per service operation:

* :meth:`create_creature` – store a new creature and get its id back.
* :meth:`get_creature` – fetch a single creature by id.
* :meth:`update_creature` – replace every field of a creature.
* :meth:`delete_creature` – remove a creature.
* :meth:`stream_creatures` / :meth:`list_creatures` – read all creatures.

Unary methods return a tuple ``(data, error)``.  On success ``error``
is ``None``; on failure ``data`` is ``None`` and ``error`` is a
dictionary with the keys ``status_code``, ``code`` (``invalid_argument``,
``not_found``, ``internal`` or ``None`` for transport failures) and
``message``.

The list endpoint streams newline-delimited JSON.
:meth:`stream_creatures` yields records as they arrive and raises
:class:`CreatureAPIError` on failure, since an error may only become
known after some records were already produced.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)


class CreatureAPIError(Exception):
    """Raised by :meth:`CreatureServiceAPI.stream_creatures` on failure."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None) -> None:
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"status_code": self.status_code, "code": self.code, "message": self.message}


class CreatureServiceAPI:
    """Client for interacting with the creature service API."""

    def __init__(
        self,
        *,
        base_url: str,
        prefix: str = "/api/v1",
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the service, e.g. ``http://localhost:4041``.
            prefix: Path prefix of the versioned API.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Timeout in seconds applied to every request.
        """
        self.base_url = base_url.rstrip("/") + prefix
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _error_from_response(response: Any) -> CreatureAPIError:
        """Build an error from a non-2xx response body."""
        code = None
        try:
            err_json = response.json()
            message = err_json.get("detail") or str(err_json)
            code = err_json.get("code")
        except ValueError:
            message = response.text
        return CreatureAPIError(message or f"HTTP {response.status_code}", response.status_code, code)

    def _request(
        self, method: str, path: str, *, json_body: Any | None = None
    ) -> Tuple[Optional[Any], Optional[Dict[str, Any]]]:
        """Perform an HTTP request to the API.

        Returns:
            A tuple ``(data, error)`` as described in the module docstring.
        """
        url = f"{self.base_url}{path}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                json=json_body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            error = self._error_from_response(exc.response)
            logger.error("API request failed (%s): %s", error.status_code, error.message)
            return None, error.to_dict()
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "code": None, "message": str(exc)}

    # ------------------------------------------------------------------
    # Creature operations
    # ------------------------------------------------------------------
    def create_creature(
        self, code: str, name: str, power: str, description: str
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Create a creature.

        Returns:
            A tuple ``(creature, error)``; ``creature["id"]`` is the
            identifier assigned by the service.
        """
        payload = {"creature": {"code": code, "name": name, "power": power, "description": description}}
        data, error = self._request("POST", "/creatures/", json_body=payload)
        if error:
            return None, error
        return data["creature"], None

    def get_creature(self, creature_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Retrieve a single creature by id."""
        data, error = self._request("GET", f"/creatures/{creature_id}")
        if error:
            return None, error
        return data["creature"], None

    def update_creature(
        self, creature_id: str, code: str, name: str, power: str, description: str
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Replace every field of an existing creature."""
        payload = {"creature": {"code": code, "name": name, "power": power, "description": description}}
        data, error = self._request("PUT", f"/creatures/{creature_id}", json_body=payload)
        if error:
            return None, error
        return data["creature"], None

    def delete_creature(self, creature_id: str) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
        """Delete a creature.

        Returns:
            A tuple ``(deleted_id, error)``.
        """
        data, error = self._request("DELETE", f"/creatures/{creature_id}")
        if error:
            return None, error
        return data["id"], None

    def stream_creatures(self) -> Iterator[Dict[str, Any]]:
        """Yield every stored creature as it arrives from the server.

        Raises:
            CreatureAPIError: the request failed or the server reported
                an error part-way through the stream.
        """
        url = f"{self.base_url}/creatures/"
        try:
            response = self.session.request(method="GET", url=url, stream=True, timeout=self.timeout)
        except requests.RequestException as exc:
            raise CreatureAPIError(str(exc)) from exc
        with response:
            if response.status_code >= 400:
                raise self._error_from_response(response)
            try:
                for line in response.iter_lines(decode_unicode=True):
                    if not line:
                        continue
                    item = json.loads(line)
                    if "error" in item:
                        error = item["error"]
                        raise CreatureAPIError(error.get("detail", ""), response.status_code, error.get("code"))
                    yield item["creature"]
            except requests.RequestException as exc:
                raise CreatureAPIError(str(exc)) from exc

    def list_creatures(self) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Retrieve all creatures.

        Returns:
            A tuple ``(creatures, error)``.  ``creatures`` is empty on
            failure, even if some records had already been received.
        """
        try:
            return list(self.stream_creatures()), None
        except CreatureAPIError as exc:
            logger.error("Listing creatures failed: %s", exc.message)
            return [], exc.to_dict()
