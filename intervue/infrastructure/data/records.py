"""
Interview record store backed by the hosted PostgREST API.
Handles point lookups, identity lookups, partial updates and inserts.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional

import requests

from ...config import (
    RECORD_TABLE, HTTP_TIMEOUT,
    COL_ID, COL_EMAIL, COL_RESUME, COL_SKILLS, COL_CONDUCTED, COL_CREATED_AT,
)

logger = logging.getLogger("record_store")

LOOKUP_COLUMNS = ",".join([
    COL_ID, f'"{COL_RESUME}"', COL_SKILLS, COL_CONDUCTED, COL_EMAIL, COL_CREATED_AT,
])


@dataclass
class StoreResponse:
    """Result of a write against the store."""
    ok: bool
    status: Optional[int]
    body: str = ""


class SupabaseRecordStore:
    """
    Thin client over the ``interviews`` table.

    Lookups never raise: a failed lookup is logged and reported as "no
    record". Writes return a StoreResponse carrying the status and body.
    """

    def __init__(self,
                 base_url: str,
                 service_key: str,
                 table: str = RECORD_TABLE,
                 timeout: int = HTTP_TIMEOUT):
        self.rest_url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.service_key = service_key
        self.timeout = timeout

    def _headers(self, write: bool = False) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }
        if write:
            headers["Content-Type"] = "application/json"
            headers["Prefer"] = "return=minimal"
        return headers

    def _select_one(self, params: Dict[str, str], what: str) -> Optional[Dict[str, Any]]:
        try:
            resp = requests.get(self.rest_url, headers=self._headers(), params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Lookup %s failed: %s", what, e)
            return None

        if not resp.ok:
            logger.warning("Lookup %s returned %s: %s", what, resp.status_code, resp.text)
            return None

        try:
            rows = resp.json()
        except ValueError:
            logger.warning("Lookup %s returned a non-JSON body", what)
            return None

        if not rows:
            logger.debug("No record for %s", what)
            return None
        return rows[0]

    def find_by_id(self, record_id: str, columns: str = LOOKUP_COLUMNS) -> Optional[Dict[str, Any]]:
        """Point lookup by primary identifier."""
        return self._select_one(
            {COL_ID: f"eq.{record_id}", "select": columns},
            what=f"id={record_id}",
        )

    def find_latest_by_email(self,
                             email: str,
                             exclude_id: Optional[str] = None,
                             columns: str = LOOKUP_COLUMNS) -> Optional[Dict[str, Any]]:
        """Most recent record for a candidate, optionally skipping one id."""
        params = {
            COL_EMAIL: f"eq.{email}",
            "select": columns,
            "order": f"{COL_CREATED_AT}.desc",
            "limit": "1",
        }
        if exclude_id:
            params[COL_ID] = f"neq.{exclude_id}"
        return self._select_one(params, what=f"email={email}")

    def update(self, record_id: str, payload: Dict[str, Any]) -> StoreResponse:
        """Partial update addressed by id; the payload must not carry the id."""
        if COL_ID in payload:
            raise ValueError("Update payload must not include the record id")
        return self._write("PATCH", payload, params={COL_ID: f"eq.{record_id}"})

    def insert(self, payload: Dict[str, Any]) -> StoreResponse:
        return self._write("POST", payload)

    def _write(self, method: str, payload: Dict[str, Any],
               params: Optional[Dict[str, str]] = None) -> StoreResponse:
        send = requests.patch if method == "PATCH" else requests.post
        try:
            resp = send(self.rest_url, headers=self._headers(write=True), params=params,
                        json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, self.rest_url, e)
            return StoreResponse(ok=False, status=None, body=str(e))

        if resp.ok:
            logger.info("%s %s succeeded (%s)", method, self.rest_url, resp.status_code)
            return StoreResponse(ok=True, status=resp.status_code)

        logger.error("%s %s returned %s: %s", method, self.rest_url, resp.status_code, resp.text)
        return StoreResponse(ok=False, status=resp.status_code, body=resp.text)
