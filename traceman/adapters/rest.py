"""
REST Document Store.

Implements DocumentStore against a json-server style HTTP API:

    GET/POST        /api/schedules?department=BAKERY
    PUT/DELETE      /api/schedules/{id}
    GET/POST        /api/audits?department=BAKERY
    PUT/DELETE      /api/audits/{id}
    GET             /api/recipes?department=BAKERY
    GET             /api/handlers?department=BAKERY
    GET             /DEPT_DATA/{Bakery,Butchery,HMR}.csv   supplier catalogs

Configuration:
    TRACEMAN = {
        "STORE_BACKEND": "traceman.adapters.rest.RestDocumentStore",
        "REST_API_BASE": "http://localhost:4000",
        "REST_TIMEOUT": 10,
    }

Transport and HTTP errors become PersistenceError. There is no retry.
"""

from __future__ import annotations

import io
import logging
from typing import Any

import requests

from traceman.conf import get_setting
from traceman.documents import AuditRecord, Recipe, Schedule, Staff, SupplierRecord
from traceman.exceptions import PersistenceError
from traceman.services.suppliers import parse_catalog_csv

logger = logging.getLogger(__name__)


class RestDocumentStore:
    """
    DocumentStore speaking HTTP.

    Args:
        base_url: API root (REST_API_BASE when omitted)
        session: requests.Session to use; created lazily when omitted, so
            tests can inject a mock
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: str | None = None,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or get_setting("REST_API_BASE")).rstrip("/")
        self.timeout = timeout if timeout is not None else get_setting("REST_TIMEOUT")
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def _request(self, method: str, path: str, *, params=None, json_body=None, expect_json=True) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error(
                f"{method} {url} failed: {exc}",
                extra={"method": method, "url": url},
            )
            raise PersistenceError(
                "STORE_FAILED",
                f"{method} {path} failed: {exc}",
                method=method,
                path=path,
            ) from exc

        if not expect_json:
            return response.text
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise PersistenceError(
                "STORE_FAILED",
                f"{method} {path} returned invalid JSON",
                method=method,
                path=path,
            ) from exc

    # ── Schedules ──

    def fetch_schedules(self, department: str) -> list[Schedule]:
        data = self._request("GET", "/api/schedules", params={"department": department}) or []
        schedules = [Schedule.from_dict(row) for row in data]
        return sorted(schedules, key=lambda s: s.date)

    def save_schedule(self, department: str, schedule: Schedule) -> Schedule:
        body = schedule.as_dict()
        body["department"] = department
        if schedule.id is not None:
            data = self._request(
                "PUT",
                f"/api/schedules/{schedule.id}",
                params={"department": department},
                json_body=body,
            )
        else:
            data = self._request("POST", "/api/schedules", params={"department": department}, json_body=body)
        return Schedule.from_dict(data or body)

    def delete_schedule(self, schedule_id: str) -> None:
        self._request("DELETE", f"/api/schedules/{schedule_id}")

    # ── Audits ──

    def fetch_audits(self, department: str) -> list[AuditRecord]:
        data = self._request("GET", "/api/audits", params={"department": department}) or []
        return [AuditRecord.from_dict(row) for row in data]

    def save_audit(self, record: AuditRecord) -> AuditRecord:
        body = record.as_dict()
        if record.id is not None:
            data = self._request("PUT", f"/api/audits/{record.id}", json_body=body)
        else:
            data = self._request("POST", "/api/audits", json_body=body)
        return AuditRecord.from_dict(data or body)

    def delete_audit(self, audit_id: str) -> None:
        self._request("DELETE", f"/api/audits/{audit_id}")

    # ── Reference data ──

    def fetch_recipes(self, department: str) -> list[Recipe]:
        data = self._request("GET", "/api/recipes", params={"department": department}) or []
        return [Recipe.from_dict({"department": department, **row}) for row in data]

    def fetch_handlers(self, department: str) -> list[Staff]:
        data = self._request("GET", "/api/handlers", params={"department": department}) or []
        return [Staff.from_dict({"department": department, **row}) for row in data]

    def fetch_supplier_catalog(self, department: str | None = None) -> list[SupplierRecord]:
        names = get_setting("CATALOG_CSV_NAMES")
        departments = [department] if department is not None else list(names)
        rows = []
        for dept in departments:
            name = names.get(dept)
            if not name:
                continue
            text = self._request("GET", f"/DEPT_DATA/{name}", expect_json=False)
            rows.extend(parse_catalog_csv(io.StringIO(text), dept))
        return rows
