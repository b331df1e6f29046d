"""
Tests for the REST document store (traceman.adapters.rest).
"""

from decimal import Decimal
from unittest import mock

import pytest
import requests

from traceman.adapters.rest import RestDocumentStore
from traceman.documents import Schedule, ScheduleItem
from traceman.exceptions import PersistenceError


def make_response(payload=None, text=""):
    response = mock.Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = payload
    response.content = b"{}" if payload is not None else b""
    response.text = text
    return response


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def store(session):
    return RestDocumentStore("http://api.local/", session=session, timeout=5)


class TestSchedules:
    def test_fetch_normalizes(self, store, session):
        session.request.return_value = make_response(
            [
                {"id": 2, "date": "2025-03-02", "department": "1154", "items": []},
                {"id": 1, "0": {"date": "2025-03-01", "department": "bakery", "items": [{"id": "a", "status": "planned"}]}},
            ]
        )

        schedules = store.fetch_schedules("BAKERY")

        session.request.assert_called_once_with(
            "GET",
            "http://api.local/api/schedules",
            params={"department": "BAKERY"},
            json=None,
            timeout=5,
        )
        assert [s.date for s in schedules] == ["2025-03-01", "2025-03-02"]
        assert schedules[0].items[0].status == "scheduled"

    def test_create_posts(self, store, session):
        session.request.return_value = make_response({"id": 7, "date": "2025-03-01", "department": "BAKERY", "items": []})

        saved = store.save_schedule("BAKERY", Schedule(date="2025-03-01", department="BAKERY"))

        assert session.request.call_args.args == ("POST", "http://api.local/api/schedules")
        assert saved.id == "7"

    def test_update_puts(self, store, session):
        item = ScheduleItem(id="a", recipe_code="R1", date="2025-03-01", planned_qty=Decimal("5"))
        session.request.return_value = make_response()

        saved = store.save_schedule("BAKERY", Schedule(id="7", date="2025-03-01", department="BAKERY", items=[item]))

        assert session.request.call_args.args == ("PUT", "http://api.local/api/schedules/7")
        body = session.request.call_args.kwargs["json"]
        assert body["items"][0]["plannedQty"] == 5
        assert saved.id == "7"

    def test_delete(self, store, session):
        session.request.return_value = make_response()
        store.delete_schedule("7")
        assert session.request.call_args.args == ("DELETE", "http://api.local/api/schedules/7")


class TestErrors:
    def test_transport_error(self, store, session):
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(PersistenceError) as exc:
            store.fetch_audits("BAKERY")

        assert exc.value.code == "STORE_FAILED"
        assert exc.value.details["path"] == "/api/audits"

    def test_http_error(self, store, session):
        response = make_response()
        response.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
        session.request.return_value = response

        with pytest.raises(PersistenceError):
            store.delete_audit("3")

    def test_invalid_json(self, store, session):
        response = make_response({})
        response.json.side_effect = ValueError("no json")
        session.request.return_value = response

        with pytest.raises(PersistenceError):
            store.fetch_recipes("BAKERY")


class TestReferenceData:
    def test_recipes_get_department(self, store, session):
        session.request.return_value = make_response(
            [{"product_code": "R1", "description": "White Bread", "ingredients": [{"description": "SALT", "recipe_use": "0.01"}]}]
        )

        recipes = store.fetch_recipes("BAKERY")

        assert recipes[0].department == "BAKERY"
        assert recipes[0].ingredients[0].recipe_use == Decimal("0.01")

    def test_catalog_csv(self, store, session):
        session.request.return_value = make_response(
            text="supplier_code,supplier_name,product_description\nS1,Golden Mills,CAKE FLOUR\n"
        )

        rows = store.fetch_supplier_catalog("BAKERY")

        assert session.request.call_args.args == ("GET", "http://api.local/DEPT_DATA/Bakery.csv")
        assert [(r.supplier_name, r.department) for r in rows] == [("Golden Mills", "BAKERY")]

    def test_full_catalog_reads_every_department(self, store, session):
        session.request.return_value = make_response(text="supplier_code,supplier_name\n")

        assert store.fetch_supplier_catalog() == []
        assert session.request.call_count == 3


class TestSession:
    def test_created_lazily(self):
        store = RestDocumentStore("http://api.local")
        assert store._session is None
        assert isinstance(store.session, requests.Session)
