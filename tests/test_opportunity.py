"""
KolayTeklif - Firsat Servisi Istemcisi Testleri

HttpOpportunityClient gercek ag yerine httpx.MockTransport ile test edilir.
"""

import json
import uuid
from datetime import date
from decimal import Decimal

import httpx

from kolayteklif.services.opportunity import (
    HttpOpportunityClient,
    NullOpportunityClient,
    OpportunityCloseRequest,
    close_linked_opportunity,
)


REQUEST = OpportunityCloseRequest(actual_revenue=Decimal("956.00"), actual_close_date=date(2026, 3, 10))


class TestHttpOpportunityClient:
    """HTTP istemcisi testleri."""

    def test_successful_close(self):
        """Istek dogru adrese, dogru govde ve token ile gitmeli."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers.get("Authorization")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"status": "won"})

        opportunity_id = uuid.uuid4()
        client = HttpOpportunityClient(
            "http://crm.local/api/", token="gizli", transport=httpx.MockTransport(handler),
        )
        assert client.close_opportunity_as_won(opportunity_id, REQUEST) is True
        assert captured["url"] == f"http://crm.local/api/opportunities/{opportunity_id}/win"
        assert captured["auth"] == "Bearer gizli"
        assert captured["body"] == {"actual_revenue": 956.0, "actual_close_date": "2026-03-10"}

    def test_server_error_returns_false(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="hata"))
        client = HttpOpportunityClient("http://crm.local", transport=transport)
        assert client.close_opportunity_as_won(uuid.uuid4(), REQUEST) is False

    def test_timeout_returns_false(self):
        def handler(request):
            raise httpx.ReadTimeout("zaman asimi", request=request)

        client = HttpOpportunityClient("http://crm.local", transport=httpx.MockTransport(handler))
        assert client.close_opportunity_as_won(uuid.uuid4(), REQUEST) is False

    def test_get_opportunity(self):
        captured = {}
        customer_id = uuid.uuid4()

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["url"] = str(request.url)
            return httpx.Response(200, json={
                "name": "ERP gecisi",
                "customer": {"kind": "account", "id": str(customer_id)},
                "estimated_close_date": "2026-05-01",
            })

        opportunity_id = uuid.uuid4()
        client = HttpOpportunityClient("http://crm.local", transport=httpx.MockTransport(handler))
        info = client.get_opportunity(opportunity_id)

        assert captured["method"] == "GET"
        assert captured["url"] == f"http://crm.local/opportunities/{opportunity_id}"
        assert info.name == "ERP gecisi"
        assert info.customer.id == customer_id
        assert info.estimated_close_date == date(2026, 5, 1)

    def test_get_missing_opportunity(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        client = HttpOpportunityClient("http://crm.local", transport=transport)
        assert client.get_opportunity(uuid.uuid4()) is None

    def test_get_malformed_opportunity(self):
        """Beklenmeyen yanit govdesi hata firlatmamali."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"baska": 1}))
        client = HttpOpportunityClient("http://crm.local", transport=transport)
        assert client.get_opportunity(uuid.uuid4()) is None

    def test_get_unreachable_service(self):
        def handler(request):
            raise httpx.ConnectError("baglanti yok", request=request)

        client = HttpOpportunityClient("http://crm.local", transport=httpx.MockTransport(handler))
        assert client.get_opportunity(uuid.uuid4()) is None


class TestCloseLinkedOpportunity:
    """Bagli firsati kapatma testleri."""

    def test_success_returns_no_warning(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(204))
        client = HttpOpportunityClient("http://crm.local", transport=transport)
        assert close_linked_opportunity(client, uuid.uuid4(), Decimal("10")) is None

    def test_null_client_returns_warning(self):
        warning = close_linked_opportunity(NullOpportunityClient(), uuid.uuid4(), Decimal("10"))
        assert warning is not None
        assert "elle kapatmaniz" in warning

    def test_null_client_reads_nothing(self):
        assert NullOpportunityClient().get_opportunity(uuid.uuid4()) is None
