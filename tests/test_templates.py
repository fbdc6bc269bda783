"""
KolayTeklif - Teklif Sablonu Testleri

Test edilen fonksiyonlar (kolayteklif.services.template.QuoteTemplateService):
    create_template / update_template / delete_template / list_templates
    save_quote_as_template / create_quote_from_template

Test edilen endpoint'ler (/api/v1/quote-templates):
    POST   /                - Sablon olusturma
    POST   /from-quote      - Tekliften sablon
    POST   /{id}/use        - Sablondan teklif
    GET / PATCH / DELETE    - Okuma, guncelleme, silme
"""

import copy
import uuid
from decimal import Decimal

import pytest

from kolayteklif.exceptions import QuoteNotFoundError, QuoteValidationError
from kolayteklif.schemas.quote import CustomerRef, QuoteState
from kolayteklif.schemas.template import QuoteTemplateCategory
from kolayteklif.schemas.version import VersionChangeType


TEMPLATE_PAYLOAD = {
    "name": "Web paketi sablonu",
    "category": "bundle",
    "template_data": {
        "name": "Kurumsal web paketi",
        "effective_from": "2026-03-10",
        "effective_to": "2026-04-10",
        "lines": [
            {"description": "Web Sitesi Tasarimi", "quantity": 5, "unit_price": "100.00",
             "manual_discount": "50.00", "tax": "21.00"},
            {"description": "Teknik Destek", "quantity": 10, "unit_price": "50.00",
             "manual_discount": "25.00", "tax": "10.00"},
        ],
    },
}


def _template_payload(**overrides):
    payload = copy.deepcopy(TEMPLATE_PAYLOAD)
    payload.update(overrides)
    return payload


def _line_values(lines):
    return [
        (line.description, line.quantity, line.unit_price, line.manual_discount, line.tax)
        for line in lines
    ]


class TestTemplateCrud:
    """Sablon olusturma, guncelleme, silme testleri."""

    def test_create_template(self, template_service):
        template = template_service.create_template(_template_payload(), owner="ayse")
        assert template.owner == "ayse"
        assert template.usage_count == 0
        assert template.category == QuoteTemplateCategory.BUNDLE
        assert len(template.template_data.lines) == 2
        assert template_service.get_template(template.template_id) == template

    def test_discount_above_base_rejected(self, template_service):
        """Kalem tutarini asan iskonto sablonda da kabul edilmemeli."""
        payload = _template_payload()
        payload["template_data"]["lines"][0]["manual_discount"] = "600"
        with pytest.raises(QuoteValidationError) as exc_info:
            template_service.create_template(payload)
        assert exc_info.value.field == "template_data.lines.0.manual_discount"
        assert template_service.list_templates() == []

    def test_zero_quantity_rejected(self, template_service):
        payload = _template_payload()
        payload["template_data"]["lines"][1]["quantity"] = 0
        with pytest.raises(QuoteValidationError) as exc_info:
            template_service.create_template(payload)
        assert exc_info.value.field == "template_data.lines.1.quantity"

    def test_invalid_date_range_rejected(self, template_service):
        payload = _template_payload()
        payload["template_data"]["effective_to"] = "2026-01-01"
        with pytest.raises(QuoteValidationError) as exc_info:
            template_service.create_template(payload)
        assert exc_info.value.field == "effective_to"

    def test_list_shared_and_owner(self, template_service):
        template_service.create_template(_template_payload(name="B sablon", is_shared=True), owner="ayse")
        template_service.create_template(_template_payload(name="A sablon"), owner="mehmet")

        assert [t.name for t in template_service.list_templates()] == ["A sablon", "B sablon"]
        assert [t.name for t in template_service.list_templates(shared=True)] == ["B sablon"]
        assert [t.name for t in template_service.list_templates(owner="mehmet")] == ["A sablon"]

    def test_update_template(self, template_service):
        template = template_service.create_template(_template_payload())
        updated = template_service.update_template(
            template.template_id, {"name": "Yeni ad", "is_shared": True},
        )
        assert updated.name == "Yeni ad"
        assert updated.is_shared is True
        assert template_service.get_template(template.template_id).name == "Yeni ad"

    def test_update_missing_template(self, template_service):
        with pytest.raises(QuoteNotFoundError):
            template_service.update_template(uuid.uuid4(), {"name": "Yeni ad"})

    def test_delete_template(self, template_service):
        template = template_service.create_template(_template_payload())
        assert template_service.delete_template(template.template_id) is True
        assert template_service.delete_template(template.template_id) is False
        with pytest.raises(QuoteNotFoundError):
            template_service.get_template(template.template_id)


class TestSaveQuoteAsTemplate:
    """Tekliften sablon olusturma testleri."""

    def test_copies_fields_and_lines(self, template_service, active_quote):
        """Aktif teklif de sablon olarak kaydedilebilmeli."""
        template = template_service.save_quote_as_template(
            {"quote_id": active_quote.quote_id, "name": "Aktif tekliften"}, owner="ayse",
        )
        data = template.template_data
        assert template.name == "Aktif tekliften"
        assert data.name == active_quote.name
        assert data.effective_to == active_quote.effective_to
        assert [line.description for line in data.lines] == ["Web Sitesi Tasarimi", "Teknik Destek"]
        assert data.lines[0].manual_discount == Decimal("50.00")

    def test_missing_quote(self, template_service):
        with pytest.raises(QuoteNotFoundError):
            template_service.save_quote_as_template({"quote_id": uuid.uuid4(), "name": "Yok"})


class TestCreateQuoteFromTemplate:
    """Sablondan teklif olusturma testleri."""

    def test_creates_draft_with_own_version(self, template_service):
        template = template_service.create_template(_template_payload())
        result = template_service.create_quote_from_template(template.template_id, created_by="ayse")

        quote = result.quote
        assert quote.state == QuoteState.DRAFT
        assert quote.name == "Kurumsal web paketi"
        assert quote.created_by == "ayse"
        assert quote.total_amount == Decimal("956.00")
        assert result.version.version_number == 1
        assert result.version.change_type == VersionChangeType.CREATED
        assert "sablonundan" in result.version.change_description
        assert template_service.get_template(template.template_id).usage_count == 1

    def test_overrides(self, template_service, opportunity_id):
        template = template_service.create_template(_template_payload())
        customer_id = uuid.uuid4()
        result = template_service.create_quote_from_template(template.template_id, {
            "name": "Ozel ad",
            "customer": {"kind": "contact", "id": str(customer_id)},
            "opportunity_id": str(opportunity_id),
        })
        assert result.quote.name == "Ozel ad"
        assert result.quote.customer == CustomerRef(kind="contact", id=customer_id)
        assert result.quote.opportunity_id == opportunity_id

    def test_quote_template_quote(self, service, template_service, draft_quote):
        """Teklif -> sablon -> teklif: kalemler ayni, ID'ler yeni olmali."""
        template = template_service.save_quote_as_template(
            {"quote_id": draft_quote.quote_id, "name": "Kopya sablon"},
        )
        new_quote = template_service.create_quote_from_template(template.template_id).quote

        original = service.repository.load_lines(draft_quote.quote_id)
        created = service.repository.load_lines(new_quote.quote_id)
        assert _line_values(created) == _line_values(original)
        assert {line.line_id for line in created}.isdisjoint({line.line_id for line in original})
        assert new_quote.quote_number != draft_quote.quote_number
        assert new_quote.total_amount == draft_quote.total_amount

    def test_missing_template(self, template_service):
        with pytest.raises(QuoteNotFoundError):
            template_service.create_quote_from_template(uuid.uuid4())

    def test_failed_create_keeps_usage_count(self, service, template_service, monkeypatch):
        """Teklif olusturulamazsa sablonun kullanim sayisi artmamali."""
        template = template_service.create_template(_template_payload())

        def _fail():
            raise RuntimeError("numara uretilemedi")

        monkeypatch.setattr(service, "_generate_quote_number", _fail)
        with pytest.raises(RuntimeError):
            template_service.create_quote_from_template(template.template_id)

        assert template_service.get_template(template.template_id).usage_count == 0
        assert service.list_quotes().total == 0


class TestSqlTemplates:
    """Sablonlarin veritabaninda saklanmasi."""

    def test_round_trip_and_usage(self, sql_template_service, sql_service):
        template = sql_template_service.create_template(_template_payload(is_shared=True), owner="ayse")
        sql_template_service.create_quote_from_template(template.template_id)

        loaded = sql_template_service.get_template(template.template_id)
        assert loaded.usage_count == 1
        assert loaded.is_shared is True
        assert loaded.category == QuoteTemplateCategory.BUNDLE
        assert loaded.template_data.lines[0].unit_price == Decimal("100.00")
        assert isinstance(loaded.template_data.lines[0].quantity, int)
        assert sql_service.list_quotes().total == 1

    def test_failed_create_rolls_back_usage(self, sql_template_service, sql_service, monkeypatch):
        template = sql_template_service.create_template(_template_payload())

        def _fail():
            raise RuntimeError("numara uretilemedi")

        monkeypatch.setattr(sql_service, "_generate_quote_number", _fail)
        with pytest.raises(RuntimeError):
            sql_template_service.create_quote_from_template(template.template_id)

        assert sql_template_service.get_template(template.template_id).usage_count == 0
        assert sql_service.list_quotes().total == 0

    def test_list_and_delete(self, sql_template_service):
        first = sql_template_service.create_template(_template_payload(name="B"), owner="ayse")
        sql_template_service.create_template(_template_payload(name="A", is_shared=True), owner="mehmet")

        assert [t.name for t in sql_template_service.list_templates()] == ["A", "B"]
        assert [t.name for t in sql_template_service.list_templates(shared=False)] == ["B"]
        assert sql_template_service.delete_template(first.template_id) is True
        assert [t.name for t in sql_template_service.list_templates()] == ["A"]


API = "/api/v1/quote-templates"


class TestTemplateEndpoints:
    """Sablon endpoint testleri."""

    def test_create_and_use(self, client):
        response = client.post(API, json=_template_payload(), headers={"X-User-Id": "ayse"})
        assert response.status_code == 201
        template = response.json()
        assert template["owner"] == "ayse"
        assert template["template_data"]["lines"][0]["unit_price"] == 100.0

        response = client.post(f"{API}/{template['template_id']}/use", json={"name": "Sablondan"})
        assert response.status_code == 201
        data = response.json()
        assert data["quote"]["name"] == "Sablondan"
        assert data["quote"]["total_amount"] == 956.0
        assert data["version"]["change_type"] == "created"

        assert client.get(f"{API}/{template['template_id']}").json()["usage_count"] == 1

    def test_use_without_body(self, client):
        template = client.post(API, json=_template_payload()).json()
        response = client.post(f"{API}/{template['template_id']}/use")
        assert response.status_code == 201
        assert response.json()["quote"]["name"] == "Kurumsal web paketi"

    def test_save_quote_as_template(self, client):
        created = client.post("/api/v1/quotes", json={
            "name": "Mobil uygulama",
            "lines": [{"description": "Gelistirme", "quantity": 2, "unit_price": 1000}],
        }).json()
        response = client.post(f"{API}/from-quote", json={
            "quote_id": created["quote"]["quote_id"], "name": "Mobil sablon", "is_shared": True,
        })
        assert response.status_code == 201
        assert response.json()["template_data"]["name"] == "Mobil uygulama"

        listed = client.get(API, params={"shared": True}).json()
        assert [t["name"] for t in listed] == ["Mobil sablon"]

    def test_invalid_template_line(self, client):
        payload = _template_payload()
        payload["template_data"]["lines"][0]["quantity"] = -1
        response = client.post(API, json=payload)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "template_data.lines.0.quantity"

    def test_update_and_delete(self, client):
        template = client.post(API, json=_template_payload()).json()
        response = client.patch(f"{API}/{template['template_id']}", json={"category": "service"})
        assert response.status_code == 200
        assert response.json()["category"] == "service"

        assert client.delete(f"{API}/{template['template_id']}").status_code == 204
        assert client.delete(f"{API}/{template['template_id']}").status_code == 404
        assert client.get(f"{API}/{template['template_id']}").status_code == 404
