"""
KolayTeklif - Depo Testleri

SqlQuoteRepository SQLite in-memory veritabani ile test edilir.
Servis islemleri veritabaninda da ayni sonucu vermeli.

InMemoryQuoteRepository icin transaction davranisi ayrica test edilir:
basarili biten blok kalici olur, hata olursa son kalici duruma donulur,
ayni anda calisan iki thread birbirinin yarim kalan yazimini gormez.
"""

import threading
import time
import uuid
from decimal import Decimal

import pytest

from kolayteklif.exceptions import InvariantViolationError, QuoteValidationError
from kolayteklif.models.quote import QuoteLine as QuoteLineModel
from kolayteklif.models.quote_version import QuoteVersion as QuoteVersionModel
from kolayteklif.schemas.quote import CustomerRef, Quote, QuoteState

from conftest import NOW, make_quote_data


class TestSqlRoundTrip:
    """Kaydet / yukle testleri."""

    def test_quote_and_lines_round_trip(self, sql_service):
        customer = CustomerRef(kind="account", id=uuid.uuid4())
        created = sql_service.create_quote(make_quote_data(customer=customer)).quote

        loaded = sql_service.get_quote_detail(created.quote_id)
        assert loaded.quote.customer == customer
        assert loaded.quote.total_amount == Decimal("956.00")
        assert [line.description for line in loaded.lines] == ["Web Sitesi Tasarimi", "Teknik Destek"]
        assert loaded.lines[0].extended_amount == Decimal("471.00")

    def test_version_numbers_stay_typed(self, sql_service):
        """JSON'dan okunan versiyon verisi yine sayi (Decimal / int) olmali."""
        quote = sql_service.create_quote(make_quote_data()).quote
        version = sql_service.get_latest_version(quote.quote_id)

        line = version.version_data.lines[0]
        assert isinstance(line.quantity, int)
        assert isinstance(line.unit_price, Decimal)
        assert line.extended_amount + line.extended_amount == Decimal("942.00")
        assert version.version_data.total_amount == Decimal("956.00")

    def test_compare_after_reload(self, sql_service):
        quote = sql_service.create_quote(make_quote_data()).quote
        first = sql_service.get_latest_version(quote.quote_id)
        second = sql_service.update_quote(quote.quote_id, {"name": "Yeni ad"}).version

        assert sql_service.compare_versions(first.version_id, first.version_id).summary.total_changes == 0
        comparison = sql_service.compare_versions(first.version_id, second.version_id)
        assert [c.field for c in comparison.changes.quote] == ["name"]

    def test_line_updates_are_persisted(self, sql_service):
        quote = sql_service.create_quote(make_quote_data()).quote
        line = sql_service.repository.load_lines(quote.quote_id)[0]
        sql_service.update_line(quote.quote_id, line.line_id, {"quantity": 6})
        sql_service.remove_line(quote.quote_id, sql_service.repository.load_lines(quote.quote_id)[1].line_id)

        detail = sql_service.get_quote_detail(quote.quote_id)
        assert len(detail.lines) == 1
        assert detail.lines[0].quantity == 6
        assert detail.quote.total_amount == Decimal("571.00")


class TestSqlTransactions:
    """Hata durumunda geri alma testleri."""

    def test_failed_operation_rolls_back(self, sql_service, db_session):
        quote = sql_service.create_quote(make_quote_data()).quote
        line = sql_service.repository.load_lines(quote.quote_id)[0]
        with pytest.raises(QuoteValidationError):
            sql_service.update_line(quote.quote_id, line.line_id, {"manual_discount": "9999"})

        assert db_session.query(QuoteVersionModel).count() == 1
        assert sql_service.repository.load_lines(quote.quote_id)[0].manual_discount == Decimal("50.00")

    def test_delete_cascades(self, sql_service, db_session):
        quote = sql_service.create_quote(make_quote_data()).quote
        sql_service.add_line(quote.quote_id, {"description": "Logo", "quantity": 1, "unit_price": "5"})

        assert sql_service.delete_quote(quote.quote_id) is True
        assert db_session.query(QuoteLineModel).count() == 0
        assert db_session.query(QuoteVersionModel).count() == 0

    def test_stored_version_cannot_be_updated(self, sql_service, db_session):
        """Kayitli versiyon satiri guncellenmeye calisilirsa hata firlatilmali."""
        sql_service.create_quote(make_quote_data())
        row = db_session.query(QuoteVersionModel).first()
        row.change_description = "degistirildi"
        with pytest.raises(InvariantViolationError):
            db_session.flush()
        db_session.rollback()

    def test_duplicate_version_rejected(self, sql_service):
        quote = sql_service.create_quote(make_quote_data()).quote
        version = sql_service.get_latest_version(quote.quote_id)
        with pytest.raises(InvariantViolationError):
            sql_service.repository.append_version(version)


class TestSqlListing:
    """Listeleme testleri."""

    def test_list_sort_and_filter(self, sql_service):
        small = sql_service.create_quote(make_quote_data(name="Kucuk", lines=[])).quote
        sql_service.create_quote(make_quote_data(name="Buyuk"))
        sql_service.activate(small.quote_id)

        by_total = sql_service.list_quotes(sort="total_desc")
        assert [q.name for q in by_total.items] == ["Buyuk", "Kucuk"]
        assert sql_service.list_quotes(state=QuoteState.ACTIVE).total == 1
        assert sql_service.list_quotes(search="TEK-2026-0002").items[0].name == "Buyuk"

    def test_number_after_delete(self, sql_service):
        """Silinen taslaktan sonra olusan teklif benzersiz numara almali."""
        first = sql_service.create_quote(make_quote_data(name="A")).quote
        sql_service.create_quote(make_quote_data(name="B"))
        sql_service.delete_quote(first.quote_id)

        third = sql_service.create_quote(make_quote_data(name="C")).quote
        assert third.quote_number == "TEK-2026-0003"
        assert sql_service.list_quotes().total == 2

    def test_statistics(self, sql_service):
        sql_service.create_quote(make_quote_data())
        stats = sql_service.statistics()
        assert stats.total == 1
        assert stats.draft == 1
        assert stats.total_value == Decimal("956.00")

    def test_customer_and_opportunity_filter(self, sql_service, opportunity_id):
        customer = CustomerRef(kind="account", id=uuid.uuid4())
        sql_service.create_quote(make_quote_data(name="Musterili", customer=customer))
        sql_service.create_quote(make_quote_data(name="Firsatli", opportunity_id=opportunity_id))
        sql_service.create_quote(make_quote_data(name="Bos"))

        by_customer = sql_service.list_quotes(customer_id=customer.id)
        assert [q.name for q in by_customer.items] == ["Musterili"]
        by_opportunity = sql_service.list_quotes(opportunity_id=opportunity_id)
        assert [q.name for q in by_opportunity.items] == ["Firsatli"]
        assert sql_service.list_quotes(customer_id=uuid.uuid4()).total == 0


class TestInMemoryTransactions:
    """Bellekteki depoda transaction davranisi."""

    def test_inner_commit_survives_outer_failure(self, service, repository):
        """Ic blokta tamamlanan islem, dis blok hata verse de kalici olmali (SQL ile ayni)."""
        with pytest.raises(ValueError):
            with repository.transaction():
                created = service.create_quote(make_quote_data()).quote
                raise ValueError("dis islem basarisiz")

        assert repository.load_quote(created.quote_id) is not None
        assert service.get_version_count(created.quote_id) == 1

    def test_failed_block_rolls_back(self, service, repository, draft_quote):
        with pytest.raises(ValueError):
            with repository.transaction():
                repository.save_quote(draft_quote.model_copy(update={"name": "Degisti"}))
                raise ValueError("geri al")

        assert repository.load_quote(draft_quote.quote_id).name == "Kurumsal web paketi"

    def test_concurrent_failure_does_not_drop_other_writes(self, service, repository):
        """
        Bir thread'in basarisiz transaction'i, diger thread'in tamamlanan
        teklifini silmemeli; yarim kalan kayit da digerine gorunmemeli.
        """
        started = threading.Event()
        results = {}

        def failing_writer():
            try:
                with repository.transaction():
                    repository.save_quote(Quote(
                        quote_number="TEK-2026-9999", name="Yarim",
                        created_on=NOW, modified_on=NOW,
                    ))
                    started.set()
                    time.sleep(0.2)
                    raise RuntimeError("yarida kaldi")
            except RuntimeError:
                results["failed"] = True

        def creator():
            started.wait(timeout=5)
            results["quote"] = service.create_quote(make_quote_data(name="Tamam")).quote

        threads = [threading.Thread(target=failing_writer), threading.Thread(target=creator)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert results["failed"] is True
        created = results["quote"]
        assert created.quote_number == "TEK-2026-0001"
        assert repository.load_quote(created.quote_id) is not None
        assert [q.name for q in service.list_quotes().items] == ["Tamam"]
