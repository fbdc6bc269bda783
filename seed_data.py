"""Ornek teklif verisi ekleme scripti"""
import uuid
from datetime import date, timedelta
from decimal import Decimal
from kolayteklif.database import engine
from kolayteklif.repositories.sql import SqlQuoteRepository
from kolayteklif.schemas.quote import CustomerRef, QuoteCreate, QuoteLineCreate
from kolayteklif.services.quote import QuoteService
from kolayteklif.services.template import QuoteTemplateService
from sqlalchemy.orm import Session

ACTOR = "seed"

with Session(engine) as db:
    service = QuoteService(SqlQuoteRepository(db))
    templates = QuoteTemplateService(service)
    today = date.today()

    # Ornek urunler: (aciklama, birim fiyat)
    products_data = [
        ("Web Sitesi Tasarimi", Decimal("15000")),
        ("SEO Hizmeti", Decimal("3000")),
        ("Logo Tasarimi", Decimal("5000")),
        ("Mobil Uygulama", Decimal("50000")),
        ("Hosting (Yillik)", Decimal("2400")),
        ("Teknik Destek (saat)", Decimal("500")),
        ("E-ticaret Modulu", Decimal("25000")),
        ("SSL Sertifikasi", Decimal("800")),
    ]

    # Ornek teklifler: (ad, kalem indeksleri ve miktarlari, son durum)
    quotes_data = [
        ("Kurumsal web paketi", [(0, 1), (2, 1), (4, 1)], "draft"),
        ("E-ticaret kurulumu", [(6, 1), (4, 1), (7, 1)], "active"),
        ("Mobil uygulama projesi", [(3, 1), (5, 40)], "won"),
        ("SEO ve destek", [(1, 6), (5, 10)], "lost"),
        ("Yillik bakim anlasmasi", [(4, 1), (5, 24), (7, 1)], "revised"),
    ]

    for name, items, final_state in quotes_data:
        lines = [
            QuoteLineCreate(
                description=products_data[i][0],
                quantity=qty,
                unit_price=products_data[i][1],
                tax=(products_data[i][1] * qty * Decimal("0.20")).quantize(Decimal("0.01")),
            )
            for i, qty in items
        ]
        created = service.create_quote(
            QuoteCreate(
                name=name,
                customer=CustomerRef(kind="account", id=uuid.uuid4()),
                effective_from=today,
                effective_to=today + timedelta(days=30),
                lines=lines,
            ),
            created_by=ACTOR,
        )
        quote_id = created.quote.quote_id

        if final_state in ("active", "won", "revised"):
            service.activate(quote_id, created_by=ACTOR)
        if final_state == "won":
            service.win(quote_id, created_by=ACTOR, closing_notes="Musteri onayladi")
        elif final_state == "lost":
            service.lose(quote_id, created_by=ACTOR, closing_notes="Fiyat yuksek bulundu")
        elif final_state == "revised":
            service.revise(quote_id, created_by=ACTOR, reason="Kapsam genisletilecek")

        print(f"{created.quote.quote_number} - {name} ({final_state}) eklendi")

        if name == "Kurumsal web paketi":
            template = templates.save_quote_as_template(
                {"quote_id": quote_id, "name": "Kurumsal web sablonu", "category": "bundle", "is_shared": True},
                owner=ACTOR,
            )
            print(f"Sablon '{template.name}' eklendi")

    print("Tamamlandi!")
