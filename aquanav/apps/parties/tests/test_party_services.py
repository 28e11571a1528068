from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from fastapi import HTTPException

from aquanav.apps.inventory import models as inventory_models
from aquanav.apps.parties import models as party_models
from aquanav.apps.parties import router as parties_router
from aquanav.apps.parties import schemas as party_schemas
from aquanav.apps.parties import services as party_services


def _customer(db, name: str, phone: str, **extra):
    customer = party_services.create_customer(
        db,
        payload=party_schemas.CustomerCreate(name=name, phone=phone, **extra),
    )
    db.commit()
    return customer


def test_list_customers_paginates_and_searches(db_session):
    for idx in range(12):
        _customer(db_session, f"Gulf Shipping {idx:02d}", f"+9715000000{idx:02d}")
    _customer(db_session, "Red Sea Marine", "+971511111111", contact_person="Omar Haddad")

    first = party_services.list_customers(db_session, page=1, limit=5)
    assert first["total"] == 13
    assert first["total_pages"] == 3
    assert len(first["items"]) == 5

    last = party_services.list_customers(db_session, page=3, limit=5)
    assert len(last["items"]) == 3

    found = party_services.list_customers(db_session, search="HADDAD")
    assert [c.name for c in found["items"]] == ["Red Sea Marine"]


def test_duplicate_customer_phone_is_conflict(db_session):
    _customer(db_session, "Atlas Tankers", "+971500000001")
    with pytest.raises(HTTPException) as exc:
        _customer(db_session, "Atlas Tankers 2", "+971500000001")
    assert exc.value.status_code == 409


def test_archive_hides_customer_until_unarchived(db_session):
    customer = _customer(db_session, "Atlas Tankers", "+971500000001")

    party_services.archive_customer(db_session, customer_id=customer.id)
    db_session.commit()
    assert party_services.list_customers(db_session)["total"] == 0
    assert party_services.list_customers(db_session, show_archived=True)["total"] == 1

    party_services.unarchive_customer(db_session, customer_id=customer.id)
    db_session.commit()
    assert party_services.list_customers(db_session)["total"] == 1


def test_unknown_currency_is_rejected(db_session):
    with pytest.raises(HTTPException) as exc:
        party_services.create_supplier(
            db_session,
            payload=party_schemas.SupplierCreate(name="Steel Co", currency="XYZ"),
        )
    assert exc.value.status_code == 400


def test_supplier_products_reject_duplicate_links(db_session):
    supplier = party_services.create_supplier(
        db_session,
        payload=party_schemas.SupplierCreate(name="Weld Supplies", currency="usd"),
    )
    item = inventory_models.InventoryItem(name="Welding rods", category="consumables", unit="box")
    db_session.add(item)
    db_session.commit()
    assert supplier.currency == "USD"

    payload = party_schemas.SupplierProductCreate(
        inventory_item_id=item.id,
        unit_cost=Decimal("12.50"),
        is_preferred=True,
    )
    link = party_services.add_supplier_product(db_session, supplier_id=supplier.id, payload=payload)
    db_session.commit()
    assert party_services.supplier_product_to_read(link).item_name == "Welding rods"

    with pytest.raises(HTTPException) as exc:
        party_services.add_supplier_product(db_session, supplier_id=supplier.id, payload=payload)
    assert exc.value.status_code == 409


def test_party_routes_are_registered():
    paths = {route.path for route in parties_router.router.routes}
    assert "/customers/{customer_id}/archive" in paths
    assert "/suppliers/{supplier_id}/products" in paths
    assert "/customers/{customer_id}/documents/{document_id}" in paths
    assert "/suppliers/{supplier_id}/documents" in paths


def _trade_license(**extra):
    data = dict(
        document_type=party_models.PartyDocumentType.TRADE_LICENSE,
        document_name="Dubai trade license",
        document_number="TL-55821",
        date_of_issue=date(2024, 1, 10),
        expiry_date=date(2025, 1, 9),
    )
    data.update(extra)
    return party_schemas.PartyDocumentCreate(**data)


def test_customer_documents_lifecycle(db_session):
    customer = _customer(db_session, "Gulf Shipping", "+971500000001")

    document = party_services.add_customer_document(
        db_session,
        customer_id=customer.id,
        payload=_trade_license(file_name="license.pdf", file_size=48213),
    )
    db_session.commit()
    assert document.customer_id == customer.id
    assert document.status == party_models.PartyDocumentStatus.ACTIVE

    party_services.update_customer_document(
        db_session,
        customer_id=customer.id,
        document_id=document.id,
        payload=party_schemas.PartyDocumentUpdate(status=party_models.PartyDocumentStatus.PENDING_RENEWAL),
    )
    db_session.commit()
    listed = party_services.list_customer_documents(db_session, customer_id=customer.id)
    assert [d.status for d in listed] == [party_models.PartyDocumentStatus.PENDING_RENEWAL]

    other = _customer(db_session, "Red Sea Marine", "+971500000002")
    with pytest.raises(HTTPException) as exc:
        party_services.delete_customer_document(db_session, customer_id=other.id, document_id=document.id)
    assert exc.value.status_code == 404

    party_services.delete_customer_document(db_session, customer_id=customer.id, document_id=document.id)
    db_session.commit()
    assert party_services.list_customer_documents(db_session, customer_id=customer.id) == []


def test_document_types_and_dates_are_checked(db_session):
    customer = _customer(db_session, "Gulf Shipping", "+971500000001")
    supplier = party_services.create_supplier(
        db_session,
        payload=party_schemas.SupplierCreate(name="Marine Spares Trading", phone="+971500000077"),
    )
    db_session.commit()
    agreement = _trade_license(
        document_type=party_models.PartyDocumentType.SUPPLIER_AGREEMENT,
        document_name="Frame agreement 2024",
    )

    with pytest.raises(HTTPException) as exc:
        party_services.add_customer_document(db_session, customer_id=customer.id, payload=agreement)
    assert exc.value.status_code == 400

    document = party_services.add_supplier_document(db_session, supplier_id=supplier.id, payload=agreement)
    db_session.commit()
    assert document.supplier_id == supplier.id

    with pytest.raises(HTTPException) as exc:
        party_services.update_supplier_document(
            db_session,
            supplier_id=supplier.id,
            document_id=document.id,
            payload=party_schemas.PartyDocumentUpdate(expiry_date=date(2023, 12, 31)),
        )
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        party_services.list_supplier_documents(db_session, supplier_id=supplier.id + 100)
    assert exc.value.status_code == 404
