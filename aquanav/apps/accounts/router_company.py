# aquanav/apps/accounts/router_company.py

from __future__ import annotations

from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from aquanav.database import get_db
from aquanav.security import get_current_active_user, require_admin
from aquanav.utils import currency
from . import models, schemas, services

router = APIRouter(tags=["company"])


@router.get("/company", response_model=schemas.CompanyRead)
def get_company(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    company = services.get_company(db)
    db.commit()
    return company


@router.put("/company", response_model=schemas.CompanyRead)
def update_company(
    payload: schemas.CompanyUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_admin),
):
    company = services.update_company(db, payload)
    db.commit()
    db.refresh(company)
    return company


@router.get("/currencies", response_model=List[schemas.CurrencyRead])
def list_currencies(
    current_user: models.User = Depends(get_current_active_user),
):
    return currency.supported_currencies()


@router.get("/currencies/convert", response_model=schemas.CurrencyConversionRead)
def convert_currency(
    amount: Decimal = Query(..., ge=0),
    from_currency: str = Query(...),
    to_currency: str = Query(...),
    current_user: models.User = Depends(get_current_active_user),
):
    try:
        converted = currency.convert(amount, from_currency, to_currency)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    converted = currency.quantize_for(converted, to_currency)
    return schemas.CurrencyConversionRead(
        amount=amount,
        from_currency=from_currency.upper(),
        to_currency=to_currency.upper(),
        converted_amount=converted,
        formatted=currency.format_amount(converted, to_currency),
    )
