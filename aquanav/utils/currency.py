"""
Currency table and conversion helpers.

Rates are stored against the UAE Dirham, the company's book currency.
Conversions between two non-AED currencies go through AED.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Union

from fastapi import HTTPException, status


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    name: str
    symbol: str
    decimals: int
    rate_to_aed: Decimal


def _c(code: str, name: str, symbol: str, decimals: int, rate: str) -> CurrencyInfo:
    return CurrencyInfo(code=code, name=name, symbol=symbol, decimals=decimals, rate_to_aed=Decimal(rate))


CURRENCIES: Dict[str, CurrencyInfo] = {
    c.code: c
    for c in (
        _c("AED", "UAE Dirham", "د.إ", 2, "1.0"),
        _c("USD", "US Dollar", "$", 2, "3.67"),
        _c("EUR", "Euro", "€", 2, "4.01"),
        _c("GBP", "British Pound", "£", 2, "4.65"),
        _c("SAR", "Saudi Riyal", "ر.س", 2, "0.98"),
        _c("KWD", "Kuwaiti Dinar", "د.ك", 3, "12.05"),
        _c("QAR", "Qatari Riyal", "ر.ق", 2, "1.01"),
        _c("BHD", "Bahraini Dinar", "د.ب", 3, "9.74"),
        _c("OMR", "Omani Rial", "ر.ع.", 3, "9.54"),
        _c("INR", "Indian Rupee", "₹", 2, "0.044"),
        _c("PKR", "Pakistani Rupee", "₨", 2, "0.013"),
        _c("BDT", "Bangladeshi Taka", "৳", 2, "0.031"),
        _c("LKR", "Sri Lankan Rupee", "Rs", 2, "0.012"),
        _c("PHP", "Philippine Peso", "₱", 2, "0.066"),
        _c("JPY", "Japanese Yen", "¥", 0, "0.025"),
        _c("CNY", "Chinese Yuan", "¥", 2, "0.51"),
    )
}

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "AED")
GCC_CURRENCIES = ["AED", "SAR", "KWD", "QAR", "BHD", "OMR"]
MAJOR_CURRENCIES = ["AED", "USD", "EUR", "GBP", "SAR"]

Number = Union[Decimal, int, float, str]


def _lookup(code: str) -> CurrencyInfo:
    info = CURRENCIES.get((code or "").upper())
    if info is None:
        raise ValueError(f"Currency {code} not supported")
    return info


def is_valid_currency(code: str) -> bool:
    return (code or "").upper() in CURRENCIES


def require_valid_currency(code: str) -> str:
    """Normalise a currency code for storage, 400 if it is not in the table."""
    if not is_valid_currency(code):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Currency {code} not supported",
        )
    return code.upper()


def convert_to_aed(amount: Number, from_currency: str) -> Decimal:
    return Decimal(str(amount)) * _lookup(from_currency).rate_to_aed


def convert_from_aed(amount: Number, to_currency: str) -> Decimal:
    return Decimal(str(amount)) / _lookup(to_currency).rate_to_aed


def convert(amount: Number, from_currency: str, to_currency: str) -> Decimal:
    if from_currency.upper() == to_currency.upper():
        _lookup(from_currency)
        return Decimal(str(amount))
    return convert_from_aed(convert_to_aed(amount, from_currency), to_currency)


def quantize_for(amount: Number, code: str) -> Decimal:
    decimals = _lookup(code).decimals
    exponent = Decimal(1).scaleb(-decimals)
    return Decimal(str(amount)).quantize(exponent, rounding=ROUND_HALF_UP)


def format_amount(amount: Number, code: str) -> str:
    info = CURRENCIES.get((code or "").upper())
    if info is None:
        value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return f"{value:,.2f} {code}"
    value = quantize_for(amount, info.code)
    return f"{info.symbol} {value:,.{info.decimals}f}"


def display_name(code: str) -> str:
    info = CURRENCIES.get((code or "").upper())
    return f"{info.code} ({info.name})" if info else code


def supported_currencies() -> List[CurrencyInfo]:
    return list(CURRENCIES.values())


def gcc_currencies() -> List[CurrencyInfo]:
    return [CURRENCIES[code] for code in GCC_CURRENCIES]


def major_currencies() -> List[CurrencyInfo]:
    return [CURRENCIES[code] for code in MAJOR_CURRENCIES]
