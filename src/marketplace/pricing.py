"""Price labels for resource listings."""

from typing import Optional


def format_price(price: Optional[float], price_type: Optional[str]) -> str:
    if price_type == 'negotiable':
        return "Etter avtale"
    if not price:
        return "Ikke spesifisert"
    amount = int(price) if float(price).is_integer() else price
    suffix = "/time" if price_type == 'hourly' else ""
    return f"{amount} kr{suffix}"
