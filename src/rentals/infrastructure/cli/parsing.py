"""Option types and parsers shared by the CLI commands."""

from __future__ import annotations

from datetime import datetime, timezone

import click

from rentals.domain.model.product import Variant
from rentals.domain.model.reservation import DraftItem

# Accepts "2026-03-01" or "2026-03-01T10:00"; times are read as UTC.
DATE_TIME = click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M"])


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_items(raw: str, start: datetime, end: datetime) -> list[DraftItem]:
    """Parse 'tent:2,bike/large:1' into DraftItems sharing one rental window."""
    items: list[DraftItem] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId[/VariantId]:Quantity'."
            )
        product, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product}'."
            )
        product_id, _, variant_id = product.strip().partition("/")
        items.append(
            DraftItem(
                product_id=product_id,
                quantity=qty,
                start=start,
                end=end,
                variant_id=variant_id or None,
            )
        )
    return items


def parse_variant(raw: str) -> Variant:
    """Parse 'large:Large frame:3' into a Variant."""
    parts = raw.split(":")
    if len(parts) != 3:
        raise click.BadParameter(
            f"Invalid variant format '{raw}'. Expected 'Id:Name:Quantity'."
        )
    variant_id, name, qty_str = (part.strip() for part in parts)
    try:
        qty = int(qty_str)
    except ValueError:
        raise click.BadParameter(f"Invalid quantity '{qty_str}' for variant '{variant_id}'.")
    return Variant(id=variant_id, name=name, quantity_on_hand=qty)


def parse_stock_ref(raw: str) -> str | tuple[str, str]:
    """Parse 'tent' or 'bike/large' into a product id or a (product, variant) pair."""
    product_id, _, variant_id = raw.strip().partition("/")
    if not product_id:
        raise click.BadParameter(
            f"Invalid product '{raw}'. Expected 'ProductId[/VariantId]'."
        )
    return (product_id, variant_id) if variant_id else product_id
