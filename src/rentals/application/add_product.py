"""Application service: Add Product use case."""

from __future__ import annotations

from rentals.domain.exceptions import ValidationError
from rentals.domain.model.product import Product, Variant
from rentals.domain.model.value_objects import Money
from rentals.domain.repository.product_repository import ProductRepository


class AddProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        name: str,
        quantity: int,
        daily_rate: str,
        variants: list[Variant] | None = None,
        is_rentable: bool = True,
    ) -> Product:
        """Add a new rentable product to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")

        all_products = self._product_repo.list_all()
        if any(p.name.lower() == name.strip().lower() for p in all_products):
            raise ValidationError(f"Product '{name}' already exists")

        variant_ids = [v.id for v in variants or []]
        if len(set(variant_ids)) != len(variant_ids):
            raise ValidationError("Variant ids must be unique")
        if any(v.quantity_on_hand < 0 for v in variants or []):
            raise ValidationError("Variant quantity cannot be negative")

        # Auto-assign ID based on existing products
        numeric_ids = [int(p.id) for p in all_products if p.id.isdigit()]
        next_id = str(max(numeric_ids) + 1) if numeric_ids else "1"

        product = Product(
            id=next_id,
            name=name.strip(),
            quantity_on_hand=quantity,
            daily_rate=Money.of(daily_rate),
            is_rentable=is_rentable,
            variants=list(variants or []),
        )
        self._product_repo.save(product)
        return product
