"""JSON-file-backed implementation of ProductRepository."""

from __future__ import annotations

import json
import os
import threading
from decimal import Decimal
from pathlib import Path

from rentals.domain.model.product import Product, Variant
from rentals.domain.model.value_objects import Money
from rentals.domain.repository.product_repository import ProductRepository


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = threading.Lock()
        self._ensure_file()

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        products = self._load()
        return products.get(product_id)

    def list_all(self) -> list[Product]:
        return list(self._load().values())

    def save(self, product: Product) -> None:
        with self._lock:
            products = self._load()
            products[product.id] = product
            self._persist(products)

    # --- Serialization helpers ------------------------------------------------

    def _load(self) -> dict[str, Product]:
        raw = json.loads(self._file_path.read_text(encoding="utf-8"))
        return {
            item["id"]: Product(
                id=item["id"],
                name=item["name"],
                quantity_on_hand=item["quantity_on_hand"],
                daily_rate=Money(Decimal(item["daily_rate"]), item.get("currency", "USD")),
                is_rentable=item.get("is_rentable", True),
                variants=[
                    Variant(id=v["id"], name=v["name"], quantity_on_hand=v["quantity_on_hand"])
                    for v in item.get("variants", [])
                ],
            )
            for item in raw
        }

    def _persist(self, products: dict[str, Product]) -> None:
        raw = [
            {
                "id": p.id,
                "name": p.name,
                "quantity_on_hand": p.quantity_on_hand,
                "daily_rate": str(p.daily_rate.amount),
                "currency": p.daily_rate.currency,
                "is_rentable": p.is_rentable,
                "variants": [
                    {"id": v.id, "name": v.name, "quantity_on_hand": v.quantity_on_hand}
                    for v in p.variants
                ],
            }
            for p in products.values()
        ]
        tmp_path = self._file_path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(raw, indent=2) + "\n", encoding="utf-8")
        os.replace(tmp_path, self._file_path)

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
