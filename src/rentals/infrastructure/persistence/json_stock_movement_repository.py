"""JSON-file-backed, append-only implementation of StockMovementRepository."""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime
from pathlib import Path

from rentals.domain.model.stock_movement import Location, MovementType, StockMovement
from rentals.domain.repository.stock_movement_repository import (
    StockMovementRepository,
)


class JsonStockMovementRepository(StockMovementRepository):
    """Movements are only ever appended; nothing here rewrites history."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = threading.Lock()
        self._ensure_file()

    # --- StockMovementRepository interface ------------------------------------

    def append_all(self, movements: list[StockMovement]) -> None:
        if not movements:
            return
        with self._lock:
            raw = self._load_raw()
            raw.extend(self._to_raw(m) for m in movements)
            self._persist_raw(raw)

    def list_for_order(self, order_id: int) -> list[StockMovement]:
        return [
            self._to_domain(raw) for raw in self._load_raw() if raw["order_id"] == order_id
        ]

    def list_for_product(
        self, product_id: str, variant_id: str | None
    ) -> list[StockMovement]:
        return [
            self._to_domain(raw)
            for raw in self._load_raw()
            if raw["product_id"] == product_id and raw.get("variant_id") == variant_id
        ]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(movement: StockMovement) -> dict:
        return {
            "product_id": movement.product_id,
            "variant_id": movement.variant_id,
            "order_id": movement.order_id,
            "type": movement.movement_type.value,
            "quantity": movement.quantity,
            "delta": movement.delta,
            "from": movement.from_location.value,
            "to": movement.to_location.value,
            "occurred_at": movement.occurred_at.isoformat(),
            "note": movement.note,
        }

    @staticmethod
    def _to_domain(raw: dict) -> StockMovement:
        # ``delta`` is derived from the type; the stored copy is for readers of the file.
        return StockMovement(
            product_id=raw["product_id"],
            variant_id=raw.get("variant_id"),
            order_id=raw.get("order_id"),
            movement_type=MovementType(raw["type"]),
            quantity=raw["quantity"],
            from_location=Location(raw["from"]),
            to_location=Location(raw["to"]),
            occurred_at=datetime.fromisoformat(raw["occurred_at"]),
            note=raw.get("note", ""),
        )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, movements: list[dict]) -> None:
        tmp_path = self._file_path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(movements, indent=2) + "\n", encoding="utf-8")
        os.replace(tmp_path, self._file_path)

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
