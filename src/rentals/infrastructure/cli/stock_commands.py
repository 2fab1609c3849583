"""CLI commands for the stock ledger."""

from __future__ import annotations

import click

from rentals.application.dto import movement_to_dto
from rentals.application.repair_stock import RepairStockHandler
from rentals.domain.exceptions import DomainException
from rentals.domain.model.stock_movement import Location
from rentals.infrastructure.bootstrap import (
    product_repository,
    reservation_coordinator,
    retry_policy,
    stock_ledger,
)
from rentals.infrastructure.config import Settings


@click.command("ledger")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--variant", "variant_id", default=None, help="Variant ID.")
@click.pass_obj
def stock_ledger_show(settings: Settings, product_id: str, variant_id: str | None) -> None:
    """Show the movement history and current balances of a product."""
    product = product_repository(settings).get_by_id(product_id)
    if product is None:
        raise click.ClickException(f"Product '{product_id}' not found")
    try:
        owned = product.quantity_for(variant_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    ledger = stock_ledger(settings)
    movements = ledger.movements_for_product(product_id, variant_id)
    if not movements:
        click.echo("No stock movements recorded.")
    for movement in map(movement_to_dto, movements):
        order = f"#{movement.order_id}" if movement.order_id is not None else "-"
        click.echo(
            f"{movement.occurred_at}  {movement.movement_type:<9} {order:>5} "
            f"x{movement.quantity:<3} {movement.from_location} -> {movement.to_location}"
            f"  {movement.note}"
        )

    click.echo()
    for location in Location:
        opening = owned if location == Location.WAREHOUSE else 0
        balance = ledger.balance(product_id, variant_id, location, opening_warehouse=opening)
        click.echo(f"  {location.value:<14} {balance:>5}")


@click.command("repair")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--variant", "variant_id", default=None, help="Variant ID.")
@click.option("--quantity", required=True, type=int, help="Units repaired.")
@click.option("--note", default="", help="Free-text note.")
@click.pass_obj
def stock_repair(
    settings: Settings, product_id: str, variant_id: str | None, quantity: int, note: str
) -> None:
    """Move repaired units from maintenance back to the warehouse."""
    handler = RepairStockHandler(reservation_coordinator(settings), retry=retry_policy(settings))

    try:
        handler.handle(product_id, quantity, variant_id=variant_id, note=note)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{quantity} unit(s) of {product_id} back in the warehouse.")
