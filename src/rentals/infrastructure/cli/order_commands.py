"""CLI commands for the rental order lifecycle."""

from __future__ import annotations

from datetime import datetime, timedelta

import click

from rentals.application.cleanup_expired import CleanupExpiredHandler
from rentals.application.confirm_reservation import ConfirmReservationHandler
from rentals.application.create_reservation import CreateReservationHandler
from rentals.application.dto import OrderDTO
from rentals.application.extend_rental import ExtendRentalHandler
from rentals.application.mark_pickup_ready import MarkPickupReadyHandler
from rentals.application.process_pickup import ProcessPickupHandler
from rentals.application.process_return import ProcessReturnHandler
from rentals.application.release_reservation import ReleaseReservationHandler
from rentals.application.send_return_reminders import SendReturnRemindersHandler
from rentals.application.show_order import ShowOrderHandler
from rentals.domain.exceptions import DomainException
from rentals.domain.model.order import ItemCondition
from rentals.domain.model.reservation import PickupInfo, ReservationDraft, ReturnInfo
from rentals.domain.model.value_objects import Money
from rentals.infrastructure.bootstrap import (
    notifier,
    order_repository,
    reservation_coordinator,
    retry_policy,
    stock_ledger,
)
from rentals.infrastructure.cli.parsing import (
    DATE_TIME,
    as_utc,
    parse_items,
    parse_stock_ref,
)
from rentals.infrastructure.config import Settings

_CONDITIONS = click.Choice([c.value for c in ItemCondition])


@click.command("reserve")
@click.option("--customer", required=True, help="Customer ID.")
@click.option("--vendor", required=True, help="Vendor ID.")
@click.option(
    "--items", required=True, help="Items as 'ProductId[/VariantId]:Qty,ProductId:Qty'."
)
@click.option("--start", required=True, type=DATE_TIME, help="Rental start (UTC).")
@click.option("--end", required=True, type=DATE_TIME, help="Rental end, exclusive (UTC).")
@click.pass_obj
def order_reserve(
    settings: Settings, customer: str, vendor: str, items: str, start: datetime, end: datetime
) -> None:
    """Place a soft hold on items for a rental window."""
    draft = ReservationDraft(
        customer_id=customer,
        vendor_id=vendor,
        items=parse_items(items, as_utc(start), as_utc(end)),
    )
    handler = CreateReservationHandler(
        reservation_coordinator(settings), retry=retry_policy(settings)
    )

    try:
        hold = handler.handle(draft)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{hold.order_id} held until {hold.expires_at:%Y-%m-%d %H:%M UTC}")
    for reservation in hold.reservations:
        variant = f"/{reservation.variant_id}" if reservation.variant_id else ""
        click.echo(
            f"  {reservation.product_id}{variant} x{reservation.quantity} "
            f"for {reservation.period}"
        )


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  (status={dto.status})")
    click.echo(f"Customer: {dto.customer_id}   Vendor: {dto.vendor_id}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.hold_expires_at:
        click.echo(f"Hold expires: {dto.hold_expires_at}")
    if dto.cancellation_reason:
        click.echo(f"Cancelled: {dto.cancellation_reason}")
    click.echo()

    click.echo(
        f"  {'Product':<24} {'Qty':>4} {'From':<17} {'To':<17} "
        f"{'Rate':>9} {'Total':>10} {'Status':<14}"
    )
    click.echo(f"  {'-'*101}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<24} {item.quantity:>4} {item.start[:16]:<17} "
            f"{item.end[:16]:<17} {item.unit_price:>9} {item.line_total:>10} {item.status:<14}"
        )
    click.echo(f"  {'-'*101}")
    click.echo(f"  {'Subtotal':<27} {dto.subtotal:>20}")
    if dto.late_fee != "$0.00":
        click.echo(f"  {'Late fee':<27} {dto.late_fee:>20}")
    if dto.damage_fee != "$0.00":
        click.echo(f"  {'Damage fee':<27} {dto.damage_fee:>20}")
    click.echo(f"  {'Order Total':<27} {dto.total:>20}")

    if dto.movements:
        click.echo()
        click.echo("  Stock movements:")
        for m in dto.movements:
            click.echo(
                f"    {m.occurred_at}  {m.movement_type:<9} {m.product_id} x{m.quantity} "
                f"{m.from_location} -> {m.to_location}  {m.note}"
            )


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
@click.pass_obj
def order_show(settings: Settings, order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repository(settings), stock_ledger(settings))

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("confirm")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to confirm.")
@click.pass_obj
def order_confirm(settings: Settings, order_id: int) -> None:
    """Confirm a held order (reserves stock)."""
    handler = ConfirmReservationHandler(
        reservation_coordinator(settings), retry=retry_policy(settings)
    )

    try:
        movements = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} confirmed, {len(movements)} line(s) reserved.")


@click.command("release")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to release.")
@click.option("--reason", default="cancelled by vendor", show_default=True, help="Why.")
@click.pass_obj
def order_release(settings: Settings, order_id: int, reason: str) -> None:
    """Cancel an order and release any reserved stock."""
    handler = ReleaseReservationHandler(
        reservation_coordinator(settings), notifier=notifier(), retry=retry_policy(settings)
    )

    try:
        handler.handle(order_id, reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} cancelled.")


@click.command("ready")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.pass_obj
def order_ready(settings: Settings, order_id: int) -> None:
    """Mark a confirmed order as ready for pickup."""
    handler = MarkPickupReadyHandler(
        reservation_coordinator(settings), retry=retry_policy(settings)
    )

    try:
        handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} is ready for pickup.")


@click.command("pickup")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--by", "picked_up_by", required=True, help="Who collected the items.")
@click.option("--condition", type=_CONDITIONS, default="good", show_default=True)
@click.option("--notes", default=None, help="Free-text notes.")
@click.pass_obj
def order_pickup(
    settings: Settings, order_id: int, picked_up_by: str, condition: str, notes: str | None
) -> None:
    """Hand the items over to the customer."""
    handler = ProcessPickupHandler(
        reservation_coordinator(settings), notifier=notifier(), retry=retry_policy(settings)
    )
    info = PickupInfo(
        picked_up_by=picked_up_by, condition=ItemCondition(condition), notes=notes
    )

    try:
        handler.handle(order_id, info)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} picked up by {picked_up_by}.")


@click.command("return")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--by", "returned_by", required=True, help="Who took the items back.")
@click.option("--at", "returned_at", type=DATE_TIME, default=None, help="Return time (UTC).")
@click.option("--condition", type=_CONDITIONS, default="good", show_default=True)
@click.option(
    "--damaged",
    "damaged",
    multiple=True,
    help="ProductId[/VariantId] returned damaged (goes to maintenance). Repeat for several.",
)
@click.option("--damage-fee", default=None, help="Damage charge (e.g. 40.00).")
@click.option("--late-fee", default=None, help="Override the computed late fee.")
@click.option("--notes", default=None, help="Free-text notes.")
@click.pass_obj
def order_return(
    settings: Settings,
    order_id: int,
    returned_by: str,
    returned_at: datetime | None,
    condition: str,
    damaged: tuple[str, ...],
    damage_fee: str | None,
    late_fee: str | None,
    notes: str | None,
) -> None:
    """Take the items back and settle late and damage fees."""
    handler = ProcessReturnHandler(
        reservation_coordinator(settings), notifier=notifier(), retry=retry_policy(settings)
    )

    try:
        info = ReturnInfo(
            returned_by=returned_by,
            returned_at=as_utc(returned_at),
            condition=ItemCondition(condition),
            item_conditions={parse_stock_ref(ref): ItemCondition.DAMAGED for ref in damaged},
            damage_fee=Money.of(damage_fee) if damage_fee else None,
            late_fee_override=Money.of(late_fee) if late_fee else None,
            notes=notes,
        )
        outcome = handler.handle(order_id, info)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} returned.")
    click.echo(f"  Late days:  {outcome.late_days}")
    click.echo(f"  Late fee:   {outcome.late_fee}")
    click.echo(f"  Damage fee: {outcome.damage_fee}")
    click.echo(f"  Total:      {outcome.total}")


@click.command("extend")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--end", required=True, type=DATE_TIME, help="New rental end (UTC).")
@click.pass_obj
def order_extend(settings: Settings, order_id: int, end: datetime) -> None:
    """Extend a running rental, if the extra days are free."""
    handler = ExtendRentalHandler(
        reservation_coordinator(settings), retry=retry_policy(settings)
    )

    try:
        dto = handler.handle(order_id, as_utc(end))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} extended, new total {dto.total}.")


@click.command("cleanup")
@click.pass_obj
def order_cleanup(settings: Settings) -> None:
    """Cancel held orders whose soft hold has expired."""
    handler = CleanupExpiredHandler(reservation_coordinator(settings), notifier=notifier())
    released = handler.handle()

    if not released:
        click.echo("No expired holds.")
        return
    click.echo(f"Released {len(released)} expired hold(s): "
               + ", ".join(f"#{order_id}" for order_id in released))


@click.command("remind")
@click.option("--hours", default=24, show_default=True, type=int, help="Look-ahead window.")
@click.pass_obj
def order_remind(settings: Settings, hours: int) -> None:
    """Send return reminders for rentals due soon or overdue."""
    handler = SendReturnRemindersHandler(
        order_repository(settings), notifier(), window=timedelta(hours=hours)
    )
    reminders = handler.handle()

    if not reminders:
        click.echo("No returns due.")
        return
    for reminder in reminders:
        label = "OVERDUE" if reminder.overdue else "due"
        click.echo(
            f"Order #{reminder.order_id} ({reminder.customer_id}) {label} "
            f"{reminder.due_at:%Y-%m-%d %H:%M UTC}"
        )
