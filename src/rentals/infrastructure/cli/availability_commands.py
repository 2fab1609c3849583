"""CLI commands for availability queries."""

from __future__ import annotations

from datetime import datetime

import click

from rentals.application.check_availability import (
    AvailabilityCalendarHandler,
    CheckAvailabilityHandler,
    NextAvailableDateHandler,
)
from rentals.domain.exceptions import DomainException
from rentals.infrastructure.bootstrap import availability_checker
from rentals.infrastructure.cli.parsing import DATE_TIME, as_utc
from rentals.infrastructure.config import Settings


@click.command("check")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--variant", "variant_id", default=None, help="Variant ID.")
@click.option("--start", required=True, type=DATE_TIME, help="Rental start (UTC).")
@click.option("--end", required=True, type=DATE_TIME, help="Rental end, exclusive (UTC).")
@click.option("--quantity", default=1, show_default=True, type=int, help="Units wanted.")
@click.pass_obj
def availability_check(
    settings: Settings,
    product_id: str,
    variant_id: str | None,
    start: datetime,
    end: datetime,
    quantity: int,
) -> None:
    """Check whether units are free for a rental window."""
    handler = CheckAvailabilityHandler(availability_checker(settings))

    try:
        result = handler.handle(
            product_id, as_utc(start), as_utc(end), quantity=quantity, variant_id=variant_id
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    verdict = "AVAILABLE" if result.available else "UNAVAILABLE"
    click.echo(f"{verdict}: product {product_id} for {result.period}")
    click.echo(
        f"  total {result.total_quantity}, reserved {result.reserved_quantity}, "
        f"free {result.available_quantity}, requested {result.requested_quantity}"
    )
    for conflict in result.conflicts:
        click.echo(
            f"  conflict: order #{conflict.order_id} holds {conflict.quantity} "
            f"for {conflict.period}"
        )


@click.command("calendar")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--variant", "variant_id", default=None, help="Variant ID.")
@click.option("--start", required=True, type=DATE_TIME, help="First day (UTC).")
@click.option("--end", required=True, type=DATE_TIME, help="Day after the last (UTC).")
@click.pass_obj
def availability_calendar(
    settings: Settings,
    product_id: str,
    variant_id: str | None,
    start: datetime,
    end: datetime,
) -> None:
    """Show per-day availability for a product."""
    handler = AvailabilityCalendarHandler(availability_checker(settings))

    try:
        days = handler.handle(product_id, as_utc(start), as_utc(end), variant_id=variant_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{'Date':<12} {'Total':>6} {'Reserved':>9} {'Free':>6}")
    click.echo("-" * 36)
    for day in days:
        click.echo(
            f"{day.date.isoformat():<12} {day.total:>6} {day.reserved:>9} {day.available:>6}"
        )


@click.command("next")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--variant", "variant_id", default=None, help="Variant ID.")
@click.option("--quantity", default=1, show_default=True, type=int, help="Units wanted.")
@click.option("--days", default=1, show_default=True, type=int, help="Rental length in days.")
@click.pass_obj
def availability_next(
    settings: Settings,
    product_id: str,
    variant_id: str | None,
    quantity: int,
    days: int,
) -> None:
    """Find the first free window starting today or later."""
    handler = NextAvailableDateHandler(availability_checker(settings))

    try:
        result = handler.handle(
            product_id, quantity=quantity, duration_days=days, variant_id=variant_id
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if result.found:
        click.echo(f"Next available: {result.start:%Y-%m-%d} to {result.end:%Y-%m-%d}")
    else:
        click.echo(result.message)
