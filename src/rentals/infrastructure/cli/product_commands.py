"""CLI commands for the Product catalog."""

from __future__ import annotations

import click

from rentals.application.add_product import AddProductHandler
from rentals.domain.exceptions import DomainException
from rentals.infrastructure.bootstrap import product_repository
from rentals.infrastructure.cli.parsing import parse_variant
from rentals.infrastructure.config import Settings


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--quantity", required=True, type=int, help="Units owned.")
@click.option("--daily-rate", required=True, help="Price per unit per day (e.g. 15.00).")
@click.option(
    "--variant",
    "variants",
    multiple=True,
    help="Variant as 'Id:Name:Quantity'. Repeat for several.",
)
@click.pass_obj
def product_add(
    settings: Settings, name: str, quantity: int, daily_rate: str, variants: tuple[str, ...]
) -> None:
    """Add a new rentable product to the catalog."""
    handler = AddProductHandler(product_repo=product_repository(settings))

    try:
        product = handler.handle(
            name=name,
            quantity=quantity,
            daily_rate=daily_rate,
            variants=[parse_variant(v) for v in variants],
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Product #{product.id} '{product.name}' added: "
        f"{product.quantity_on_hand} unit(s) at {product.daily_rate}/day"
    )
    for variant in product.variants:
        click.echo(f"  variant {variant.id} '{variant.name}': {variant.quantity_on_hand} unit(s)")


@click.command("list")
@click.pass_obj
def product_list(settings: Settings) -> None:
    """List all products in the catalog."""
    products = product_repository(settings).list_all()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Qty':>5} {'Rate/day':>10} {'Rentable':>9}")
    click.echo("-" * 54)
    for p in products:
        click.echo(
            f"{p.id:<6} {p.name:<20} {p.quantity_on_hand:>5} "
            f"{str(p.daily_rate):>10} {'yes' if p.is_rentable else 'no':>9}"
        )
        for v in p.variants:
            click.echo(f"{'':<6}   {v.id}: {v.name} ({v.quantity_on_hand})")
