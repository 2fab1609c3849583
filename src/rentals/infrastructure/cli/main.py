import click

from rentals.domain.exceptions import DomainException
from rentals.infrastructure.cli.availability_commands import (
    availability_calendar,
    availability_check,
    availability_next,
)
from rentals.infrastructure.cli.order_commands import (
    order_cleanup,
    order_confirm,
    order_extend,
    order_pickup,
    order_ready,
    order_release,
    order_remind,
    order_reserve,
    order_return,
    order_show,
)
from rentals.infrastructure.cli.product_commands import product_add, product_list
from rentals.infrastructure.cli.stock_commands import stock_ledger_show, stock_repair
from rentals.infrastructure.config import Settings
from rentals.infrastructure.logging_config import setup_logging


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Rentals — availability and reservation engine

    Stock locks live inside one process. Run a single writer per data
    directory; separate processes are kept apart only by the per-order
    version check, not per product.
    """
    try:
        settings = Settings.from_env()
    except DomainException as exc:
        raise click.ClickException(str(exc))
    setup_logging(settings.log_level, settings.log_dir)
    ctx.obj = settings


@cli.group()
def product() -> None:
    """Manage the rental catalog."""


@cli.group()
def availability() -> None:
    """Query availability."""


@cli.group()
def order() -> None:
    """Manage rental orders."""


@cli.group()
def stock() -> None:
    """Inspect and adjust the stock ledger."""


# Register subcommands
product.add_command(product_add)
product.add_command(product_list)
availability.add_command(availability_check)
availability.add_command(availability_calendar)
availability.add_command(availability_next)
order.add_command(order_reserve)
order.add_command(order_confirm)
order.add_command(order_release)
order.add_command(order_ready)
order.add_command(order_pickup)
order.add_command(order_return)
order.add_command(order_extend)
order.add_command(order_show)
order.add_command(order_cleanup)
order.add_command(order_remind)
stock.add_command(stock_ledger_show)
stock.add_command(stock_repair)
