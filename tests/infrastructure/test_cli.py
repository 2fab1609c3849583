"""End-to-end tests for the ``rentals`` command line."""

import logging

import pytest
from click.testing import CliRunner

from rentals.infrastructure.cli.main import cli
from rentals.infrastructure.logging_config import ROOT_LOGGER


@pytest.fixture(autouse=True)
def _detach_log_handlers():
    yield
    # The handlers point at the runner's captured stream, which is closed now.
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def run(tmp_path):
    runner = CliRunner()
    env = {"RENTALS_DATA_DIR": str(tmp_path), "RENTALS_LOG_LEVEL": "WARNING"}

    def _run(*args: str):
        return runner.invoke(cli, list(args), env=env)

    return _run


def _add_tent(run, quantity: int = 2):
    result = run("product", "add", "--name", "Tent", "--quantity", str(quantity), "--daily-rate", "20")
    assert result.exit_code == 0, result.output
    return result


def _reserve(run, qty: int = 1, start: str = "2030-01-02", end: str = "2030-01-05"):
    return run(
        "order", "reserve",
        "--customer", "cust-1",
        "--vendor", "vendor-1",
        "--items", f"1:{qty}",
        "--start", start,
        "--end", end,
    )


class TestProductCommands:

    def test_add_and_list(self, run):
        result = _add_tent(run)
        assert "Product #1 'Tent' added" in result.output

        result = run("product", "list")
        assert result.exit_code == 0
        assert "Tent" in result.output
        assert "$20.00" in result.output

    def test_add_with_variant(self, run):
        result = run(
            "product", "add", "--name", "Bike", "--quantity", "0",
            "--daily-rate", "15", "--variant", "l:Large:2",
        )
        assert result.exit_code == 0, result.output
        assert "variant l 'Large': 2 unit(s)" in result.output

    def test_bad_variant_format(self, run):
        result = run(
            "product", "add", "--name", "Bike", "--quantity", "0",
            "--daily-rate", "15", "--variant", "large",
        )
        assert result.exit_code != 0
        assert "Invalid variant format" in result.output

    def test_empty_catalog(self, run):
        assert "No products found." in run("product", "list").output


class TestOrderLifecycle:

    def test_reserve_confirm_pickup_return(self, run):
        _add_tent(run)

        result = _reserve(run, qty=2)
        assert result.exit_code == 0, result.output
        assert "Order #1 held until" in result.output

        result = run("order", "confirm", "--id", "1")
        assert result.exit_code == 0, result.output
        assert "Order #1 confirmed" in result.output

        result = run("order", "ready", "--id", "1")
        assert result.exit_code == 0, result.output

        result = run("order", "pickup", "--id", "1", "--by", "Dana")
        assert result.exit_code == 0, result.output

        result = run("order", "return", "--id", "1", "--by", "vendor-1", "--at", "2030-01-05T01:00")
        assert result.exit_code == 0, result.output
        assert "Late days:  0" in result.output
        assert "Total:      $120.00" in result.output

        result = run("order", "show", "--id", "1")
        assert result.exit_code == 0, result.output
        assert "status=returned" in result.output
        assert "Stock movements:" in result.output

    def test_overbooking_is_refused(self, run):
        _add_tent(run, quantity=1)
        assert _reserve(run).exit_code == 0

        result = _reserve(run, start="2030-01-03", end="2030-01-04")
        assert result.exit_code != 0
        assert "not available" in result.output

    def test_release(self, run):
        _add_tent(run)
        _reserve(run)
        run("order", "confirm", "--id", "1")

        result = run("order", "release", "--id", "1", "--reason", "rain")
        assert result.exit_code == 0, result.output
        assert "Order #1 cancelled." in result.output

        result = run("order", "release", "--id", "1")
        assert result.exit_code != 0
        assert "cannot be released" in result.output

    def test_late_and_damaged_return(self, run):
        _add_tent(run, quantity=1)
        _reserve(run)
        run("order", "confirm", "--id", "1")
        run("order", "pickup", "--id", "1", "--by", "Dana")

        result = run(
            "order", "return", "--id", "1", "--by", "vendor-1",
            "--at", "2030-01-06T12:00", "--damaged", "1", "--damage-fee", "40",
        )
        assert result.exit_code == 0, result.output
        # Due Jan 5 00:00, two hours' grace, back Jan 6 12:00: two late days at 20% of $20.
        assert "Late days:  2" in result.output
        assert "Late fee:   $8.00" in result.output
        assert "Damage fee: $40.00" in result.output

        result = run("stock", "ledger", "--product", "1")
        assert result.exit_code == 0, result.output
        assert "maintenance" in result.output

        result = run("stock", "repair", "--product", "1", "--quantity", "1")
        assert result.exit_code == 0, result.output

    def test_damaged_variant_goes_to_maintenance_alone(self, run):
        run(
            "product", "add", "--name", "Bike", "--quantity", "0", "--daily-rate", "15",
            "--variant", "l:Large:1", "--variant", "s:Small:1",
        )
        run(
            "order", "reserve", "--customer", "c", "--vendor", "v", "--items", "1/l:1,1/s:1",
            "--start", "2030-01-02", "--end", "2030-01-05",
        )
        run("order", "confirm", "--id", "1")
        run("order", "pickup", "--id", "1", "--by", "Dana")

        result = run(
            "order", "return", "--id", "1", "--by", "vendor-1",
            "--at", "2030-01-05", "--damaged", "1/l",
        )
        assert result.exit_code == 0, result.output

        large = run(
            "availability", "check", "--product", "1", "--variant", "l",
            "--start", "2030-02-01", "--end", "2030-02-02",
        )
        small = run(
            "availability", "check", "--product", "1", "--variant", "s",
            "--start", "2030-02-01", "--end", "2030-02-02",
        )
        assert large.output.startswith("UNAVAILABLE")
        assert small.output.startswith("AVAILABLE")

    def test_extend(self, run):
        _add_tent(run)
        _reserve(run)
        run("order", "confirm", "--id", "1")

        result = run("order", "extend", "--id", "1", "--end", "2030-01-07")
        assert result.exit_code == 0, result.output
        assert "new total $100.00" in result.output

    def test_unknown_order(self, run):
        result = run("order", "show", "--id", "9")
        assert result.exit_code != 0
        assert "Order #9 not found" in result.output

    def test_cleanup_with_nothing_expired(self, run):
        _add_tent(run)
        _reserve(run)
        result = run("order", "cleanup")
        assert result.exit_code == 0
        assert "No expired holds." in result.output

    def test_bad_items_format(self, run):
        result = run(
            "order", "reserve", "--customer", "c", "--vendor", "v",
            "--items", "tent", "--start", "2030-01-02", "--end", "2030-01-03",
        )
        assert result.exit_code != 0
        assert "Invalid item format" in result.output


class TestAvailabilityCommands:

    def test_check_and_calendar(self, run):
        _add_tent(run, quantity=2)
        _reserve(run, qty=1)

        result = run(
            "availability", "check", "--product", "1",
            "--start", "2030-01-03", "--end", "2030-01-04", "--quantity", "2",
        )
        assert result.exit_code == 0, result.output
        assert "UNAVAILABLE" in result.output
        assert "conflict: order #1" in result.output

        result = run(
            "availability", "calendar", "--product", "1",
            "--start", "2030-01-01", "--end", "2030-01-03",
        )
        assert result.exit_code == 0, result.output
        assert "2030-01-01" in result.output
        assert "2030-01-02" in result.output

    def test_next(self, run):
        _add_tent(run)
        result = run("availability", "next", "--product", "1", "--days", "3")
        assert result.exit_code == 0, result.output
        assert "Next available:" in result.output

    def test_invalid_range(self, run):
        _add_tent(run)
        result = run(
            "availability", "check", "--product", "1",
            "--start", "2030-01-05", "--end", "2030-01-04",
        )
        assert result.exit_code != 0
        assert "must be after" in result.output


class TestHelp:

    def test_help_states_single_writer_per_data_dir(self, run):
        result = run("--help")
        assert result.exit_code == 0
        text = " ".join(result.output.split())
        assert "Run a single writer per data directory" in text
