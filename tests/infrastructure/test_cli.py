"""CLI tests through click's CliRunner against a temporary SQLite file."""

import pytest
from click.testing import CliRunner

from storefront.infrastructure import bootstrap
from storefront.infrastructure.cli import main as cli_main

CONTACT_ARGS = [
    "--name", "Ada Lovelace",
    "--email", "ada@example.com",
    "--street", "12 Analytical Way",
    "--city", "London",
    "--state", "LN",
    "--postal-code", "N1 9GU",
    "--country", "UK",
]


@pytest.fixture
def run(tmp_path, monkeypatch):
    monkeypatch.setenv("STOREFRONT_DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setattr(cli_main, "configure_logging", lambda *args, **kwargs: None)
    bootstrap.reset()
    runner = CliRunner()

    def invoke(*args: str):
        return runner.invoke(cli_main.cli, list(args), catch_exceptions=False)

    yield invoke
    bootstrap.reset()


@pytest.fixture
def seeded(run):
    assert run("init-db").exit_code == 0
    assert run("catalog", "add-item", "--name", "Shirt", "--price", "20.00", "--available", "3").exit_code == 0
    assert run(
        "catalog", "add-combination", "--item", "1", "--attr", "size=M", "--available", "1"
    ).exit_code == 0
    return run


class TestCatalogCommands:

    def test_list(self, seeded):
        result = seeded("catalog", "list")
        assert result.exit_code == 0
        assert "item:1" in result.output
        assert "Shirt (size=M)" in result.output

    def test_set_availability_and_low_report(self, seeded):
        assert seeded("catalog", "set-availability", "--ref", "item:1", "--quantity", "50").exit_code == 0
        result = seeded("catalog", "low")
        assert "combination:1-1" in result.output
        assert "item:1 " not in result.output

    def test_bad_ref(self, seeded):
        result = seeded("catalog", "set-availability", "--ref", "widget:1", "--quantity", "5")
        assert result.exit_code == 2
        assert "Invalid reference" in result.output

    def test_unknown_item_price(self, seeded):
        result = seeded("catalog", "set-price", "--id", "99", "--price", "1.00")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestOrderCommands:

    def test_guest_checkout_and_show(self, seeded):
        result = seeded(
            "order", "checkout", "--guest-session", "sess-1",
            "--items", "item:1:2,combination:1-1:1", *CONTACT_ARGS,
        )
        assert result.exit_code == 0, result.output
        assert "Order #1 committed." in result.output
        assert "$60.00" in result.output

        shown = seeded("order", "show", "--id", "1")
        assert "status=pending, payment=unpaid" in shown.output
        assert "Shirt (size=M)" in shown.output

    def test_insufficient_availability_message(self, seeded):
        result = seeded(
            "order", "checkout", "--guest-session", "sess-1",
            "--items", "item:1:9", *CONTACT_ARGS,
        )
        assert result.exit_code == 1
        assert "no longer available" in result.output

    def test_discount_applied(self, seeded):
        assert seeded("discount", "add", "--code", "tenoff", "--kind", "fixed", "--value", "10").exit_code == 0
        result = seeded(
            "order", "checkout", "--guest-session", "sess-1",
            "--items", "item:1:1", "--discount", "TENOFF", *CONTACT_ARGS,
        )
        assert "Discount: -$10.00" in result.output
        assert "Total:    $10.00" in result.output

    def test_lifecycle(self, seeded):
        seeded("order", "checkout", "--guest-session", "sess-1", "--items", "item:1:1", *CONTACT_ARGS)

        premature = seeded("order", "transition", "--id", "1", "--status", "shipped")
        assert premature.exit_code == 1

        assert seeded("order", "pay", "--id", "1").exit_code == 0
        assert seeded("order", "transition", "--id", "1", "--status", "processing").exit_code == 0
        shipped = seeded("order", "transition", "--id", "1", "--status", "shipped")
        assert "now shipped / paid" in shipped.output

    def test_customer_cancel_and_list(self, seeded):
        seeded("order", "checkout", "--guest-session", "sess-1", "--items", "item:1:1", *CONTACT_ARGS)
        assert seeded("order", "cancel", "--id", "1", "--guest-session", "sess-1").exit_code == 0

        listed = seeded("order", "list", "--guest-session", "sess-1", "--email", "ada@example.com")
        assert "cancelled" in listed.output
        assert "No orders found." in seeded("order", "list", "--email", "x@example.com").output

    def test_account_checkout(self, seeded):
        assert seeded("account", "add", "--id", "acct-1", "--email", "ada@example.com").exit_code == 0
        result = seeded("order", "checkout", "--account", "acct-1", "--items", "item:1:1", *CONTACT_ARGS)
        assert result.exit_code == 0, result.output

    def test_bad_line_format(self, seeded):
        result = seeded("order", "checkout", "--guest-session", "s", "--items", "item:1", *CONTACT_ARGS)
        assert result.exit_code == 2
        assert "Invalid line format" in result.output
