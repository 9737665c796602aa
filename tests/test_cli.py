"""Tests for the command-line interface."""

from datetime import date
from decimal import Decimal

from bubu.cli.main import cli

USER = "5551234567"
PARTNER = "5559876543"


def run(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


def test_init_categories(cli_runner, temp_db):
    """Test predefined categories are created once."""
    first = run(cli_runner, temp_db, "init-categories")
    assert first.exit_code == 0
    assert "Created 13 predefined categories." in first.output

    second = run(cli_runner, temp_db, "init-categories")
    assert "All 13 predefined categories already exist." in second.output


def test_category_list_and_create(cli_runner, temp_db, seeded_categories):
    """Test listing marks predefined categories and create rejects duplicates."""
    listing = run(cli_runner, temp_db, "category", "list", "--type", "income")
    assert "Nómina *" in listing.output
    assert "Comida" not in listing.output

    created = run(cli_runner, temp_db, "category", "create", "Mascotas", "--icon", "🐶")
    assert created.exit_code == 0
    assert "Created category 'Mascotas'" in created.output

    duplicate = run(cli_runner, temp_db, "category", "create", "mascotas")
    assert duplicate.exit_code == 1
    assert "already exists" in duplicate.output


def test_category_delete(cli_runner, temp_db, seeded_categories, transaction_service, category_service):
    """Test deleting a category moves its transactions to the fallback."""
    pets = category_service.create_category("Mascotas")
    transaction_service.create_transaction(USER, pets.id, "expense", Decimal("250"))

    result = run(cli_runner, temp_db, "category", "delete", "Mascotas")

    assert result.exit_code == 0
    assert "moved 1 transaction(s) to 'Otros Gastos'" in result.output
    assert run(cli_runner, temp_db, "category", "delete", "Comida").exit_code == 1
    assert run(cli_runner, temp_db, "category", "delete", "Nope").exit_code == 1


def test_category_move(cli_runner, temp_db, seeded_categories, transaction_service):
    """Test moving transactions creates the target category when needed."""
    transaction_service.create_transaction(USER, seeded_categories["Comida"].id, "expense", Decimal("90"))

    result = run(cli_runner, temp_db, "category", "move", "Comida", "Antojos", "--phone", "555-123-4567")

    assert result.exit_code == 0
    assert "Moved 1 transaction(s) from 'Comida' to 'Antojos' (created)" in result.output


def test_transaction_list(cli_runner, temp_db, seeded_categories, transaction_service):
    """Test listing a user's transactions with filters."""
    comida = seeded_categories["Comida"]
    transaction_service.create_transaction(USER, comida.id, "expense", Decimal("350"), "tacos", date(2024, 3, 1))
    transaction_service.create_transaction(
        USER, seeded_categories["Nómina"].id, "income", Decimal("15000"), None, date(2024, 3, 2)
    )

    result = run(cli_runner, temp_db, "transaction", "list", "--phone", USER)
    assert result.exit_code == 0
    assert "Found 2 transaction(s)" in result.output
    assert "$15,000.00" in result.output

    filtered = run(
        cli_runner, temp_db, "transaction", "list", "--phone", USER,
        "--type", "expense", "--start-date", "2024-03-01", "--end-date", "2024-03-31",
    )
    assert "Found 1 transaction(s)" in filtered.output
    assert "tacos" in filtered.output

    empty = run(cli_runner, temp_db, "transaction", "list", "--phone", PARTNER)
    assert "No transactions found." in empty.output

    bad_phone = run(cli_runner, temp_db, "transaction", "list", "--phone", "12")
    assert bad_phone.exit_code == 1


def test_balance(cli_runner, temp_db, seeded_categories, shared_service, partners):
    """Test the balance command reports who owes whom."""
    shared_service.register_for(USER, Decimal("200"), seeded_categories["Comida"].id, "expense", None)

    mine = run(cli_runner, temp_db, "balance", "--phone", USER)
    assert mine.exit_code == 0
    assert "Partner owes you $70.00" in mine.output

    theirs = run(cli_runner, temp_db, "balance", "--phone", PARTNER)
    assert "You owe partner $70.00" in theirs.output

    history = run(cli_runner, temp_db, "balance", "--phone", USER, "--history", "3")
    assert history.exit_code == 0
    assert history.output.count("\n") >= 5


def test_balance_without_partner(cli_runner, temp_db):
    """Test the balance command fails cleanly without a partner."""
    result = run(cli_runner, temp_db, "balance", "--phone", USER)
    assert result.exit_code == 1
    assert "Error:" in result.output
