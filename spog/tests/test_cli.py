"""Tests for the administration CLI."""

import pytest

from spog.services import user_service
from spog.utils import cli


class TestCheckConsumption:
    """Test the check-consumption command."""

    def test_fits(self, capsys):
        """Test 250 mL from 0.5 L is accepted."""
        assert cli.main(["check-consumption", "250", "mL", "0.5", "L"]) == 0
        out = capsys.readouterr().out
        assert "New balance:   0.25 L" in out
        assert "VALID" in out

    def test_insufficient(self, capsys):
        """Test 600 mL from 0.5 L is refused with exit code 2."""
        assert cli.main(["check-consumption", "600", "mL", "0.5", "L"]) == 2
        assert "INSUFFICIENT STOCK" in capsys.readouterr().out

    def test_strict_cross_family(self, capsys):
        """Test strict mode refuses grams against litres."""
        assert cli.main(["check-consumption", "5", "g", "1", "L", "--strict"]) == 1
        assert capsys.readouterr().out.startswith("ERROR:")


class TestAdminCommands:
    """Test database and account commands."""

    def test_no_command(self, capsys):
        """Test running without a command prints help."""
        assert cli.main([]) == 1

    def test_reset_needs_confirmation(self, capsys):
        """Test reset-db refuses to run without --yes."""
        assert cli.main(["reset-db"]) == 1
        assert "--yes" in capsys.readouterr().out

    def test_create_user(self, test_db, monkeypatch, capsys):
        """Test create-user makes a verified account."""
        monkeypatch.setattr(cli, "initialize_app_database", lambda: None)

        code = cli.main(
            [
                "create-user",
                "--email",
                "Admin@Example.com",
                "--password",
                "changeme1",
                "--first-name",
                "Ada",
                "--last-name",
                "Admin",
                "--role",
                "admin",
            ]
        )

        assert code == 0
        user = user_service.get_user_by_email("admin@example.com")
        assert user.role == "admin"
        assert user.email_verified is True

    def test_create_user_invalid(self, test_db, monkeypatch, capsys):
        """Test service errors become exit code 1."""
        monkeypatch.setattr(cli, "initialize_app_database", lambda: None)
        code = cli.main(
            [
                "create-user",
                "--email",
                "bad",
                "--password",
                "x",
                "--first-name",
                "A",
                "--last-name",
                "B",
            ]
        )
        assert code == 1
        assert "ERROR" in capsys.readouterr().out

    def test_unknown_role_rejected_by_parser(self):
        """Test argparse limits roles."""
        with pytest.raises(SystemExit):
            cli.main(["create-user", "--email", "a@b.co", "--role", "owner"])
