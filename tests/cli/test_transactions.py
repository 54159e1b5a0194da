"""Tests for the transactions CLI commands."""

import csv
from argparse import Namespace
from datetime import datetime

import pytest

from cli.transactions import _parse_month, cmd_export


class TestParseMonth:
    """Tests for _parse_month function."""

    def test_valid_month(self):
        """Test a YYYY/MM value parses to the 1st of the month."""
        assert _parse_month("2025/03").isoformat() == "2025-03-01"

    def test_invalid_month(self):
        """Test month numbers outside 1-12 are rejected."""
        with pytest.raises(ValueError):
            _parse_month("2025/13")


class TestExport:
    """Tests for cmd_export function."""

    def test_export_month(self, services, tmp_path):
        """Test a month of transactions is written to CSV."""
        services.transactions.create(
            "alice", 12.5, "Lunch", "Food", "expense",
            tags=["work", "team"], now=datetime(2025, 1, 10, 13, 0),
        )
        services.transactions.create(
            "alice", 30, "Taxi", "Transport", "expense", now=datetime(2025, 2, 1)
        )
        output = tmp_path / "exports" / "jan.csv"

        cmd_export(Namespace(user="alice", month="2025/01", output=str(output)), services)

        with open(output, newline="") as f:
            rows = list(csv.DictReader(f))

        assert len(rows) == 1
        assert rows[0]["amount"] == "12.50"
        assert rows[0]["category"] == "Food"
        assert rows[0]["tags"] == "work;team"
        assert rows[0]["date"] == "2025-01-10T13:00:00"

    def test_export_requires_user(self, services, tmp_path):
        """Test exporting without a user exits with an error."""
        args = Namespace(user=None, month="2025/01", output=str(tmp_path / "out.csv"))

        with pytest.raises(SystemExit):
            cmd_export(args, services)
