"""scripts/backfill_cleared_cheque_payments.py end to end on a SQLite file."""

import importlib.util
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import func, select

from conftest import OWNER_ID, TODAY
from rent_kernel.db.engine import (
    create_tables,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from rent_kernel.domain.clock import DeterministicClock
from rent_kernel.domain.dtos import Caller, LeaseTerms
from rent_kernel.domain.schedule import RentFrequency
from rent_kernel.models import Payment, Property, Tenant
from rent_services import RentOrchestrator

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "backfill_cleared_cheque_payments.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("backfill_cleared_cheque_payments", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def database_url(tmp_path):
    """File database holding one CLEARED cheque cleared before payments existed."""
    url = f"sqlite:///{tmp_path / 'rent.db'}"
    init_engine_from_url(url)
    create_tables()
    owner = Caller(user_id=OWNER_ID)
    with session_scope() as session:
        prop = Property(
            owner_id=OWNER_ID,
            name="Marina Heights 1204",
            country="AE",
            currency="AED",
            created_by_id=OWNER_ID,
        )
        tenant = Tenant(owner_id=OWNER_ID, name="Asha Verma", created_by_id=OWNER_ID)
        session.add_all([prop, tenant])
        session.flush()
        rent = RentOrchestrator(session, clock=DeterministicClock.on(TODAY))
        lease = rent.leases.create(
            owner,
            LeaseTerms(
                property_id=prop.id,
                tenant_id=tenant.id,
                start_date=date(2026, 1, 1),
                end_date=date(2026, 12, 31),
                rent_frequency=RentFrequency.MONTHLY,
                installment_amount=Decimal("5000"),
                due_day=1,
            ),
        )
        cheque = rent.cheques.create_cheque(
            owner, lease.id, "000123", "Emirates NBD", date(2026, 1, 1), "5000", "Jan"
        )
        cheque.status = "CLEARED"
    reset_engine()
    yield url
    reset_engine()


def _payment_count(url: str) -> int:
    init_engine_from_url(url)
    with session_scope() as session:
        return session.scalar(select(func.count()).select_from(Payment))


class TestBackfillScript:
    def test_requires_database_url(self, monkeypatch, capsys):
        monkeypatch.delenv("DATABASE_URL", raising=False)

        assert _load_script().main([]) == 2
        assert "DATABASE_URL" in capsys.readouterr().err

    def test_dry_run(self, database_url, capsys):
        assert _load_script().main(["--database-url", database_url, "--dry-run"]) == 0

        out = capsys.readouterr().out
        assert "Found 1 cleared cheque(s) without payments." in out
        assert "Dry run" in out
        assert _payment_count(database_url) == 0

    def test_creates_missing_payment(self, database_url, capsys):
        assert _load_script().main(["--database-url", database_url]) == 0

        assert "Done. Created: 1, Errors: 0" in capsys.readouterr().out
        assert _payment_count(database_url) == 1

    def test_database_url_from_environment(self, database_url, monkeypatch, capsys):
        monkeypatch.setenv("DATABASE_URL", database_url)

        assert _load_script().main([]) == 0
        assert "Created: 1" in capsys.readouterr().out
