"""Tests for the management script helpers."""

from pathlib import Path

import pytest
from click.testing import CliRunner
from sqlalchemy import update

import manage
from conftest import ALICE_ID, TOWER_ID
from shareledger.models import Property
from shareledger.services import ledger

PROPERTIES_FILE = Path(__file__).parent.parent / "data" / "properties.json"


@pytest.mark.asyncio
async def test_db_load_properties(test_sessionmaker):
    """Test loading the sample property file, then skipping on reload."""
    loaded, skipped = await manage._db_load_properties(
        PROPERTIES_FILE, session_factory=test_sessionmaker
    )
    assert (loaded, skipped) == (3, 0)

    loaded, skipped = await manage._db_load_properties(
        PROPERTIES_FILE, session_factory=test_sessionmaker
    )
    assert (loaded, skipped) == (0, 3)

    properties = await manage._db_show_properties(session_factory=test_sessionmaker)
    assert {p.id for p in properties} == {
        "harbor-view-lofts",
        "maple-street-duplex",
        "canal-court-offices",
    }
    assert all(p.available_shares == p.total_shares for p in properties)


@pytest.mark.asyncio
async def test_count_records(test_sessionmaker, test_session, sample_data):
    """Test record counts per table."""
    await ledger.buy_shares(test_session, TOWER_ID, ALICE_ID, 5)

    counts = await manage._count_records(session_factory=test_sessionmaker)

    assert counts == {"profiles": 2, "properties": 1, "holdings": 1, "transactions": 1}


@pytest.mark.asyncio
async def test_unbalanced_properties(test_sessionmaker, test_session, sample_data):
    """Test that the status check finds properties breaking the invariant."""
    await ledger.buy_shares(test_session, TOWER_ID, ALICE_ID, 5)
    assert await manage._unbalanced_properties(session_factory=test_sessionmaker) == []

    await test_session.execute(
        update(Property).where(Property.id == TOWER_ID).values(available_shares=100)
    )
    await test_session.commit()

    unbalanced = await manage._unbalanced_properties(session_factory=test_sessionmaker)
    assert [property_id for property_id, _ in unbalanced] == [TOWER_ID]
    state = unbalanced[0][1]
    assert (state.available_shares, state.held_shares, state.total_shares) == (100, 5, 100)


def test_properties_show(monkeypatch):
    """Test the API-backed property table."""
    monkeypatch.setattr(
        manage,
        "_api_show_properties",
        lambda base_url: [
            {
                "id": "harbor-view-lofts",
                "name": "Harbor View Lofts",
                "available_shares": 9500,
                "total_shares": 10000,
                "price_per_share": "25.00",
            }
        ],
    )

    result = CliRunner().invoke(manage.cli, ["properties", "show"])

    assert result.exit_code == 0
    assert "Harbor View Lofts" in result.output
    assert "9,500" in result.output
    assert "Total: 1 properties" in result.output


def test_properties_show_empty(monkeypatch):
    """Test the property table with nothing listed."""
    monkeypatch.setattr(manage, "_api_show_properties", lambda base_url: [])

    result = CliRunner().invoke(manage.cli, ["properties", "show"])

    assert result.exit_code == 0
    assert "No properties found." in result.output


def test_db_status_creates_tables_first(monkeypatch):
    """Test that db status runs init_db before counting."""
    steps = []

    async def fake_init_db():
        steps.append("init")

    async def fake_count_records():
        steps.append("count")
        return {"profiles": 0, "properties": 0, "holdings": 0, "transactions": 0}

    async def fake_unbalanced_properties():
        steps.append("check")
        return []

    monkeypatch.setattr(manage, "init_db", fake_init_db)
    monkeypatch.setattr(manage, "_count_records", fake_count_records)
    monkeypatch.setattr(manage, "_unbalanced_properties", fake_unbalanced_properties)

    result = CliRunner().invoke(manage.cli, ["db", "status"])

    assert result.exit_code == 0
    assert steps == ["init", "count", "check"]
    assert "all properties balanced" in result.output
