#!/usr/bin/env python3
"""
Management script for the share ledger.

Usage (via API):
    python manage.py properties load [-f data/properties.json] [--base-url http://localhost:8000]
    python manage.py properties show [--base-url http://localhost:8000]

Usage (direct DB access):
    python manage.py db properties load [-f data/properties.json]
    python manage.py db properties show
    python manage.py db clear
    python manage.py db status
"""

import asyncio
import json
from decimal import Decimal
from pathlib import Path

import click
import httpx
from sqlalchemy import func, select

from shareledger.database import AsyncSessionLocal, Base, engine, init_db
from shareledger.models import Holding, Profile, Property, Transaction
from shareledger.schemas.properties import PropertyCreate
from shareledger.services import ledger as ledger_service
from shareledger.services import properties as property_service


DEFAULT_BASE_URL = "http://localhost:8000"


# ============================================================================
# Direct database operations (internal)
# ============================================================================


async def _clear_db():
    """Drop and recreate all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _db_load_properties(filepath: Path, session_factory=AsyncSessionLocal):
    """Load properties from a JSON file directly to DB."""
    with open(filepath) as f:
        properties_data = json.load(f)

    async with session_factory() as session:
        loaded = 0
        skipped = 0

        for data in properties_data:
            if data.get("id") and await session.get(Property, data["id"]):
                skipped += 1
                click.echo(f"  Skipped {data['id']} (already exists)")
                continue

            prop = await property_service.create_property(session, PropertyCreate(**data))
            loaded += 1
            click.echo(f"  Loaded {prop.id}: {prop.name}")

    return loaded, skipped


async def _db_show_properties(session_factory=AsyncSessionLocal):
    """Show all properties from DB."""
    async with session_factory() as session:
        return await property_service.list_properties(session)


async def _count_records(session_factory=AsyncSessionLocal):
    """Count records in each table."""
    async with session_factory() as session:
        counts = {}
        for model, name in [
            (Profile, "profiles"),
            (Property, "properties"),
            (Holding, "holdings"),
            (Transaction, "transactions"),
        ]:
            result = await session.execute(select(func.count()).select_from(model))
            counts[name] = int(result.scalar_one())
        return counts


async def _unbalanced_properties(session_factory=AsyncSessionLocal):
    """Find properties where available + held != total."""
    async with session_factory() as session:
        result = await session.execute(select(Property.id).order_by(Property.id))
        unbalanced = []
        for property_id in result.scalars().all():
            state = await ledger_service.get_property_ledger_state(session, property_id)
            if not state.balanced:
                unbalanced.append((property_id, state))
        return unbalanced


# ============================================================================
# API operations
# ============================================================================


def _api_load_properties(filepath: Path, base_url: str):
    """Load properties via API."""
    with open(filepath) as f:
        properties_data = json.load(f)

    loaded = 0
    skipped = 0
    errors = 0

    with httpx.Client(base_url=base_url, timeout=30) as client:
        for data in properties_data:
            response = client.post("/api/properties", json=data)

            if response.status_code == 201:
                loaded += 1
                click.echo(f"  Loaded {response.json()['id']}: {data['name']}")
            elif response.status_code == 409:
                skipped += 1
                click.echo(f"  Skipped {data.get('id')} (already exists)")
            else:
                errors += 1
                error_detail = response.json().get("detail", response.text)
                click.echo(f"  Error {data['name']}: {error_detail}", err=True)

    return loaded, skipped, errors


def _api_show_properties(base_url: str):
    """Get properties via API."""
    with httpx.Client(base_url=base_url, timeout=30) as client:
        response = client.get("/api/properties")
        if response.status_code == 404:
            raise click.ClickException(
                f"Endpoint not found. Is the Share Ledger API running at {base_url}?"
            )
        response.raise_for_status()
        return response.json()["properties"]


def _print_properties(rows):
    """Print (id, name, available, total, price) rows as a table."""
    if not rows:
        click.echo("No properties found.")
        return

    click.echo(f"\n{'ID':<38} {'Name':<28} {'Available':>12} {'Total':>12} {'Price':>10}")
    click.echo("-" * 104)
    for property_id, name, available, total, price in rows:
        click.echo(
            f"{property_id:<38} {name[:28]:<28} {available:>12,} {total:>12,} {Decimal(price):>10.2f}"
        )
    click.echo(f"\nTotal: {len(rows)} properties")


# ============================================================================
# CLI: Main group
# ============================================================================


@click.group()
def cli():
    """Share ledger management commands."""
    pass


# ============================================================================
# CLI: properties (via API)
# ============================================================================


@cli.group()
def properties():
    """Manage properties (via API)."""
    pass


@properties.command("load")
@click.option(
    "--file", "-f",
    default="data/properties.json",
    type=click.Path(exists=True),
    help="JSON file with property data",
)
@click.option(
    "--base-url", "-u",
    default=DEFAULT_BASE_URL,
    help=f"API base URL (default: {DEFAULT_BASE_URL})",
)
def properties_load(file, base_url):
    """Load properties from a JSON file via API."""
    click.echo(f"Loading properties from {file} via {base_url}...")

    try:
        loaded, skipped, errors = _api_load_properties(Path(file), base_url)
        click.echo(f"\nDone: {loaded} loaded, {skipped} skipped, {errors} errors")
    except httpx.ConnectError:
        click.echo(f"\nError: Could not connect to {base_url}", err=True)
        click.echo("Is the server running? Start it with: uvicorn shareledger.main:app", err=True)
        raise SystemExit(1)


@properties.command("show")
@click.option(
    "--base-url", "-u",
    default=DEFAULT_BASE_URL,
    help=f"API base URL (default: {DEFAULT_BASE_URL})",
)
def properties_show(base_url):
    """Show all properties via API."""
    try:
        properties_list = _api_show_properties(base_url)
    except httpx.ConnectError:
        click.echo(f"\nError: Could not connect to {base_url}", err=True)
        click.echo("Is the server running? Start it with: uvicorn shareledger.main:app", err=True)
        raise SystemExit(1)

    _print_properties([
        (p["id"], p["name"], p["available_shares"], p["total_shares"], p["price_per_share"])
        for p in properties_list
    ])


# ============================================================================
# CLI: db (direct database access)
# ============================================================================


@cli.group()
def db():
    """Direct database management (bypasses API)."""
    pass


@db.command("clear")
@click.confirmation_option(prompt="Are you sure you want to clear all data?")
def db_clear():
    """Clear all data from the database (destructive!)."""
    click.echo("Clearing database...")
    asyncio.run(_clear_db())
    click.echo("Database cleared and tables recreated.")


@db.command("status")
def db_status():
    """Show record counts and check the share supply invariant."""

    async def run():
        await init_db()
        return await _count_records(), await _unbalanced_properties()

    counts, unbalanced = asyncio.run(run())

    click.echo("\nDatabase Status:")
    click.echo("-" * 30)
    for table, count in counts.items():
        click.echo(f"  {table:<15} {count:>10,}")
    click.echo("-" * 30)
    click.echo(f"  {'Total':<15} {sum(counts.values()):>10,}")

    if not unbalanced:
        click.echo("\nLedger: all properties balanced (available + held == total)")
        return

    click.echo(f"\nLedger: {len(unbalanced)} unbalanced properties", err=True)
    for property_id, state in unbalanced:
        click.echo(
            f"  {property_id}: available {state.available_shares} + held "
            f"{state.held_shares} != total {state.total_shares}",
            err=True,
        )
    raise SystemExit(1)


# ============================================================================
# CLI: db properties (direct database access for properties)
# ============================================================================


@db.group("properties")
def db_properties():
    """Manage properties directly in database."""
    pass


@db_properties.command("load")
@click.option(
    "--file", "-f",
    default="data/properties.json",
    type=click.Path(exists=True),
    help="JSON file with property data",
)
def db_properties_load(file):
    """Load properties from a JSON file directly to database."""
    click.echo(f"Loading properties from {file} (direct DB)...")

    async def run():
        await init_db()
        return await _db_load_properties(Path(file))

    loaded, skipped = asyncio.run(run())
    click.echo(f"\nDone: {loaded} loaded, {skipped} skipped")


@db_properties.command("show")
def db_properties_show():
    """Show all properties from database."""

    async def run():
        await init_db()
        return await _db_show_properties()

    properties_list = asyncio.run(run())
    _print_properties([
        (p.id, p.name, p.available_shares, p.total_shares, p.price_per_share)
        for p in properties_list
    ])


if __name__ == "__main__":
    cli()
