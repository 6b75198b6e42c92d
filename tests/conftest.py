"""Shared fixtures for the unified customer tests."""

from datetime import datetime, timezone
from typing import List, Dict, Optional

import pytest

from unified_customer.models.data_models import CustomerRecord, SourceSystem
from unified_customer.sources.base import CustomerSource


def ts(year, month, day, hour=0):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def record_a(**overrides) -> CustomerRecord:
    """A System A record with contract data and no phone."""
    values = dict(
        id="legacy_001",
        email="max.mustermann@example.de",
        name="Max Mustermann",
        address="Sonnenallee 1, 12345 Berlin",
        contract_start_date="2021-03-15",
        contract_type="RENTAL",
        last_updated=ts(2024, 11, 1),
        source=SourceSystem.SYSTEM_A,
    )
    values.update(overrides)
    return CustomerRecord(**values)


def record_b(**overrides) -> CustomerRecord:
    """A System B record with a phone and no contract data."""
    values = dict(
        id="modern_101",
        email="max.mustermann@example.de",
        name="Max Mustermann",
        address="Sonnenallee 1a, 12345 Berlin",
        phone="+49 170 123 4567",
        last_updated=ts(2025, 1, 10),
        source=SourceSystem.SYSTEM_B,
    )
    values.update(overrides)
    return CustomerRecord(**values)


class FakeSource(CustomerSource):
    """In-memory CustomerSource that records the calls made to it."""

    def __init__(self, records: Optional[List[CustomerRecord]] = None, name: str = "fake",
                 healthy: bool = True, fail: bool = False):
        self.records: Dict[str, CustomerRecord] = {r.email: r for r in records or []}
        self.name = name
        self.healthy = healthy
        self.fail = fail
        self.find_calls: List[str] = []
        self.search_calls: List[str] = []

    async def find_by_email(self, email):
        self.find_calls.append(email)
        if self.fail:
            raise ConnectionError(f"{self.name} unreachable")
        return self.records.get(email)

    async def search_by_name(self, query):
        self.search_calls.append(query)
        if self.fail:
            raise ConnectionError(f"{self.name} unreachable")
        return [r for r in self.records.values() if query.lower() in r.name.lower()]

    async def is_healthy(self):
        if self.fail:
            raise ConnectionError(f"{self.name} unreachable")
        return self.healthy


@pytest.fixture
def system_a_records():
    return [
        record_a(),
        record_a(id="legacy_003", email="jan.schmidt@example.de", name="Jan Schmidt",
                 address="Berliner Str. 10, 80331 Munich", last_updated=ts(2024, 6, 20)),
        record_a(id="legacy_004", email="sophie.mueller@example.de", name="Sophie Muller",
                 address="Kastanienallee 7, 10435 Berlin", last_updated=ts(2024, 10, 5)),
    ]


@pytest.fixture
def system_b_records():
    return [
        record_b(),
        record_b(id="modern_103", email="lisa.neu@example.de", name="Lisa Neumann",
                 address="Friedrichstr. 99, 10117 Berlin", last_updated=ts(2025, 1, 15)),
        record_b(id="modern_104", email="sophie.mueller@example.de", name="Sophie Mueller",
                 address="Kastanienallee 7a, 10435 Berlin", last_updated=ts(2025, 2, 1)),
    ]


@pytest.fixture
def source_a(system_a_records):
    return FakeSource(system_a_records, name="system-a")


@pytest.fixture
def source_b(system_b_records):
    return FakeSource(system_b_records, name="system-b")
