"""Tests for the merge engine."""

import pytest
from fastapi.encoders import jsonable_encoder

from unified_customer.core.exceptions import InvariantViolation
from unified_customer.core.merge import merge_customers
from unified_customer.models.data_models import ConflictedField, ResolvedField, SourceSystem

from conftest import record_a, record_b, ts


def test_both_absent_is_invariant_violation():
    with pytest.raises(InvariantViolation):
        merge_customers(None, None)


class TestSingleSource:
    def test_only_system_a(self):
        a = record_a()
        merged = merge_customers(a, None)

        assert merged.email == a.email
        assert merged.name == a.name
        assert merged.address == a.address
        assert merged.phone is None
        assert merged.contract_start_date == "2021-03-15"
        assert merged.contract_type == "RENTAL"
        assert merged.identifiers.system_a_id == "legacy_001"
        assert merged.identifiers.system_b_id is None
        assert merged.metadata.sources == [SourceSystem.SYSTEM_A]
        assert merged.metadata.is_partial is False
        assert merged.metadata.conflicts_detected is False

    def test_only_system_b(self):
        b = record_b()
        merged = merge_customers(None, b)

        assert merged.phone == b.phone
        assert merged.identifiers.system_a_id is None
        assert merged.identifiers.system_b_id == "modern_101"
        assert merged.metadata.sources == [SourceSystem.SYSTEM_B]
        assert merged.metadata.is_partial is False

    def test_fields_only_list_present_values(self):
        merged = merge_customers(None, record_b())
        assert set(merged.metadata.fields) == {"name", "address", "phone"}
        assert all(
            meta == ResolvedField(source=SourceSystem.SYSTEM_B)
            for meta in merged.metadata.fields.values()
        )

    def test_name_always_listed(self):
        merged = merge_customers(record_a(address="", contract_type=None, contract_start_date=None), None)
        assert set(merged.metadata.fields) == {"name"}


class TestBothSources:
    def test_email_is_join_key(self):
        a, b = record_a(), record_b()
        merged = merge_customers(a, b)
        assert merged.email == a.email == b.email
        assert "email" not in merged.metadata.fields

    def test_identifiers_and_sources(self):
        merged = merge_customers(record_a(), record_b())
        assert merged.identifiers.system_a_id == "legacy_001"
        assert merged.identifiers.system_b_id == "modern_101"
        assert merged.metadata.sources == [SourceSystem.SYSTEM_A, SourceSystem.SYSTEM_B]
        assert merged.metadata.is_partial is False

    def test_equal_names_win_from_both(self):
        merged = merge_customers(record_a(), record_b())
        assert merged.name == "Max Mustermann"
        assert merged.metadata.fields["name"] == ResolvedField(source=SourceSystem.BOTH)

    def test_name_from_newer_system_b(self):
        a = record_a(name="Sophie Muller", last_updated=ts(2024, 10, 5))
        b = record_b(name="Sophie Mueller", last_updated=ts(2025, 2, 1))
        merged = merge_customers(a, b)

        assert merged.name == "Sophie Mueller"
        name_meta = merged.metadata.fields["name"]
        assert isinstance(name_meta, ConflictedField)
        assert name_meta.source == SourceSystem.SYSTEM_B
        assert name_meta.system_a_value == "Sophie Muller"
        assert name_meta.system_b_value == "Sophie Mueller"
        assert merged.metadata.conflicts_detected is True

    def test_name_from_newer_system_a(self):
        a = record_a(name="Max A", last_updated=ts(2025, 6, 1))
        b = record_b(name="Max B", last_updated=ts(2025, 1, 1))
        merged = merge_customers(a, b)

        assert merged.name == "Max A"
        assert merged.metadata.fields["name"].source == SourceSystem.SYSTEM_A

    def test_name_tie_goes_to_system_a(self):
        a = record_a(name="Max A", last_updated=ts(2025, 1, 1))
        b = record_b(name="Max B", last_updated=ts(2025, 1, 1))
        merged = merge_customers(a, b)

        assert merged.name == "Max A"
        assert merged.metadata.fields["name"].source == SourceSystem.SYSTEM_A
        assert merged.metadata.fields["name"].conflict is True

    def test_phone_prefers_system_b(self):
        merged = merge_customers(record_a(phone="+49 30 000"), record_b(phone="+49 170 123 4567"))
        assert merged.phone == "+49 170 123 4567"
        assert merged.metadata.fields["phone"] == ResolvedField(source=SourceSystem.SYSTEM_B)

    def test_phone_falls_back_to_system_a(self):
        merged = merge_customers(record_a(phone="+49 30 000"), record_b(phone=""))
        assert merged.phone == "+49 30 000"
        assert merged.metadata.fields["phone"] == ResolvedField(source=SourceSystem.SYSTEM_A)

    def test_phone_absent_on_both_sides(self):
        merged = merge_customers(record_a(), record_b(phone=None))
        assert merged.phone is None
        assert "phone" not in merged.metadata.fields

    def test_phone_difference_is_never_a_conflict(self):
        merged = merge_customers(
            record_a(phone="111", address="Same 1"),
            record_b(phone="222", address="Same 1")
        )
        assert merged.metadata.fields["phone"].conflict is False
        assert merged.metadata.conflicts_detected is False

    def test_address_conflict(self):
        merged = merge_customers(record_a(), record_b())
        assert merged.address == "Sonnenallee 1a, 12345 Berlin"
        address_meta = merged.metadata.fields["address"]
        assert isinstance(address_meta, ConflictedField)
        assert address_meta.source == SourceSystem.SYSTEM_B
        assert address_meta.system_a_value == "Sonnenallee 1, 12345 Berlin"
        assert address_meta.system_b_value == "Sonnenallee 1a, 12345 Berlin"
        assert merged.metadata.conflicts_detected is True

    def test_matching_address_is_not_a_conflict(self):
        merged = merge_customers(record_a(address="Hauptstr. 42"), record_b(address="Hauptstr. 42"))
        assert merged.metadata.fields["address"] == ResolvedField(source=SourceSystem.SYSTEM_B)
        assert merged.metadata.conflicts_detected is False

    def test_address_always_from_system_b(self):
        merged = merge_customers(record_a(address="Old street 1"), record_b(address=""))
        assert merged.address == ""
        assert merged.metadata.fields["address"].conflict is True

    def test_contract_data_prefers_system_a(self):
        merged = merge_customers(
            record_a(contract_start_date="2021-03-15", contract_type="RENTAL"),
            record_b(contract_start_date="2020-01-01", contract_type="PURCHASE")
        )
        assert merged.contract_start_date == "2021-03-15"
        assert merged.contract_type == "RENTAL"
        assert merged.metadata.fields["contractStartDate"] == ResolvedField(source=SourceSystem.SYSTEM_A)
        assert merged.metadata.fields["contractType"] == ResolvedField(source=SourceSystem.SYSTEM_A)

    def test_contract_data_falls_back_to_system_b(self):
        merged = merge_customers(
            record_a(contract_start_date=None, contract_type=None),
            record_b(contract_start_date="2020-01-01", contract_type="PURCHASE")
        )
        assert merged.contract_start_date == "2020-01-01"
        assert merged.contract_type == "PURCHASE"
        assert merged.metadata.fields["contractType"].source == SourceSystem.SYSTEM_B

    def test_contract_data_absent_on_both_sides(self):
        merged = merge_customers(
            record_a(contract_start_date=None, contract_type=None),
            record_b()
        )
        assert merged.contract_start_date is None
        assert "contractStartDate" not in merged.metadata.fields
        assert "contractType" not in merged.metadata.fields

    def test_no_conflicts(self):
        merged = merge_customers(
            record_a(address="Hauptstr. 42, 10115 Berlin"),
            record_b(address="Hauptstr. 42, 10115 Berlin")
        )
        assert merged.metadata.conflicts_detected is False


def test_serializes_with_api_keys():
    body = jsonable_encoder(merge_customers(record_a(), record_b()))

    assert body["contractStartDate"] == "2021-03-15"
    assert body["identifiers"] == {"systemAId": "legacy_001", "systemBId": "modern_101"}
    assert body["_metadata"]["sources"] == ["SYSTEM_A", "SYSTEM_B"]
    assert body["_metadata"]["isPartial"] is False
    assert body["_metadata"]["fields"]["address"] == {
        "source": "SYSTEM_B",
        "conflict": True,
        "systemAValue": "Sonnenallee 1, 12345 Berlin",
        "systemBValue": "Sonnenallee 1a, 12345 Berlin",
    }
    assert body["_metadata"]["fields"]["phone"] == {"source": "SYSTEM_B", "conflict": False}
