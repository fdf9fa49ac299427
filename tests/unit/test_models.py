"""
Unit tests for record and snapshot models.
"""

import pytest
from pydantic import ValidationError

from src.storage.models import BusinessRecord, CheckpointSnapshot, GenderDistribution


class TestBusinessRecord:
    """Tests for BusinessRecord."""

    def test_profile_url_required(self):
        with pytest.raises(ValidationError):
            BusinessRecord()
        with pytest.raises(ValidationError):
            BusinessRecord(profile_url="")

    def test_defaults(self):
        record = BusinessRecord(profile_url="https://www.bia.ge/Company/1")
        assert record.phone_numbers == []
        assert record.contact_persons == []
        assert record.gender_distribution is None
        assert record.extra_fields == {}

    def test_list_fields_cleaned(self):
        record = BusinessRecord(
            profile_url="https://www.bia.ge/Company/1",
            emails=[" a@x.ge", "a@x.ge", "", "b@x.ge"],
        )
        assert record.emails == ["a@x.ge", "b@x.ge"]

    def test_camel_case_keys(self):
        data = BusinessRecord(
            profile_url="https://www.bia.ge/Company/1",
            tax_payer_id="123",
            is_vat_payer=False,
        ).to_json_dict()
        assert data["profileUrl"] == "https://www.bia.ge/Company/1"
        assert data["taxPayerId"] == "123"
        assert data["isVATPayer"] is False
        assert "tax_payer_id" not in data

    def test_populate_from_camel_case(self):
        record = BusinessRecord.model_validate({
            "profileUrl": "https://www.bia.ge/Company/1",
            "isVATPayer": True,
            "genderDistribution": {"male": 10, "female": 90},
        })
        assert record.is_vat_payer is True
        assert record.gender_distribution == GenderDistribution(male=10, female=90)


class TestGenderDistribution:
    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            GenderDistribution(male=-1, female=0)


class TestCheckpointSnapshot:
    def test_aliases(self):
        snapshot = CheckpointSnapshot(generated_at="2024-01-01T00:00:00+00:00", count=0, failed_count=0)
        assert snapshot.to_json_dict() == {
            "generatedAt": "2024-01-01T00:00:00+00:00",
            "count": 0,
            "failedCount": 0,
            "businesses": [],
            "failedUrls": [],
        }
