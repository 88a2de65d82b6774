"""
Tests for billing profiles (clinic_modules.profiles).
"""

import pytest

from clinic_kernel.exceptions import DuplicateProfileError, NotFoundError, ValidationError


class TestBillingProfiles:

    def test_create_and_get(self, profile_service, deterministic_clock):
        created = profile_service.create_profile(
            "patient-42",
            insurer="AcmeHealth",
            policy_number="ACME-778",
            billing_email="billing@example.org",
        )
        assert created.insurer == "AcmeHealth"
        assert created.created_at < deterministic_clock.now()
        assert profile_service.get_profile("patient-42") == created

    def test_optional_fields(self, profile_service):
        created = profile_service.create_profile("patient-1")
        assert created.insurer is None
        assert created.billing_email is None

    def test_duplicate(self, profile_service):
        profile_service.create_profile("patient-42")
        with pytest.raises(DuplicateProfileError) as exc_info:
            profile_service.create_profile("patient-42", insurer="Globex")
        assert exc_info.value.code == "DUPLICATE_PROFILE"
        assert isinstance(exc_info.value, ValidationError)
        assert profile_service.get_profile("patient-42").insurer is None

    def test_missing(self, profile_service):
        with pytest.raises(NotFoundError) as exc_info:
            profile_service.get_profile("patient-404")
        assert exc_info.value.entity == "billing_profile"

    @pytest.mark.parametrize(
        "patient_id, kwargs, field",
        [
            ("", {}, "patient_id"),
            ("patient-1", {"billing_email": "not-an-email"}, "billing_email"),
            ("patient-1", {"insurer": 42}, "insurer"),
        ],
    )
    def test_rejected(self, profile_service, patient_id, kwargs, field):
        with pytest.raises(ValidationError) as exc_info:
            profile_service.create_profile(patient_id, **kwargs)
        assert exc_info.value.field == field
