"""Tests for the caller-facing account view."""

import copy

from payout_accounts.engine.sanitize import INTERNAL_FIELDS, sanitize_account


def _record(**overrides):
    record = {
        "_id": 7,
        "__v": 3,
        "id": "0b8e0c55-8d1c-4a52-9f0e-6f5f4d1d1a11",
        "user": "ACD-001",
        "razorpay_account_id": "acc_ABC123",
        "kyc_details": {"legal_business_name": "Sharma Cricket Academy", "metadata": {"source": "app"}},
        "bank_information": {
            "account_number": "123456789012",
            "ifsc_code": "HDFC0001234",
            "account_holder_name": "Rahul Sharma",
            "metadata": {"verified": False},
        },
        "activation_status": "pending",
        "activation_requirements": None,
        "rejection_reason": None,
        "stakeholder_id": "sth_1",
        "product_configuration_id": "acc_prd_1",
        "product_configuration_status": "configured",
        "bank_details_status": "pending",
        "metadata": {"provider": "mock_route"},
        "is_active": True,
    }
    record.update(overrides)
    return record


class TestSanitize:
    def test_internal_fields_removed(self):
        sanitized = sanitize_account(_record())
        for field in INTERNAL_FIELDS:
            assert field not in sanitized

    def test_configured_maps_to_ready(self):
        assert sanitize_account(_record())["ready_for_payout"] == "ready"

    def test_pending_passes_through(self):
        sanitized = sanitize_account(_record(product_configuration_status="pending"))
        assert sanitized["ready_for_payout"] == "pending"

    def test_absent_readiness_is_omitted(self):
        sanitized = sanitize_account(_record(product_configuration_status=None))
        assert "ready_for_payout" not in sanitized

    def test_account_number_masked(self):
        bank = sanitize_account(_record())["bank_information"]
        assert bank["account_number"] == "****9012"
        assert bank["ifsc_code"] == "HDFC0001234"

    def test_nested_metadata_removed(self):
        sanitized = sanitize_account(_record())
        assert "metadata" not in sanitized["kyc_details"]
        assert "metadata" not in sanitized["bank_information"]

    def test_idempotent(self):
        once = sanitize_account(_record())
        assert sanitize_account(once) == once

    def test_input_not_mutated(self):
        record = _record()
        before = copy.deepcopy(record)
        sanitize_account(record)
        assert record == before

    def test_none(self):
        assert sanitize_account(None) is None

    def test_missing_bank_information(self):
        sanitized = sanitize_account(_record(bank_information=None))
        assert sanitized["bank_information"] is None
