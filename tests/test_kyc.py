"""Tests for KYC payload construction, stakeholder decisions and validation."""

import pytest
from pydantic import ValidationError

from payout_accounts.engine.kyc import bank_details_job_payload, build_linked_account_payload, decide_stakeholder
from payout_accounts.schemas import BankInformation, CreatePayoutAccountRequest, StakeholderInput


class TestLinkedAccountPayload:
    def test_individual_has_no_legal_info(self, make_request):
        payload = build_linked_account_payload(make_request().kyc_details)
        assert payload["legal_info"] == {}
        assert payload["type"] == "route"
        assert payload["business_type"] == "individual"

    def test_company_sends_pan_and_gst(self, make_request):
        kyc = make_request(business_type="private_limited", gst="27abcde1234f1z5").kyc_details
        payload = build_linked_account_payload(kyc)
        assert payload["legal_info"] == {"pan": "ABCDE1234F", "gst": "27ABCDE1234F1Z5"}

    def test_company_without_gst(self, make_request):
        payload = build_linked_account_payload(make_request(business_type="partnership").kyc_details)
        assert payload["legal_info"] == {"pan": "ABCDE1234F"}

    def test_profile_and_default_country(self, make_request):
        payload = build_linked_account_payload(make_request().kyc_details)
        assert payload["profile"]["category"] == "education"
        assert payload["profile"]["subcategory"] == "coaching"
        registered = payload["profile"]["addresses"]["registered"]
        assert registered["country"] == "IN"
        assert "street2" not in registered


class TestStakeholderDecision:
    def test_individual_auto_creates_proprietor(self, make_request):
        decision = decide_stakeholder(make_request().kyc_details)
        assert decision.should_create
        assert decision.auto_created is True
        assert decision.data["relationship"] == "proprietor"
        assert decision.data["name"] == "Rahul Sharma"
        assert decision.data["kyc"] == {"pan": "ABCDE1234F"}
        assert decision.data["address"]["postal_code"] == "560001"

    def test_business_auto_creates_authorised_signatory(self, make_request):
        decision = decide_stakeholder(make_request(business_type="llp").kyc_details)
        assert decision.data["relationship"] == "authorised_signatory"

    def test_explicit_stakeholder_wins(self, make_request):
        override = StakeholderInput.model_validate({
            "name": "Anita Sharma",
            "email": "anita@example.in",
            "phone": "9000000001",
            "relationship": "director",
            "kyc": {"pan": "fghij5678k", "aadhaar": "123412341234"},
        })
        decision = decide_stakeholder(make_request().kyc_details, override)
        assert decision.auto_created is False
        assert decision.data["name"] == "Anita Sharma"
        assert decision.data["kyc"] == {"pan": "FGHIJ5678K", "aadhaar": "123412341234"}
        assert "address" not in decision.data

    def test_explicit_stakeholder_without_pan_is_skipped(self, make_request):
        override = StakeholderInput.model_validate({
            "name": "Anita Sharma",
            "email": "anita@example.in",
            "phone": "9000000001",
            "relationship": "partner",
            "kyc": {},
        })
        decision = decide_stakeholder(make_request().kyc_details, override)
        assert not decision.should_create
        assert "PAN" in decision.message


class TestBankDetailsPayload:
    def test_beneficiary_contact_defaults_to_empty(self):
        bank = BankInformation(account_number="123456789012", ifsc_code="HDFC0001234", account_holder_name="Rahul")
        payload = bank_details_job_payload(bank, None, "9876543210")
        assert payload == {
            "account_number": "123456789012",
            "ifsc": "HDFC0001234",
            "beneficiary_name": "Rahul",
            "beneficiary_email": "",
            "beneficiary_mobile": "9876543210",
        }


class TestValidation:
    def test_pan_is_uppercased(self, make_request):
        assert make_request().kyc_details.pan == "ABCDE1234F"

    def test_invalid_pan_rejected(self, make_request):
        body = make_request().model_dump(mode="json")
        body["kyc_details"]["pan"] = "ABC123"
        with pytest.raises(ValidationError):
            CreatePayoutAccountRequest.model_validate(body)

    def test_invalid_phone_rejected(self, make_request):
        body = make_request().model_dump(mode="json")
        body["kyc_details"]["phone"] = "5876543210"
        with pytest.raises(ValidationError):
            CreatePayoutAccountRequest.model_validate(body)

    @pytest.mark.parametrize("number", ["12345678", "1234567890123456789", "12345678AB"])
    def test_invalid_account_number_rejected(self, number):
        with pytest.raises(ValidationError):
            BankInformation(account_number=number, ifsc_code="HDFC0001234", account_holder_name="Rahul")

    def test_ifsc_uppercased_and_checked(self):
        bank = BankInformation(account_number="123456789", ifsc_code="sbin0000001", account_holder_name="Rahul")
        assert bank.ifsc_code == "SBIN0000001"
        with pytest.raises(ValidationError):
            BankInformation(account_number="123456789", ifsc_code="SBIN1000001", account_holder_name="Rahul")
