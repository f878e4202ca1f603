"""
Unit tests for the credential issuance request wire form.

Tests:
- Single-token actions render as bare strings
- Empty values are omitted
- Both action encodings are accepted on read
"""

import json

import pytest

from src.domain.credentials import CredentialIssuanceRequest, Mandatee, Mandator, Power


def make_request(action: list[str]) -> CredentialIssuanceRequest:
    return CredentialIssuanceRequest(
        mandator=Mandator(
            organization_identifier="ES-B12345678",
            organization="Acme",
            country="ES",
            common_name="Ana Ruiz",
            email_address="ana@example.com",
        ),
        mandatee=Mandatee(
            first_name="Ana",
            last_name="Ruiz",
            nationality="ES",
            email="ana@example.com",
        ),
        power=[Power(type="domain", domain="DOME", function="Onboarding", action=action)],
    )


class TestPowerAction:
    """Tests for the single-or-many action encoding."""

    def test_single_action_is_bare_string(self) -> None:
        power = Power(type="domain", domain="DOME", function="Onboarding", action=["execute"])
        assert power.to_wire()["action"] == "execute"

    def test_two_actions_are_array(self) -> None:
        power = Power(
            type="domain", domain="DOME", function="Onboarding", action=["execute", "verify"]
        )
        assert power.to_wire()["action"] == ["execute", "verify"]

    def test_json_encoding(self) -> None:
        single = json.loads(make_request(["execute"]).to_json())
        double = json.loads(make_request(["execute", "verify"]).to_json())

        assert single["payload"]["power"][0]["action"] == "execute"
        assert double["payload"]["power"][0]["action"] == ["execute", "verify"]

    def test_string_and_single_element_list_read_the_same(self) -> None:
        as_string = Power.from_wire({"type": "domain", "action": "execute"})
        as_list = Power.from_wire({"type": "domain", "action": ["execute"]})
        assert as_string == as_list

    def test_rejects_non_string_action(self) -> None:
        with pytest.raises(ValueError):
            Power.from_wire({"action": [1, 2]})


class TestWireForm:
    """Tests for CredentialIssuanceRequest.to_wire."""

    def test_top_level_fields(self) -> None:
        wire = make_request(["execute"]).to_wire()

        assert wire["schema"] == "LEARCredentialEmployee"
        assert wire["operation_mode"] == "S"
        assert wire["format"] == "jwt_vc_json"

    def test_empty_values_are_omitted(self) -> None:
        wire = make_request(["execute"]).to_wire()

        assert "response_uri" not in wire
        assert "serialNumber" not in wire["payload"]["mandator"]

    def test_payload_field_names(self) -> None:
        payload = make_request(["execute"]).to_wire()["payload"]

        assert payload["mandator"] == {
            "organizationIdentifier": "ES-B12345678",
            "organization": "Acme",
            "country": "ES",
            "commonName": "Ana Ruiz",
            "emailAddress": "ana@example.com",
        }
        assert payload["mandatee"] == {
            "firstName": "Ana",
            "lastName": "Ruiz",
            "nationality": "ES",
            "email": "ana@example.com",
        }
        assert payload["power"] == [
            {"type": "domain", "domain": "DOME", "function": "Onboarding", "action": "execute"}
        ]

    def test_empty_parties_still_present(self) -> None:
        request = CredentialIssuanceRequest(
            mandator=Mandator(), mandatee=Mandatee(), power=[Power(action=["execute"])]
        )
        payload = request.to_wire()["payload"]
        assert payload["mandator"] == {}
        assert payload["mandatee"] == {}

    def test_power_is_required(self) -> None:
        with pytest.raises(ValueError):
            CredentialIssuanceRequest(mandator=Mandator(), mandatee=Mandatee(), power=[])

    def test_parse_back(self) -> None:
        original = make_request(["execute", "verify"])
        assert CredentialIssuanceRequest.from_json(original.to_json()) == original

    def test_pretty_print(self) -> None:
        text = make_request(["execute"]).to_json(indent=2)
        assert "\n  " in text
