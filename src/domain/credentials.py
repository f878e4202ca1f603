"""
Credential issuance request - the payload sent to the Issuer.

The wire form uses the Issuer's field names and drops every empty value.
A Power's ``action`` is written as a bare string when it holds a single
token and as a JSON array otherwise; both encodings are accepted on read.
"""

import json
from dataclasses import dataclass, field
from typing import Any

LEAR_CREDENTIAL_EMPLOYEE = "LEARCredentialEmployee"
OPERATION_MODE_SYNC = "S"
FORMAT_JWT_VC_JSON = "jwt_vc_json"


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value not in ("", None, [], {})}


@dataclass
class Mandator:
    """The organization granting the mandate."""

    organization_identifier: str = ""
    organization: str = ""
    country: str = ""
    common_name: str = ""
    email_address: str = ""
    serial_number: str = ""

    def to_wire(self) -> dict[str, str]:
        return _compact(
            {
                "organizationIdentifier": self.organization_identifier,
                "organization": self.organization,
                "country": self.country,
                "commonName": self.common_name,
                "emailAddress": self.email_address,
                "serialNumber": self.serial_number,
            }
        )

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "Mandator":
        return cls(
            organization_identifier=data.get("organizationIdentifier", ""),
            organization=data.get("organization", ""),
            country=data.get("country", ""),
            common_name=data.get("commonName", ""),
            email_address=data.get("emailAddress", ""),
            serial_number=data.get("serialNumber", ""),
        )


@dataclass
class Mandatee:
    """The natural person receiving the mandate."""

    first_name: str = ""
    last_name: str = ""
    nationality: str = ""
    email: str = ""

    def to_wire(self) -> dict[str, str]:
        return _compact(
            {
                "firstName": self.first_name,
                "lastName": self.last_name,
                "nationality": self.nationality,
                "email": self.email,
            }
        )

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "Mandatee":
        return cls(
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            nationality=data.get("nationality", ""),
            email=data.get("email", ""),
        )


@dataclass
class Power:
    """A single power grant. ``action`` holds one or more tokens."""

    type: str = ""
    domain: str = ""
    function: str = ""
    action: list[str] = field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        action: str | list[str] = self.action[0] if len(self.action) == 1 else list(self.action)
        return _compact(
            {
                "type": self.type,
                "domain": self.domain,
                "function": self.function,
                "action": action,
            }
        )

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "Power":
        raw_action = data.get("action", [])
        if isinstance(raw_action, str):
            action = [raw_action]
        elif isinstance(raw_action, list) and all(isinstance(a, str) for a in raw_action):
            action = list(raw_action)
        else:
            raise ValueError(f"power action must be a string or a list of strings: {raw_action!r}")
        return cls(
            type=data.get("type", ""),
            domain=data.get("domain", ""),
            function=data.get("function", ""),
            action=action,
        )


@dataclass
class CredentialIssuanceRequest:
    """
    Body of the Issuer's credential issuance endpoint.

    ``payload.power`` must hold at least one grant.
    """

    mandator: Mandator
    mandatee: Mandatee
    power: list[Power]
    schema: str = LEAR_CREDENTIAL_EMPLOYEE
    operation_mode: str = OPERATION_MODE_SYNC
    format: str = FORMAT_JWT_VC_JSON
    response_uri: str = ""

    def __post_init__(self) -> None:
        if not self.power:
            raise ValueError("a credential issuance request needs at least one power")

    def to_wire(self) -> dict[str, Any]:
        # payload is always present, even if every nested field is empty
        body = _compact(
            {
                "schema": self.schema,
                "operation_mode": self.operation_mode,
                "format": self.format,
                "response_uri": self.response_uri,
            }
        )
        body["payload"] = _compact(
            {
                "mandator": self.mandator.to_wire(),
                "mandatee": self.mandatee.to_wire(),
                "power": [p.to_wire() for p in self.power],
            }
        )
        body["payload"].setdefault("mandator", {})
        body["payload"].setdefault("mandatee", {})
        return body

    def to_json(self, *, indent: int | None = None) -> str:
        return json.dumps(self.to_wire(), indent=indent)

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "CredentialIssuanceRequest":
        payload = data.get("payload") or {}
        return cls(
            mandator=Mandator.from_wire(payload.get("mandator") or {}),
            mandatee=Mandatee.from_wire(payload.get("mandatee") or {}),
            power=[Power.from_wire(p) for p in payload.get("power") or []],
            schema=data.get("schema", ""),
            operation_mode=data.get("operation_mode", ""),
            format=data.get("format", ""),
            response_uri=data.get("response_uri", ""),
        )

    @classmethod
    def from_json(cls, body: str | bytes) -> "CredentialIssuanceRequest":
        return cls.from_wire(json.loads(body))
