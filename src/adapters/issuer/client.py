"""
Issuance client adapter - Implements the CredentialIssuer protocol.

Authenticates to the Verifier with the service's machine credential,
then submits a credential issuance request to the Issuer with the
resulting bearer token. The Issuer's response body is returned as-is.
No retries are performed here.
"""

import logging
from pathlib import Path

import requests

from src.domain.credentials import CredentialIssuanceRequest
from src.domain.exceptions import IssuanceError, KeyIdentityError

from .did_key import KeyIdentity
from .token import request_access_token

logger = logging.getLogger(__name__)


class IssuanceClient:
    """
    Implements CredentialIssuer protocol via requests.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        identity: KeyIdentity,
        machine_credential: str,
        verifier_token_endpoint: str,
        verifier_url: str,
        credential_issuance_url: str,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self._identity = identity
        self._machine_credential = machine_credential
        self._verifier_token_endpoint = verifier_token_endpoint
        self._verifier_url = verifier_url
        self._credential_issuance_url = credential_issuance_url
        self._timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_files(
        cls,
        private_key_file: str | Path,
        machine_credential_file: str | Path,
        expected_did: str,
        **kwargs,
    ) -> "IssuanceClient":
        """
        Build a client from the key and machine credential files.

        Raises:
            IdentityMismatch: If the key does not belong to ``expected_did``
            KeyIdentityError: If either file cannot be read
        """
        identity = KeyIdentity.load_and_verify(private_key_file, expected_did)
        try:
            machine_credential = Path(machine_credential_file).read_text().strip()
        except OSError as exc:
            raise KeyIdentityError(
                f"cannot read machine credential file {machine_credential_file}: {exc}"
            ) from exc
        return cls(identity, machine_credential, **kwargs)

    @property
    def identifier(self) -> str:
        return self._identity.identifier

    def request_credential(self, request: CredentialIssuanceRequest) -> bytes:
        """
        Request issuance of a credential.

        Args:
            request: Issuance request, serialized to the Issuer wire form

        Returns:
            Raw Issuer response body

        Raises:
            TokenError: If the Verifier did not issue an access token
            IssuanceError: If the Issuer call failed or returned >= 400
        """
        access_token = request_access_token(
            self._session,
            self._verifier_token_endpoint,
            self._machine_credential,
            self._identity.identifier,
            self._verifier_url,
            self._identity.private_key,
            self._timeout,
        )

        logger.info("Submitting credential issuance to %s", self._credential_issuance_url)
        try:
            response = self._session.post(
                self._credential_issuance_url,
                data=request.to_json().encode(),
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {access_token}",
                },
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise IssuanceError(f"error calling credential issuance endpoint: {exc}") from exc

        if not 200 <= response.status_code < 400:
            logger.error("Credential issuance endpoint returned %s", response.status_code)
            raise IssuanceError(
                f"error calling credential issuance endpoint: {response.status_code} {response.reason}",
                status_code=response.status_code,
            )

        return response.content
