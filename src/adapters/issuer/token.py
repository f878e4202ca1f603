"""
Verifier token exchange - OAuth2 client credentials with a VC assertion.

The machine credential is wrapped in a Verifiable Presentation JWT signed
with the service's own key. That presentation travels as ``vp_token``
inside a client-assertion JWT, and the Verifier answers with a bearer
access token.
"""

import base64
import logging
import time
import uuid

import jwt
import requests
from cryptography.hazmat.primitives.asymmetric import ec

from src.domain.exceptions import TokenError

logger = logging.getLogger(__name__)

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"
ASSERTION_LIFETIME_SECONDS = 300
TOKEN_SCOPE = "machine learcredential"


def build_vp_token(
    machine_credential: str,
    did: str,
    audience: str,
    private_key: ec.EllipticCurvePrivateKey,
    now: int | None = None,
) -> str:
    """Wrap the machine credential in a signed Verifiable Presentation JWT."""
    now = now if now is not None else int(time.time())
    presentation_id = f"urn:uuid:{uuid.uuid4()}"
    claims = {
        "iss": did,
        "sub": did,
        "aud": audience,
        "iat": now,
        "nbf": now,
        "exp": now + ASSERTION_LIFETIME_SECONDS,
        "jti": presentation_id,
        "vp": {
            "@context": ["https://www.w3.org/2018/credentials/v1"],
            "id": presentation_id,
            "type": ["VerifiablePresentation"],
            "holder": did,
            "verifiableCredential": [machine_credential],
        },
    }
    return jwt.encode(claims, private_key, algorithm="ES256", headers={"kid": did, "typ": "JWT"})


def build_client_assertion(
    machine_credential: str,
    did: str,
    audience: str,
    private_key: ec.EllipticCurvePrivateKey,
    now: int | None = None,
) -> str:
    """Build the signed client assertion carrying the presentation."""
    now = now if now is not None else int(time.time())
    vp_token = build_vp_token(machine_credential, did, audience, private_key, now)
    claims = {
        "iss": did,
        "sub": did,
        "aud": audience,
        "iat": now,
        "exp": now + ASSERTION_LIFETIME_SECONDS,
        "jti": str(uuid.uuid4()),
        "vp_token": base64.urlsafe_b64encode(vp_token.encode()).decode().rstrip("="),
    }
    return jwt.encode(claims, private_key, algorithm="ES256", headers={"kid": did, "typ": "JWT"})


def request_access_token(
    session: requests.Session,
    token_endpoint: str,
    machine_credential: str,
    did: str,
    verifier_url: str,
    private_key: ec.EllipticCurvePrivateKey,
    timeout: float,
) -> str:
    """
    Exchange the machine credential for a Verifier access token.

    Args:
        session: HTTP session used for the call
        token_endpoint: Verifier token endpoint URL
        machine_credential: Serialized machine credential (a JWT)
        did: Own did:key, used as client id and issuer
        verifier_url: Verifier base URL, used as assertion audience
        private_key: Key matching ``did``
        timeout: Request timeout in seconds

    Returns:
        Access token string

    Raises:
        TokenError: On any transport, HTTP or protocol failure
    """
    assertion = build_client_assertion(machine_credential, did, verifier_url, private_key)
    form = {
        "grant_type": "client_credentials",
        "client_id": did,
        "client_assertion_type": CLIENT_ASSERTION_TYPE,
        "client_assertion": assertion,
        "scope": TOKEN_SCOPE,
    }

    try:
        response = session.post(token_endpoint, data=form, timeout=timeout)
    except requests.RequestException as exc:
        raise TokenError(f"token request to {token_endpoint} failed: {exc}") from exc

    if not 200 <= response.status_code < 300:
        raise TokenError(f"token request rejected: {response.status_code} {response.text}")

    try:
        body = response.json()
    except ValueError as exc:
        raise TokenError("token response is not JSON") from exc

    access_token = body.get("access_token") if isinstance(body, dict) else None
    if not isinstance(access_token, str) or not access_token:
        raise TokenError("token response has no access_token")

    logger.debug("Obtained access token from %s", token_endpoint)
    return access_token
