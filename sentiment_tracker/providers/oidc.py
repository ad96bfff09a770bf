"""OpenID Connect identity provider client (authorization code + PKCE)."""
import base64
import hashlib
import logging
import secrets
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx
from jose import JWTError, jwt
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from sentiment_tracker.core.config import settings


logger = logging.getLogger(__name__)


class OIDCError(Exception):
    """Raised when the identity provider cannot complete a login."""
    pass


@dataclass(frozen=True)
class IdentityClaims:
    """Verified identity returned by the provider."""
    subject: str
    email: Optional[str] = None
    username: Optional[str] = None


def generate_code_verifier() -> str:
    """Random PKCE code verifier (RFC 7636, 43-128 unreserved characters)."""
    return secrets.token_urlsafe(64)


def compute_code_challenge(code_verifier: str) -> str:
    """S256 code challenge for a verifier."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_state() -> str:
    """Random value binding the callback to the login request."""
    return secrets.token_urlsafe(32)


class OIDCProvider:
    """Authorization code flow against a discovery-enabled OIDC issuer."""

    CODE_CHALLENGE_METHOD = "S256"

    def __init__(
        self,
        issuer: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        scope: Optional[str] = None
    ):
        self.issuer = (issuer or settings.oidc_issuer).rstrip("/")
        self.client_id = client_id or settings.oidc_client_id
        self.client_secret = client_secret if client_secret is not None else settings.oidc_client_secret
        self.redirect_uri = redirect_uri or settings.oidc_redirect_uri
        self.scope = scope or settings.oidc_scope
        self.client = httpx.AsyncClient(timeout=10.0)
        self._metadata: Optional[dict] = None
        self._jwks: Optional[dict] = None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
        before_sleep=before_sleep_log(logger, logging.WARNING)
    )
    async def _get_json(self, url: str, headers: Optional[dict] = None) -> dict:
        """GET a JSON document, retrying transient network failures."""
        response = await self.client.get(url, headers=headers)
        response.raise_for_status()
        return response.json()

    async def get_metadata(self) -> dict:
        """Fetch and cache the issuer's discovery document."""
        if self._metadata is None:
            url = f"{self.issuer}/.well-known/openid-configuration"
            try:
                self._metadata = await self._get_json(url)
            except httpx.HTTPError as e:
                raise OIDCError(f"OIDC discovery failed: {str(e)}")
            logger.info(f"Loaded OIDC metadata from {self.issuer}")
        return self._metadata

    async def _get_endpoint(self, name: str) -> str:
        """Endpoint URL advertised by the discovery document."""
        metadata = await self.get_metadata()
        try:
            return metadata[name]
        except KeyError:
            raise OIDCError(f"OIDC metadata is missing {name}")

    async def _get_jwks(self) -> dict:
        if self._jwks is None:
            metadata = await self.get_metadata()
            try:
                self._jwks = await self._get_json(metadata["jwks_uri"])
            except (httpx.HTTPError, KeyError) as e:
                raise OIDCError(f"Failed to load signing keys: {str(e)}")
        return self._jwks

    async def build_authorization_url(self, code_challenge: str, state: str) -> str:
        """URL of the provider's login page for this request."""
        authorization_endpoint = await self._get_endpoint("authorization_endpoint")
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
            "code_challenge": code_challenge,
            "code_challenge_method": self.CODE_CHALLENGE_METHOD,
            "state": state,
        }
        return f"{authorization_endpoint}?{urlencode(params)}"

    async def exchange_code(self, code: str, code_verifier: str) -> IdentityClaims:
        """
        Exchange an authorization code for a verified identity.

        Args:
            code: Authorization code from the callback
            code_verifier: PKCE verifier created at login

        Returns:
            IdentityClaims taken from the verified ID token, with userinfo as
            fallback for the email claim

        Raises:
            OIDCError: If the exchange or token verification fails
        """
        metadata = await self.get_metadata()
        token_endpoint = await self._get_endpoint("token_endpoint")
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "code_verifier": code_verifier,
        }
        if self.client_secret:
            data["client_secret"] = self.client_secret

        try:
            response = await self.client.post(token_endpoint, data=data)
            response.raise_for_status()
            token_set = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Token exchange rejected: {e.response.status_code} {e.response.text}")
            raise OIDCError(f"Token exchange failed with status {e.response.status_code}")
        except httpx.HTTPError as e:
            raise OIDCError(f"Token exchange connection error: {str(e)}")

        id_token = token_set.get("id_token")
        access_token = token_set.get("access_token")
        if not id_token:
            raise OIDCError("Token response did not include an id_token")

        claims = await self._verify_id_token(id_token, access_token)

        subject = claims.get("sub")
        if not subject:
            raise OIDCError("ID token has no subject")

        email = claims.get("email")
        username = claims.get("preferred_username") or claims.get("cognito:username")
        if not email and access_token and metadata.get("userinfo_endpoint"):
            userinfo = await self.fetch_userinfo(access_token)
            if userinfo.get("sub") != subject:
                raise OIDCError("Userinfo subject does not match ID token")
            email = userinfo.get("email")
            username = username or userinfo.get("preferred_username")

        return IdentityClaims(subject=subject, email=email, username=username)

    async def fetch_userinfo(self, access_token: str) -> dict:
        """Claims from the userinfo endpoint."""
        userinfo_endpoint = await self._get_endpoint("userinfo_endpoint")
        try:
            return await self._get_json(
                userinfo_endpoint,
                headers={"Authorization": f"Bearer {access_token}"}
            )
        except httpx.HTTPError as e:
            raise OIDCError(f"Userinfo request failed: {str(e)}")

    async def _verify_id_token(self, id_token: str, access_token: Optional[str]) -> dict:
        jwks = await self._get_jwks()
        try:
            return jwt.decode(
                id_token,
                jwks,
                algorithms=["RS256", "ES256"],
                audience=self.client_id,
                issuer=self.issuer,
                access_token=access_token,
            )
        except JWTError as e:
            logger.warning(f"ID token verification failed: {str(e)}")
            raise OIDCError("Invalid ID token")

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
