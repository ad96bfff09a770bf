"""External identity provider integrations."""
from sentiment_tracker.providers.oidc import OIDCProvider, OIDCError, IdentityClaims

__all__ = ["OIDCProvider", "OIDCError", "IdentityClaims"]
