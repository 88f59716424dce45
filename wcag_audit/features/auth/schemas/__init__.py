from wcag_audit.features.auth.schemas.auth import MagicLinkRequest, TokenResponse, UserResponse

__all__ = ["MagicLinkRequest", "TokenResponse", "UserResponse"]
