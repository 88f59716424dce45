from wcag_audit.features.auth.models.user import MagicLinkToken, User

__all__ = ["User", "MagicLinkToken"]
