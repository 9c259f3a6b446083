"""API route handlers."""

from api.routes import events, health, offers, tokens, transfer

__all__ = ["events", "health", "offers", "tokens", "transfer"]
