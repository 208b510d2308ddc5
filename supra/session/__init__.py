"""Conversation session storage."""

from supra.session.manager import SessionManager

__all__ = ["SessionManager"]
