"""SupportDesk backend: credential lifecycle and domain verification."""

from __future__ import annotations

from supportdesk.factory import create_app

__all__ = ["create_app"]
