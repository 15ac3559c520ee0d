"""Structured logging helpers (credential-safe)."""

import logging
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def build_log_context(
    *,
    user_id: str | None = None,
    company_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a log context dict. Never pass passwords, tokens or EINs here."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = user_id
    if company_id:
        context["company_id"] = company_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
