"""Web client hosting: static bundle, entry page templating and SSO redirect."""

from __future__ import annotations

from dbweb_core.web.static import (
    STATIC_CACHE_SECONDS,
    EntryPageStaticFiles,
    StaticContentResponder,
)

__all__ = ["STATIC_CACHE_SECONDS", "EntryPageStaticFiles", "StaticContentResponder"]
