"""Notification backends and the registry that maps type names to them."""

from __future__ import annotations

from boopifier.handlers.base import HandlerAdapter
from boopifier.handlers.registry import HandlerRegistry, default_registry

__all__ = ["HandlerAdapter", "HandlerRegistry", "default_registry"]
