"""Viewer routes."""

from . import viewer

__all__ = ["viewer"]
