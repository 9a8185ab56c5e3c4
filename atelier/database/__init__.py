"""Durable storage for Atelier."""

from .manager import DatabaseManager

__all__ = ["DatabaseManager"]
