"""Pricing package for collection market values."""

from .valuation import CollectionValuator, refs_from_payload

__all__ = ["CollectionValuator", "refs_from_payload"]
