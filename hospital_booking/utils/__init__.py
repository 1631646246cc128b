"""Utility helpers."""

from .masking import mask_payload, mask_phone

__all__ = ["mask_payload", "mask_phone"]
