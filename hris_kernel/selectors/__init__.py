"""Selectors for the HRIS kernel (read side)."""

from hris_kernel.selectors.base import BaseSelector

__all__ = ["BaseSelector"]
