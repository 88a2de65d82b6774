"""Read-only selectors."""

from clinic_kernel.selectors.base import BaseSelector

__all__ = ["BaseSelector"]
