"""Domain policies package."""

from .transfer_policy import validate_transfer

__all__ = ["validate_transfer"]
