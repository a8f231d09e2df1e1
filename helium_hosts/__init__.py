"""Helium hotspot reward exports and host payment reports."""

from .config import ConfigError, ReportSettings
from .payments import PaymentRecord, allocate, merge_payments
from .registry import OwnershipEntry, OwnershipRegistry
from .rewards import RewardAccumulator, RewardRecord, RewardTransaction

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "OwnershipEntry",
    "OwnershipRegistry",
    "PaymentRecord",
    "ReportSettings",
    "RewardAccumulator",
    "RewardRecord",
    "RewardTransaction",
    "allocate",
    "merge_payments",
]
