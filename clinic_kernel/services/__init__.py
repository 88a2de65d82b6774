"""Kernel services: transaction boundaries and per-entity write guards."""

from clinic_kernel.services.base import BaseService, GuardedService
from clinic_kernel.services.entity_lock import EntityLockRegistry, default_lock_registry

__all__ = [
    "BaseService",
    "GuardedService",
    "EntityLockRegistry",
    "default_lock_registry",
]
