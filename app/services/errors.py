"""Exceptions raised by the tenant lifecycle and deprovisioning services.

Routes translate these into HTTP errors; services never raise HTTPException.
"""

import uuid


class TenantLifecycleError(Exception):
    """Base exception for lifecycle errors."""


class TenantNotFoundError(TenantLifecycleError):
    def __init__(self, tenant_id: uuid.UUID):
        self.tenant_id = tenant_id
        super().__init__(f"Tenant {tenant_id} not found")


class LifecycleValidationError(TenantLifecycleError):
    """Malformed input; raised before any write."""


class SlugConflictError(TenantLifecycleError):
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Slug '{slug}' is already taken")


class TenantDeletionError(TenantLifecycleError):
    """The tenant row itself could not be removed after the dependent phases ran."""

    def __init__(self, tenant_id: uuid.UUID, reason: str):
        self.tenant_id = tenant_id
        self.reason = reason
        super().__init__(reason)
