"""Tenant repository."""

from __future__ import annotations

from supportdesk.models.tenant import Tenant
from supportdesk.repositories.base import BaseRepository


class TenantRepository(BaseRepository[Tenant]):
    model = Tenant
