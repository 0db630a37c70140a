"""Catalog service: the category -> sub-category -> service taxonomy and port offerings."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from src.models.category import ServiceCategory, ServiceSubCategory
from src.models.enums import OrganizationBusinessType, ServiceStatus
from src.models.organization import Organization
from src.models.port import Port
from src.models.service import Service

logger = logging.getLogger(__name__)


def collect_category_services(sub_categories: Iterable[ServiceSubCategory]) -> list[Service]:
    """Flatten sub-categories into one service list.

    Sub-categories are walked by ``sort_order`` (then name), their services
    by name; a service reachable twice is listed once.
    """
    seen: set[uuid.UUID] = set()
    services: list[Service] = []
    for sub in sorted(sub_categories, key=lambda s: (s.sort_order, s.name)):
        for service in sorted(sub.services, key=lambda s: s.name):
            if service.id in seen:
                continue
            seen.add(service.id)
            services.append(service)
    return services


class CatalogService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Taxonomy
    # ------------------------------------------------------------------

    async def list_categories(self) -> list[ServiceCategory]:
        result = await self.db.execute(
            select(ServiceCategory)
            .options(selectinload(ServiceCategory.sub_categories))
            .order_by(ServiceCategory.name)
        )
        return list(result.scalars().all())

    async def get_category_services(self, category_id: uuid.UUID) -> list[Service]:
        """All services in any sub-category of the category."""
        result = await self.db.execute(
            select(ServiceCategory)
            .options(
                selectinload(ServiceCategory.sub_categories).selectinload(
                    ServiceSubCategory.services
                )
            )
            .where(ServiceCategory.id == category_id)
        )
        category = result.scalar_one_or_none()
        if category is None:
            raise NotFoundException(f"Service category {category_id} not found")
        return collect_category_services(category.sub_categories)

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    async def create_service(
        self,
        organization_id: uuid.UUID,
        port_id: uuid.UUID,
        sub_category_id: uuid.UUID,
        name: str,
        price: Decimal,
        description: str | None = None,
    ) -> Service:
        """Publish a service offered by a shipping agency at a port."""
        result = await self.db.execute(
            select(Organization).where(Organization.id == organization_id)
        )
        org = result.scalar_one_or_none()
        if org is None:
            raise NotFoundException(f"Organization {organization_id} not found")
        if org.business_type != OrganizationBusinessType.SHIPPING_AGENCY:
            raise BusinessRuleException("Only shipping agencies can offer services")

        result = await self.db.execute(
            select(ServiceSubCategory.id).where(ServiceSubCategory.id == sub_category_id)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundException(f"Service sub-category {sub_category_id} not found")

        result = await self.db.execute(select(Port.id).where(Port.id == port_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundException(f"Port {port_id} not found")

        service = Service(
            organization_id=organization_id,
            port_id=port_id,
            service_sub_category_id=sub_category_id,
            name=name,
            description=description,
            price=price,
            status=ServiceStatus.ACTIVE,
        )
        self.db.add(service)
        await self.db.flush()
        await self.db.refresh(service)

        logger.info("Organization %s published service %s (%s)", organization_id, service.id, name)
        return service

    async def get_service(self, service_id: uuid.UUID) -> Service:
        result = await self.db.execute(select(Service).where(Service.id == service_id))
        service = result.scalar_one_or_none()
        if service is None:
            raise NotFoundException(f"Service {service_id} not found")
        return service

    async def update_service_status(
        self,
        service_id: uuid.UUID,
        organization_id: uuid.UUID,
        status: ServiceStatus,
    ) -> Service:
        """Activate or withdraw a service (owning agency only)."""
        service = await self.get_service(service_id)
        if service.organization_id != organization_id:
            raise ForbiddenException("Only the offering organization can change this service")
        if service.status != status:
            service.status = status
            await self.db.flush()
            await self.db.refresh(service)
            logger.info("Service %s is now %s", service_id, status.value)
        return service

    async def list_services(
        self,
        port_id: uuid.UUID | None = None,
        sub_category_id: uuid.UUID | None = None,
        organization_id: uuid.UUID | None = None,
        status: ServiceStatus | None = ServiceStatus.ACTIVE,
    ) -> list[Service]:
        query = select(Service)
        if port_id is not None:
            query = query.where(Service.port_id == port_id)
        if sub_category_id is not None:
            query = query.where(Service.service_sub_category_id == sub_category_id)
        if organization_id is not None:
            query = query.where(Service.organization_id == organization_id)
        if status is not None:
            query = query.where(Service.status == status)
        result = await self.db.execute(query.order_by(Service.name))
        return list(result.scalars().all())
