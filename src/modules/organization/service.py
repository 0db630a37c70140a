"""Organization management and join-request workflow."""

import logging
import re
import uuid
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import (
    BusinessRuleException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from src.models.enums import JoinRequestStatus, OrganizationBusinessType, UserRole
from src.models.organization import Organization
from src.models.organization_join_request import OrganizationJoinRequest
from src.models.organization_membership import OrganizationMembership
from src.modules.organization.constants import GENERATED_SLUG_SUFFIX
from src.modules.organization.slug_validator import ReservedSlugValidator

logger = logging.getLogger(__name__)

_ADMIN_ROLES = (UserRole.ADMIN, UserRole.CEO)


class OrganizationService:
    def __init__(self, db: AsyncSession, slug_validator: ReservedSlugValidator | None = None):
        self.db = db
        self.slug_validator = slug_validator or ReservedSlugValidator()

    # ------------------------------------------------------------------
    # Organizations
    # ------------------------------------------------------------------

    async def create_organization(
        self,
        name: str,
        business_type: OrganizationBusinessType,
        creator_user_id: uuid.UUID,
        slug: str | None = None,
        registration_code: str | None = None,
        description: str | None = None,
    ) -> Organization:
        """Create an organization and make the creator its admin."""
        if slug is None:
            slug = await self.generate_slug(name)
        else:
            slug = slug.strip().lower()
            message = await self.slug_validator.check_slug(slug)
            if message is not None:
                raise ValidationException(message, details=[{"field": "slug", "message": message}])
            if await self._get_by_slug(slug):
                raise ConflictException(f"Organization slug '{slug}' already exists")

        org = Organization(
            name=name,
            business_type=business_type,
            slug=slug,
            registration_code=registration_code,
            description=description,
        )
        self.db.add(org)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            await self.db.rollback()
            if "ix_organizations_slug" in str(exc):
                raise ConflictException(f"Organization slug '{slug}' already exists") from exc
            raise

        self.db.add(
            OrganizationMembership(
                user_id=creator_user_id,
                organization_id=org.id,
                role=UserRole.ADMIN,
            )
        )
        await self.db.flush()
        await self.db.refresh(org)

        logger.info(
            "Created %s organization %s (%s) for user %s",
            business_type.value, org.id, slug, creator_user_id,
        )
        return org

    async def get_organization(self, organization_id: uuid.UUID) -> Organization:
        result = await self.db.execute(
            select(Organization).where(Organization.id == organization_id)
        )
        org = result.scalar_one_or_none()
        if org is None:
            raise NotFoundException(f"Organization {organization_id} not found")
        return org

    async def require_existing(self, organization_id: uuid.UUID) -> Organization:
        """Existence check kept separate from the reserved-slug failure."""
        result = await self.db.execute(
            select(Organization).where(Organization.id == organization_id)
        )
        org = result.scalar_one_or_none()
        if org is None:
            raise NotFoundException(f"Organization {organization_id} does not exist")
        return org

    async def generate_slug(self, name: str, max_retries: int = 5) -> str:
        """Generate a unique URL-friendly slug from the organization name.

        Names that normalize to a reserved word get a ``-org`` suffix before
        the uniqueness loop runs.
        """
        base_slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
        if not base_slug:
            base_slug = GENERATED_SLUG_SUFFIX
        if await self.slug_validator.is_reserved(base_slug):
            base_slug = f"{base_slug}-{GENERATED_SLUG_SUFFIX}"

        slug = base_slug
        counter = 1
        while await self._get_by_slug(slug):
            slug = f"{base_slug}-{counter}"
            counter += 1
            if counter > max_retries + 100:
                raise ConflictException(f"Could not generate unique slug for '{name}'")
        return slug

    async def _get_by_slug(self, slug: str) -> Organization | None:
        result = await self.db.execute(
            select(Organization).where(func.lower(Organization.slug) == slug.lower())
        )
        return result.scalar_one_or_none()

    async def get_membership(
        self, organization_id: uuid.UUID, user_id: uuid.UUID
    ) -> OrganizationMembership | None:
        result = await self.db.execute(
            select(OrganizationMembership).where(
                OrganizationMembership.organization_id == organization_id,
                OrganizationMembership.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def _require_admin(self, organization_id: uuid.UUID, user_id: uuid.UUID) -> None:
        membership = await self.get_membership(organization_id, user_id)
        if membership is None or membership.role not in _ADMIN_ROLES:
            raise ForbiddenException("Only organization admins can review join requests")

    # ------------------------------------------------------------------
    # Join requests
    # ------------------------------------------------------------------

    async def request_to_join(
        self,
        user_id: uuid.UUID,
        organization_id: uuid.UUID,
        message: str | None = None,
    ) -> OrganizationJoinRequest:
        """Ask to join an organization; admins review the request."""
        await self.slug_validator.validate_organization_reference(self.db, organization_id)
        await self.require_existing(organization_id)

        if await self.get_membership(organization_id, user_id) is not None:
            raise ConflictException("You are already a member of this organization")

        result = await self.db.execute(
            select(OrganizationJoinRequest).where(
                OrganizationJoinRequest.user_id == user_id,
                OrganizationJoinRequest.organization_id == organization_id,
                OrganizationJoinRequest.status == JoinRequestStatus.PENDING,
            )
        )
        if result.scalar_one_or_none() is not None:
            raise ConflictException(
                "You already have a pending request to join this organization"
            )

        join_request = OrganizationJoinRequest(
            user_id=user_id,
            organization_id=organization_id,
            status=JoinRequestStatus.PENDING,
            message=message,
        )
        self.db.add(join_request)
        await self.db.flush()
        await self.db.refresh(join_request)

        logger.info("User %s requested to join organization %s", user_id, organization_id)
        return join_request

    async def list_join_requests(
        self,
        organization_id: uuid.UUID,
        status: JoinRequestStatus | None = JoinRequestStatus.PENDING,
    ) -> list[OrganizationJoinRequest]:
        query = select(OrganizationJoinRequest).where(
            OrganizationJoinRequest.organization_id == organization_id
        )
        if status is not None:
            query = query.where(OrganizationJoinRequest.status == status)
        result = await self.db.execute(query.order_by(OrganizationJoinRequest.created_at))
        return list(result.scalars().all())

    async def _get_pending_request(self, request_id: uuid.UUID) -> OrganizationJoinRequest:
        result = await self.db.execute(
            select(OrganizationJoinRequest).where(OrganizationJoinRequest.id == request_id)
        )
        join_request = result.scalar_one_or_none()
        if join_request is None:
            raise NotFoundException(f"Join request {request_id} not found")
        if join_request.status != JoinRequestStatus.PENDING:
            raise BusinessRuleException(
                f"Join request has already been {join_request.status.value}"
            )
        return join_request

    async def approve_join_request(
        self,
        request_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        role: UserRole = UserRole.VIEWER,
        admin_notes: str | None = None,
    ) -> OrganizationJoinRequest:
        """Approve a pending request and add the requester as a member."""
        join_request = await self._get_pending_request(request_id)
        await self._require_admin(join_request.organization_id, reviewer_id)

        if await self.get_membership(join_request.organization_id, join_request.user_id) is None:
            self.db.add(
                OrganizationMembership(
                    user_id=join_request.user_id,
                    organization_id=join_request.organization_id,
                    role=role,
                )
            )

        self._mark_reviewed(join_request, JoinRequestStatus.APPROVED, reviewer_id, admin_notes)
        await self.db.flush()
        await self.db.refresh(join_request)

        logger.info(
            "Join request %s approved by %s (role=%s)", request_id, reviewer_id, role.value
        )
        return join_request

    async def reject_join_request(
        self,
        request_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        admin_notes: str | None = None,
    ) -> OrganizationJoinRequest:
        join_request = await self._get_pending_request(request_id)
        await self._require_admin(join_request.organization_id, reviewer_id)

        self._mark_reviewed(join_request, JoinRequestStatus.REJECTED, reviewer_id, admin_notes)
        await self.db.flush()
        await self.db.refresh(join_request)

        logger.info("Join request %s rejected by %s", request_id, reviewer_id)
        return join_request

    async def withdraw_join_request(
        self, request_id: uuid.UUID, user_id: uuid.UUID
    ) -> OrganizationJoinRequest:
        join_request = await self._get_pending_request(request_id)
        if join_request.user_id != user_id:
            raise ForbiddenException("Only the requesting user can withdraw this request")

        join_request.status = JoinRequestStatus.WITHDRAWN
        await self.db.flush()
        await self.db.refresh(join_request)

        logger.info("Join request %s withdrawn by %s", request_id, user_id)
        return join_request

    @staticmethod
    def _mark_reviewed(
        join_request: OrganizationJoinRequest,
        status: JoinRequestStatus,
        reviewer_id: uuid.UUID,
        admin_notes: str | None,
    ) -> None:
        join_request.status = status
        join_request.reviewed_by_user_id = reviewer_id
        join_request.reviewed_at = datetime.now(UTC)
        if admin_notes:
            join_request.admin_notes = admin_notes
