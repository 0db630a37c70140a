# Import all models so SQLAlchemy metadata is populated and string relationships resolve
from src.models.category import ServiceCategory, ServiceSubCategory
from src.models.enums import (
    InvitationType,
    JoinRequestStatus,
    LineItemDecision,
    OrderServiceStatus,
    OrderStatus,
    OrganizationBusinessType,
    ServiceStatus,
    UserRole,
    VesselStatus,
    VesselType,
)
from src.models.invitation import Invitation, InvitationBatch
from src.models.order import Order
from src.models.order_service import OrderService
from src.models.organization import Organization
from src.models.organization_join_request import OrganizationJoinRequest
from src.models.organization_membership import OrganizationMembership
from src.models.port import Port
from src.models.service import Service
from src.models.user import User
from src.models.vessel import Vessel

__all__ = [
    "Invitation",
    "InvitationBatch",
    "InvitationType",
    "JoinRequestStatus",
    "LineItemDecision",
    "Order",
    "OrderService",
    "OrderServiceStatus",
    "OrderStatus",
    "Organization",
    "OrganizationBusinessType",
    "OrganizationJoinRequest",
    "OrganizationMembership",
    "Port",
    "Service",
    "ServiceCategory",
    "ServiceStatus",
    "ServiceSubCategory",
    "User",
    "UserRole",
    "Vessel",
    "VesselStatus",
    "VesselType",
]
