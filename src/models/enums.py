import enum


class OrganizationBusinessType(str, enum.Enum):
    VESSEL_OWNER = "vessel_owner"
    SHIPPING_AGENCY = "shipping_agency"
    PORTZAPP_TEAM = "portzapp_team"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    CEO = "ceo"
    MANAGER = "manager"
    OPERATIONS = "operations"
    FINANCE = "finance"
    VIEWER = "viewer"


ROLE_LABELS: dict[UserRole, str] = {
    UserRole.ADMIN: "Administrator",
    UserRole.CEO: "Chief Executive Officer",
    UserRole.MANAGER: "Manager",
    UserRole.OPERATIONS: "Operations",
    UserRole.FINANCE: "Finance",
    UserRole.VIEWER: "Viewer",
}


class VesselType(str, enum.Enum):
    BULK_CARRIER = "bulk_carrier"
    CONTAINER_SHIP = "container_ship"
    TANKER_SHIP = "tanker_ship"
    GENERAL_CARGO = "general_cargo"
    PASSENGER = "passenger"
    OFFSHORE = "offshore"
    TUG = "tug"
    OTHER = "other"


class VesselStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class ServiceStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


# ── Orders ────────────────────────────────────────────────────────────────


class OrderStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING_AGENCY_CONFIRMATION = "pending_agency_confirmation"
    PARTIALLY_CONFIRMED = "partially_confirmed"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class OrderServiceStatus(str, enum.Enum):
    UNCONFIRMED = "unconfirmed"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


class LineItemDecision(str, enum.Enum):
    CONFIRM = "confirm"
    DECLINE = "decline"


# ── Onboarding ────────────────────────────────────────────────────────────


class InvitationType(str, enum.Enum):
    USER_INVITATION = "user_invitation"
    ORGANIZATION_INVITATION = "organization_invitation"


class JoinRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
