"""Organization module: organizations, join requests, reserved slugs, auth."""

from src.modules.organization.auth import AuthenticatedUser, get_current_user
from src.modules.organization.cache import AppCache
from src.modules.organization.service import OrganizationService
from src.modules.organization.slug_validator import ReservedSlugValidator
