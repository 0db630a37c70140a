"""Organization module constants: reserved slugs, cache keys, messages."""

import re

# ---------------------------------------------------------------------------
# Reserved organization slugs (compared case-insensitively)
# ---------------------------------------------------------------------------

# Application routes and admin surfaces
SYSTEM_SLUGS = (
    "admin", "api", "app", "assets", "auth", "blog", "dashboard", "docs",
    "help", "home", "login", "logout", "mail", "oauth", "profile",
    "register", "settings", "support", "www",
)

# Product vocabulary
PRODUCT_SLUGS = (
    "portzapp", "portz", "port", "ports", "organization", "organizations",
    "vessel", "vessels", "service", "services", "order", "orders",
    "invitation", "invitations", "join", "member", "members",
)

# Common business pages
BUSINESS_SLUGS = (
    "about", "contact", "faq", "legal", "privacy", "terms", "security",
    "status", "health", "metrics", "monitoring",
)

# Infrastructure and static asset paths
TECHNICAL_SLUGS = (
    "cdn", "static", "media", "uploads", "downloads", "files", "images",
    "css", "js", "fonts", "cache", "tmp", "temp",
)

# Placeholder and unsafe words
DENIED_SLUGS = (
    "test", "demo", "example", "sample", "null", "undefined", "admin123",
    "password", "secret", "private",
)

RESERVED_SLUG_GROUPS = (
    SYSTEM_SLUGS,
    PRODUCT_SLUGS,
    BUSINESS_SLUGS,
    TECHNICAL_SLUGS,
    DENIED_SLUGS,
)

# Slugs that are a reserved word followed only by digits ("admin2", "test01")
RESERVED_SLUG_PATTERN = re.compile(r"^(admin|root|system|test)\d*$")

# Suffix appended to generated slugs that collide with the reserved list
GENERATED_SLUG_SUFFIX = "org"

# ---------------------------------------------------------------------------
# Validation messages
# ---------------------------------------------------------------------------

MSG_SLUG_RESERVED = "This organization slug is reserved and cannot be used."
MSG_SLUG_RESERVED_TERMS = "This organization slug contains reserved terms."

# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

CACHE_PREFIX = "portzapp"
RESERVED_SLUGS_CACHE_KEY = "reserved_organization_slugs"
