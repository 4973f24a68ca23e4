"""
Role and capability definitions.

Every authorization decision goes through ROLE_CAPABILITIES. Roles are
resolved to a capability set once per request (see decorators.require_auth);
routes ask for capabilities, never for role names.
"""

# =============================================================================
# CAPABILITIES
# =============================================================================

class Capability:
    """Capability codes checked by @require_capability."""
    VIEW_ALL_REPORTS = "VIEW_ALL_REPORTS"
    VIEW_OWN_REPORTS = "VIEW_OWN_REPORTS"
    CREATE_REPORTS = "CREATE_REPORTS"
    EXPORT_REPORTS = "EXPORT_REPORTS"
    DELETE_REPORTS = "DELETE_REPORTS"
    RESOLVE_ISSUES = "RESOLVE_ISSUES"
    MANAGE_USERS = "MANAGE_USERS"
    VIEW_COMMODITIES = "VIEW_COMMODITIES"
    MANAGE_COMMODITIES = "MANAGE_COMMODITIES"
    COMPRESS_PHOTOS = "COMPRESS_PHOTOS"


ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    "admin": frozenset({
        Capability.VIEW_ALL_REPORTS,
        Capability.EXPORT_REPORTS,
        Capability.DELETE_REPORTS,
        Capability.RESOLVE_ISSUES,
        Capability.MANAGE_USERS,
        Capability.VIEW_COMMODITIES,
        Capability.MANAGE_COMMODITIES,
        Capability.COMPRESS_PHOTOS,
    }),
    "routeman": frozenset({
        Capability.VIEW_OWN_REPORTS,
        Capability.CREATE_REPORTS,
        Capability.VIEW_COMMODITIES,
        Capability.COMPRESS_PHOTOS,
    }),
    "viewer": frozenset({
        Capability.VIEW_ALL_REPORTS,
        Capability.VIEW_COMMODITIES,
    }),
}


# Client views each role may open; the first entry is the landing view.
ROLE_VIEWS: dict[str, tuple[str, ...]] = {
    "admin": ("admin",),
    "routeman": ("dashboard", "new-report", "new-fridge-report"),
    "viewer": ("dashboard",),
}


# Report list scopes
SCOPE_ALL = "all"
SCOPE_OWN = "own"


def capabilities_for(role: str | None) -> frozenset[str]:
    """Capability set for a role; unknown roles get nothing."""
    return ROLE_CAPABILITIES.get(role or "", frozenset())


def views_for(role: str | None) -> tuple[str, ...]:
    return ROLE_VIEWS.get(role or "", ())


def home_view(role: str | None) -> str | None:
    views = views_for(role)
    return views[0] if views else None


def can_open_view(role: str | None, view: str) -> bool:
    return view in views_for(role)


def report_scope(capabilities: frozenset[str]) -> str | None:
    """
    Which reports a caller may read: every report, only their own, or none.
    """
    if Capability.VIEW_ALL_REPORTS in capabilities:
        return SCOPE_ALL
    if Capability.VIEW_OWN_REPORTS in capabilities:
        return SCOPE_OWN
    return None
