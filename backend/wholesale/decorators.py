# Overview: Request context decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services.tenant_service import TenantAccessError, require_distributor

ACTOR_ROLES = ("distributor", "vendor")


def _header_int(name: str) -> int | None:
    raw = request.headers.get(name)
    if raw is None or not raw.strip().isdigit():
        return None
    value = int(raw.strip())
    return value if value > 0 else None


def require_tenant_context(f):
    """
    Establish tenant context from the upstream gateway headers.

    Identity is resolved before requests reach this service. Sets:
    - g.distributor_id: tenant (X-Distributor-Id) - REQUIRED
    - g.vendor_id: buyer account (X-Vendor-Id), may be None
    - g.actor_id: user id (X-Actor-Id), may be None
    - g.actor_role: "distributor" or "vendor" (X-Actor-Role), may be None

    Returns 401 if the tenant header is missing or names an unknown or
    inactive distributor.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        distributor_id = _header_int("X-Distributor-Id")
        if distributor_id is None:
            return jsonify({"error": "Tenant context required"}), 401

        try:
            require_distributor(distributor_id)
        except TenantAccessError as exc:
            return jsonify({"error": str(exc)}), 401

        role = request.headers.get("X-Actor-Role")
        g.distributor_id = distributor_id
        g.vendor_id = _header_int("X-Vendor-Id")
        g.actor_id = request.headers.get("X-Actor-Id") or None
        g.actor_role = role if role in ACTOR_ROLES else None

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the actor role set by require_tenant_context to be one of roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "distributor_id"):
                return jsonify({"error": "Tenant context required"}), 401
            if g.actor_role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                }), 403
            return f(*args, **kwargs)

        return decorated_function
    return decorator
