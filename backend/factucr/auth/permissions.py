"""Granular permission system for FactuCR RBAC.

Design:
  - Each role has a set of DEFAULT permissions (defined here, not in DB).
  - Admins can grant/revoke individual permissions per user via
    `User.custom_permissions` (a JSON dict of {perm: True/False} overrides).
  - `resolve_permissions(role, custom_permissions)` computes the effective
    permission set for a given user.
  - The effective set is embedded in the JWT so most checks are token-only
    (no DB roundtrip).

Permission naming: `<resource>.<action>`
  Resources: invoice, customer, product, company, reports, audit
  Actions:   read, write, delete, issue, cancel, export, manage
"""

from __future__ import annotations


# ── All known permissions ───────────────────────────────────

ALL_PERMISSIONS: set[str] = {
    # Invoices
    "invoice.read",
    "invoice.write",          # create / edit drafts
    "invoice.delete",         # delete drafts
    "invoice.issue",
    "invoice.cancel",
    "invoice.export",         # electronic invoice XML

    # Customers
    "customer.read",
    "customer.write",
    "customer.delete",

    # Products & services catalogue
    "product.read",
    "product.write",
    "product.delete",

    # Company profile (issuer data for Hacienda)
    "company.manage",

    # Reports & audit trail
    "reports.read",
    "audit.read",
}


# ── Role → default permissions ──────────────────────────────

ROLE_DEFAULTS: dict[str, set[str]] = {
    "administrator": ALL_PERMISSIONS.copy(),

    "billing_clerk": {
        "invoice.read", "invoice.write", "invoice.delete",
        "invoice.issue", "invoice.export",
        "customer.read", "customer.write",
        "product.read",
    },

    "accountant": {
        "invoice.read", "invoice.export",
        "customer.read",
        "product.read",
        "reports.read",
        "audit.read",
    },
}


# ── Resolution ──────────────────────────────────────────────

def resolve_permissions(
    role: str,
    custom_overrides: dict[str, bool] | None = None,
) -> list[str]:
    """Compute effective permissions for a user.

    1. Start with the role's defaults.
    2. Apply custom_overrides: {perm: True} adds, {perm: False} removes.
    3. Return a sorted list (for stable JWT claims).
    """
    base = ROLE_DEFAULTS.get(role, set()).copy()

    if custom_overrides:
        for perm, granted in custom_overrides.items():
            if perm not in ALL_PERMISSIONS:
                continue  # ignore unknown permissions
            if granted:
                base.add(perm)
            else:
                base.discard(perm)

    return sorted(base)


def has_permission(user_permissions: list[str] | set[str], required: str) -> bool:
    """Check whether a permission set satisfies a requirement."""
    return required in user_permissions
