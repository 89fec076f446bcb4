"""
Multi-Tenant Service: Tenant Validation and Scoping Helpers

Every catalog, override, order and invoice row belongs to exactly one
distributor. Identity is resolved upstream; these helpers only check that the
ids handed in actually belong together.

SECURITY INVARIANTS:
1. Every tenant-scoped request names an active distributor
2. Product ids from client input are validated against the distributor
3. A vendor may only order from distributors it is linked to
4. Cross-tenant lookups answer "not found", never "belongs to someone else"

USAGE:
    from wholesale.services.tenant_service import require_vendor_linked

    require_vendor_linked(distributor_id, vendor_id)
"""

from flask import current_app
from ..extensions import db
from ..models import Distributor, DistributorVendor, Product, Vendor


class TenantAccessError(Exception):
    """Raised when a tenant boundary check fails."""
    pass


def require_distributor(distributor_id: int) -> Distributor:
    distributor = db.session.query(Distributor).filter_by(id=distributor_id).first()
    if not distributor or not distributor.is_active:
        raise TenantAccessError("Distributor not found")
    return distributor


def require_vendor_linked(distributor_id: int, vendor_id: int) -> DistributorVendor:
    """
    Validate the standing relationship between a distributor and a vendor.

    Raises:
        TenantAccessError if no DistributorVendor row exists
    """
    link = (
        db.session.query(DistributorVendor)
        .filter_by(distributor_id=distributor_id, vendor_id=vendor_id)
        .first()
    )
    if not link:
        current_app.logger.warning(
            "Vendor %s is not linked to distributor %s", vendor_id, distributor_id
        )
        raise TenantAccessError("Vendor not linked to distributor")
    return link


def require_product_in_distributor(
    product_id: int,
    distributor_id: int,
    *,
    include_deleted: bool = False,
) -> Product:
    """
    Validate that a product belongs to the distributor.

    Soft-deleted products count as missing unless include_deleted is set.
    """
    query = db.session.query(Product).filter_by(id=product_id, distributor_id=distributor_id)
    if not include_deleted:
        query = query.filter(Product.deleted_at.is_(None))
    product = query.first()
    if not product:
        raise TenantAccessError("Product not found")
    return product


def link_vendor(distributor_id: int, vendor_id: int) -> DistributorVendor:
    """Create the distributor/vendor relationship if it does not exist yet."""
    require_distributor(distributor_id)
    if not db.session.query(Vendor.id).filter_by(id=vendor_id).first():
        raise TenantAccessError("Vendor not found")

    link = (
        db.session.query(DistributorVendor)
        .filter_by(distributor_id=distributor_id, vendor_id=vendor_id)
        .first()
    )
    if link:
        return link

    link = DistributorVendor(distributor_id=distributor_id, vendor_id=vendor_id)
    db.session.add(link)
    db.session.commit()
    return link
