# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-distributor access is denied.

Two distributors each own a catalog. These tests verify that:
1. A vendor cannot order another distributor's products
2. A vendor cannot order from a distributor it is not linked to
3. Orders, overrides and reports never leak across distributors
4. Cross-tenant lookups answer "not found"
"""

from decimal import Decimal

import pytest

from wholesale.models import BulkPriceOverride, Order, OrderLine, VendorPriceOverride
from wholesale.services.order_service import create_order, get_order
from wholesale.services.reporting_service import profit_overview
from wholesale.services.tenant_service import (
    TenantAccessError,
    link_vendor,
    require_distributor,
    require_product_in_distributor,
    require_vendor_linked,
)
from wholesale.time_utils import utcnow


class TestTenantServiceHelpers:
    """Test tenant_service helper functions."""

    def test_require_product_in_distributor(self, db_session, distributor_a, distributor_b, case_product):
        assert require_product_in_distributor(case_product.id, distributor_a.id).id == case_product.id
        with pytest.raises(TenantAccessError, match="Product not found"):
            require_product_in_distributor(case_product.id, distributor_b.id)

    def test_soft_deleted_product_is_missing(self, db_session, distributor_a, make_product):
        product = make_product(distributor_a, name="Retired", deleted_at=utcnow())
        with pytest.raises(TenantAccessError):
            require_product_in_distributor(product.id, distributor_a.id)
        assert require_product_in_distributor(product.id, distributor_a.id, include_deleted=True)

    def test_inactive_distributor(self, db_session, distributor_b):
        distributor_b.is_active = False
        db_session.commit()
        with pytest.raises(TenantAccessError):
            require_distributor(distributor_b.id)

    def test_link_vendor_is_idempotent(self, db_session, distributor_b, vendor):
        first = link_vendor(distributor_b.id, vendor.id)
        second = link_vendor(distributor_b.id, vendor.id)
        assert first.id == second.id
        assert require_vendor_linked(distributor_b.id, vendor.id)

    def test_link_unknown_vendor(self, db_session, distributor_a):
        with pytest.raises(TenantAccessError, match="Vendor not found"):
            link_vendor(distributor_a.id, 999)


class TestOrderIsolation:
    def test_foreign_product_is_unavailable(self, db_session, distributor_a, linked_vendor, product_b):
        result = create_order(
            distributor_a.id,
            linked_vendor.id,
            [{"product_id": product_b.id, "qty": 1, "order_unit": "unit"}],
        )
        assert result.ok is False
        assert result.invalid_items == [product_b.id]
        assert db_session.query(Order).count() == 0

    def test_unlinked_vendor_cannot_order(self, db_session, distributor_b, linked_vendor, product_b):
        result = create_order(
            distributor_b.id,
            linked_vendor.id,
            [{"product_id": product_b.id, "qty": 1, "order_unit": "unit"}],
        )
        assert result.ok is False
        assert result.error == "Vendor not linked to distributor"

    def test_other_tenant_overrides_do_not_change_price(self, db_session, distributor_a, distributor_b, linked_vendor, unit_product):
        db_session.add_all([
            VendorPriceOverride(
                distributor_id=distributor_b.id,
                vendor_id=linked_vendor.id,
                product_id=unit_product.id,
                price_per_unit=Decimal("0.10"),
            ),
            BulkPriceOverride(
                distributor_id=distributor_b.id,
                product_id=unit_product.id,
                price_per_unit=Decimal("0.20"),
            ),
        ])
        db_session.commit()

        result = create_order(
            distributor_a.id,
            linked_vendor.id,
            [{"product_id": unit_product.id, "qty": 2, "order_unit": "unit"}],
        )
        assert result.ok is True
        order_line = db_session.query(OrderLine).filter_by(order_id=result.order_id).one()
        assert order_line.unit_price_snapshot == Decimal("0.75")
        assert order_line.line_total_snapshot == Decimal("1.50")

    def test_get_order_scoped_to_distributor(self, db_session, distributor_a, distributor_b, linked_vendor, unit_product):
        result = create_order(
            distributor_a.id,
            linked_vendor.id,
            [{"product_id": unit_product.id, "qty": 1, "order_unit": "unit"}],
        )
        assert get_order(result.order_id, distributor_a.id) is not None
        assert get_order(result.order_id, distributor_b.id) is None

    def test_reports_only_see_own_orders(self, db_session, distributor_a, distributor_b, linked_vendor, unit_product):
        create_order(
            distributor_a.id,
            linked_vendor.id,
            [{"product_id": unit_product.id, "qty": 4, "order_unit": "unit"}],
        )
        assert profit_overview(distributor_id=distributor_a.id, start=None, end=None)["summary"]["line_count"] == 1
        assert profit_overview(distributor_id=distributor_b.id, start=None, end=None)["summary"]["line_count"] == 0


class TestHttpIsolation:
    def test_other_distributor_cannot_read_order(self, client, db_session, distributor_a, distributor_b, linked_vendor, unit_product, tenant_headers):
        created = client.post(
            '/api/orders',
            json={'items': [{'product_id': unit_product.id, 'qty': 1, 'order_unit': 'unit'}]},
            headers=tenant_headers(distributor_a.id, vendor_id=linked_vendor.id),
        )
        order_id = created.json['order_id']

        response = client.get(f'/api/orders/{order_id}', headers=tenant_headers(distributor_b.id, role="distributor"))
        assert response.status_code == 404

    def test_other_vendor_cannot_read_order(self, client, db_session, distributor_a, linked_vendor, unit_product, tenant_headers):
        created = client.post(
            '/api/orders',
            json={'items': [{'product_id': unit_product.id, 'qty': 1, 'order_unit': 'unit'}]},
            headers=tenant_headers(distributor_a.id, vendor_id=linked_vendor.id),
        )
        response = client.get(
            f"/api/orders/{created.json['order_id']}",
            headers=tenant_headers(distributor_a.id, vendor_id=linked_vendor.id + 1),
        )
        assert response.status_code == 404

    def test_foreign_product_preview_is_not_found(self, client, db_session, distributor_a, product_b, tenant_headers):
        response = client.get(
            f'/api/pricing/products/{product_b.id}',
            headers=tenant_headers(distributor_a.id, role="distributor"),
        )
        assert response.status_code == 404

    def test_foreign_product_override_rejected(self, client, db_session, distributor_a, product_b, tenant_headers):
        response = client.put(
            f'/api/pricing/bulk-overrides/{product_b.id}',
            json={'price_per_unit': '1.00'},
            headers=tenant_headers(distributor_a.id, role="distributor"),
        )
        assert response.status_code == 400
        assert response.json['error'] == "Product not found"

    def test_unknown_distributor_header(self, client, db_session, tenant_headers):
        response = client.get('/api/reports/overview', headers=tenant_headers(4242, role="distributor"))
        assert response.status_code == 401
