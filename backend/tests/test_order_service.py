# Overview: Pytest coverage for order creation, snapshots, stock checks and compensating rollback.

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from wholesale.models import Order, OrderLine, VendorPriceOverride
from wholesale.services import order_service
from wholesale.services.order_service import LineRequest, create_order
from wholesale.time_utils import utcnow


def line(product, qty, unit="unit"):
    return {"product_id": product.id, "qty": qty, "order_unit": unit}


class TestCartValidation:
    """Input problems are rejected before anything is written."""

    def test_empty_cart(self, db_session, distributor_a, linked_vendor):
        result = create_order(distributor_a.id, linked_vendor.id, [])
        assert result.ok is False
        assert result.error == "Cart is empty"
        assert result.status == 400

    @pytest.mark.parametrize("qty", [0, -1, 1.5, True, "abc", None])
    def test_invalid_quantity(self, db_session, distributor_a, linked_vendor, unit_product, qty):
        result = create_order(distributor_a.id, linked_vendor.id, [line(unit_product, qty)])
        assert result.ok is False
        assert result.error == "Invalid cart"

    def test_integral_float_and_digit_string_quantities_accepted(self, db_session, distributor_a, linked_vendor, unit_product):
        result = create_order(
            distributor_a.id,
            linked_vendor.id,
            [line(unit_product, 2.0), line(unit_product, "3")],
        )
        assert result.ok is True
        lines = db_session.query(OrderLine).filter_by(order_id=result.order_id).order_by(OrderLine.line_number).all()
        assert [l.qty for l in lines] == [2, 3]

    def test_unknown_order_unit(self, db_session, distributor_a, linked_vendor, unit_product):
        result = create_order(distributor_a.id, linked_vendor.id, [line(unit_product, 1, "pallet")])
        assert result.ok is False
        assert result.error == "Invalid order unit"

    def test_missing_context(self, db_session, unit_product):
        result = create_order(None, None, [line(unit_product, 1)])
        assert result.ok is False

    def test_line_request_objects_accepted(self, db_session, distributor_a, linked_vendor, unit_product):
        result = create_order(
            distributor_a.id,
            linked_vendor.id,
            [LineRequest(product_id=unit_product.id, qty=1, order_unit="unit")],
        )
        assert result.ok is True


class TestRelationship:
    def test_unlinked_vendor_rejected(self, db_session, distributor_a, vendor, unit_product):
        result = create_order(distributor_a.id, vendor.id, [line(unit_product, 1)])
        assert result.ok is False
        assert result.error == "Vendor not linked to distributor"
        assert db_session.query(Order).count() == 0


class TestCatalogConsistency:
    def test_case_not_allowed(self, db_session, distributor_a, linked_vendor, unit_product):
        result = create_order(distributor_a.id, linked_vendor.id, [line(unit_product, 1, "case")])
        assert result.ok is False
        assert result.error == "Product Loose Lemon cannot be ordered by case"

    def test_case_without_units_per_case(self, db_session, distributor_a, linked_vendor, make_product):
        product = make_product(distributor_a, name="Odd Crate", allow_case=True, sell_per_case=Decimal("20"))
        result = create_order(distributor_a.id, linked_vendor.id, [line(product, 1, "case")])
        assert result.ok is False
        assert "cannot be ordered by case" in result.error

    def test_unusable_price(self, db_session, distributor_a, linked_vendor, make_product):
        product = make_product(distributor_a, name="Free Sample", sell_per_unit=None)
        result = create_order(distributor_a.id, linked_vendor.id, [line(product, 1)])
        assert result.ok is False
        assert result.error == "Set unit price in inventory before ordering Free Sample by unit"

    def test_zero_override_makes_line_unorderable(self, db_session, distributor_a, linked_vendor, unit_product):
        db_session.add(VendorPriceOverride(
            distributor_id=distributor_a.id,
            vendor_id=linked_vendor.id,
            product_id=unit_product.id,
            price_per_unit=Decimal("0"),
        ))
        db_session.commit()

        result = create_order(distributor_a.id, linked_vendor.id, [line(unit_product, 1)])
        assert result.ok is False
        assert "Set unit price" in result.error


class TestStock:
    def test_exact_stock_succeeds(self, db_session, distributor_a, linked_vendor, unit_product):
        result = create_order(distributor_a.id, linked_vendor.id, [line(unit_product, 10)])
        assert result.ok is True

    def test_one_over_stock_fails(self, db_session, distributor_a, linked_vendor, unit_product):
        result = create_order(distributor_a.id, linked_vendor.id, [line(unit_product, 11)])
        assert result.ok is False
        assert result.error == "Insufficient stock for Loose Lemon. Requested: 11, Available: 10"
        assert db_session.query(Order).count() == 0

    def test_case_lines_count_in_base_units(self, db_session, distributor_a, linked_vendor, case_product):
        # 140 pieces = 20 cases
        assert create_order(distributor_a.id, linked_vendor.id, [line(case_product, 20, "case")]).ok is True
        result = create_order(distributor_a.id, linked_vendor.id, [line(case_product, 21, "case")])
        assert result.ok is False
        assert "Requested: 147, Available: 140" in result.error

    def test_lines_for_same_product_are_summed(self, db_session, distributor_a, linked_vendor, case_product):
        result = create_order(
            distributor_a.id,
            linked_vendor.id,
            [line(case_product, 19, "case"), line(case_product, 8, "unit")],
        )
        assert result.ok is False
        assert "Requested: 141, Available: 140" in result.error

    def test_oversized_quantity_is_a_stock_rejection(self, db_session, distributor_a, linked_vendor, unit_product):
        result = create_order(distributor_a.id, linked_vendor.id, [line(unit_product, 10**27)])
        assert result.ok is False
        assert result.status == 400
        assert result.error == f"Insufficient stock for Loose Lemon. Requested: {10**27}, Available: 10"

    def test_stock_checked_before_pricing(self, db_session, distributor_a, linked_vendor, make_product):
        product = make_product(distributor_a, name="Unpriced Crate", sell_per_unit=None, stock_pieces=3)
        result = create_order(distributor_a.id, linked_vendor.id, [line(product, 4)])
        assert result.ok is False
        assert result.error == "Insufficient stock for Unpriced Crate. Requested: 4, Available: 3"

    def test_stock_is_not_decremented(self, db_session, distributor_a, linked_vendor, unit_product):
        create_order(distributor_a.id, linked_vendor.id, [line(unit_product, 4)])
        db_session.refresh(unit_product)
        assert unit_product.stock_pieces == 10


class TestCatalogRecovery:
    def test_missing_products_fail_without_recovery(self, db_session, distributor_a, linked_vendor, unit_product):
        result = create_order(
            distributor_a.id,
            linked_vendor.id,
            [line(unit_product, 1), {"product_id": 999999, "qty": 1, "order_unit": "unit"}],
        )
        assert result.ok is False
        assert result.error == "Some selected items are no longer available."
        assert result.invalid_items == [999999]
        assert result.should_retry is None

    def test_partial_cart_recovery_then_resubmit(self, db_session, distributor_a, linked_vendor, unit_product, make_product):
        retired = make_product(distributor_a, name="Retired Soda", deleted_at=utcnow())
        cart = [line(unit_product, 1), line(retired, 1)]

        result = create_order(distributor_a.id, linked_vendor.id, cart, allow_catalog_recovery=True)
        assert result.ok is False
        assert result.to_dict() == {
            "ok": False,
            "error": "Some items are no longer available and were removed from your cart.",
            "invalid_items": [retired.id],
            "should_retry": True,
        }
        assert db_session.query(Order).count() == 0

        # Client drops the invalid items and submits again
        trimmed = [item for item in cart if item["product_id"] not in result.invalid_items]
        retry = create_order(distributor_a.id, linked_vendor.id, trimmed, allow_catalog_recovery=True)
        assert retry.ok is True
        assert db_session.query(OrderLine).filter_by(order_id=retry.order_id).count() == 1

    def test_nothing_left_clears_cart(self, db_session, distributor_a, linked_vendor):
        result = create_order(
            distributor_a.id,
            linked_vendor.id,
            [{"product_id": 999999, "qty": 1, "order_unit": "unit"}],
            allow_catalog_recovery=True,
        )
        assert result.ok is False
        assert result.should_retry is None
        assert result.error.startswith("All items in your cart are no longer available")

    def test_soft_deleted_product_is_unavailable(self, db_session, distributor_a, linked_vendor, unit_product):
        unit_product.deleted_at = utcnow()
        db_session.commit()

        result = create_order(distributor_a.id, linked_vendor.id, [line(unit_product, 1)])
        assert result.ok is False
        assert result.invalid_items == [unit_product.id]


class TestSnapshots:
    def test_case_line_snapshot(self, db_session, distributor_a, linked_vendor, case_product):
        result = create_order(distributor_a.id, linked_vendor.id, [line(case_product, 2, "case")])
        assert result.ok is True

        saved = db_session.query(OrderLine).filter_by(order_id=result.order_id).one()
        assert saved.line_number == 1
        assert saved.order_unit == "case"
        assert saved.units_per_case_snapshot == 7
        assert saved.total_pieces == 14
        assert saved.case_price_snapshot == Decimal("66.000000")
        assert saved.unit_price_snapshot == Decimal("9.428600")
        assert saved.selling_price_at_time == Decimal("66.000000")
        assert saved.line_total_snapshot == Decimal("132.00")
        assert saved.cost_price_at_time == Decimal("5.000000")
        assert saved.case_cost_at_time == Decimal("35.000000")
        assert saved.product_name == "Cola 7-pack"
        assert saved.category_name == "Beverages"

    def test_override_changes_do_not_touch_existing_orders(self, db_session, distributor_a, linked_vendor, case_product):
        override = VendorPriceOverride(
            distributor_id=distributor_a.id,
            vendor_id=linked_vendor.id,
            product_id=case_product.id,
            price_per_case=Decimal("50"),
        )
        db_session.add(override)
        db_session.commit()

        first = create_order(distributor_a.id, linked_vendor.id, [line(case_product, 1, "case")])
        assert first.ok is True
        first_line = db_session.query(OrderLine).filter_by(order_id=first.order_id).one()
        assert first_line.case_price_snapshot == Decimal("50.000000")
        assert first_line.unit_price_snapshot == Decimal("7.142857")

        override.price_per_case = Decimal("60")
        db_session.commit()

        second = create_order(distributor_a.id, linked_vendor.id, [line(case_product, 1, "case")])
        second_line = db_session.query(OrderLine).filter_by(order_id=second.order_id).one()
        assert second_line.case_price_snapshot == Decimal("60.000000")

        db_session.refresh(first_line)
        assert first_line.case_price_snapshot == Decimal("50.000000")
        assert first_line.line_total_snapshot == Decimal("50.00")

        db_session.refresh(case_product)
        assert case_product.sell_per_unit == Decimal("9.428600")
        assert case_product.sell_per_case == Decimal("66.000000")

    def test_line_numbers_follow_cart_order(self, db_session, distributor_a, linked_vendor, case_product, unit_product):
        result = create_order(
            distributor_a.id,
            linked_vendor.id,
            [line(unit_product, 1), line(case_product, 1, "case")],
        )
        lines = db_session.query(OrderLine).filter_by(order_id=result.order_id).order_by(OrderLine.line_number).all()
        assert [(l.line_number, l.product_id) for l in lines] == [(1, unit_product.id), (2, case_product.id)]


class TestHeaderMetadata:
    def test_metadata_written_when_schema_supports_it(self, db_session, distributor_a, linked_vendor, unit_product):
        result = create_order(
            distributor_a.id,
            linked_vendor.id,
            [line(unit_product, 1)],
            actor_id=42,
            actor_role="vendor",
            vendor_note="Back door",
            source="api",
        )
        order = db_session.get(Order, result.order_id)
        assert order.status == "placed"
        assert order.vendor_note == "Back door"
        assert order.created_by_user_id == "42"
        assert order.created_by_role == "vendor"
        assert order.created_source == "api"

    def test_metadata_skipped_when_columns_missing(self, db_session, distributor_a, linked_vendor, unit_product, monkeypatch):
        monkeypatch.setattr(order_service, "order_metadata_supported", lambda: False)
        result = create_order(
            distributor_a.id,
            linked_vendor.id,
            [line(unit_product, 1)],
            actor_id=42,
            vendor_note="Back door",
        )
        assert result.ok is True
        order = db_session.get(Order, result.order_id)
        assert order.vendor_note is None
        assert order.created_by_user_id is None


class TestCompensatingRollback:
    def test_header_removed_when_lines_fail(self, db_session, distributor_a, linked_vendor, unit_product, monkeypatch):
        def failing_insert(order_id, rows):
            raise OperationalError("INSERT INTO order_lines", {}, Exception("disk I/O error"))

        monkeypatch.setattr(order_service, "_insert_lines", failing_insert)

        result = create_order(distributor_a.id, linked_vendor.id, [line(unit_product, 1)])

        assert result.ok is False
        assert result.status == 500
        assert result.error == "Failed to create order items"
        assert result.details["rolled_back"] is True
        assert db_session.query(Order).count() == 0
        assert db_session.query(OrderLine).count() == 0

    def test_success_returns_only_order_id(self, db_session, distributor_a, linked_vendor, unit_product):
        result = create_order(distributor_a.id, linked_vendor.id, [line(unit_product, 1)])
        assert result.to_dict() == {"ok": True, "order_id": result.order_id}
        assert result.status == 201
