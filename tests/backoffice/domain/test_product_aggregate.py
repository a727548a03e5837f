"""Tests for the Product aggregate — stock movements on flat and variant products."""

import pytest
from backoffice.exceptions import VariantNotFound
from backoffice.inventory.alerts import StockAlert
from backoffice.inventory.events import ProductCreated, StockAlertRaised, StockChanged, VariantMatrixUpdated
from backoffice.inventory.product import Product
from protean.exceptions import ValidationError


def _make_flat(stock=10, **overrides):
    defaults = {"name": "Mug", "price": 25000.0, "stock": stock}
    defaults.update(overrides)
    return Product.create(**defaults)


def _make_variant_product(stock_overrides=None):
    stock = {("Red", "M"): 5, ("Red", "L"): 8, ("Blue", "M"): 3}
    stock.update(stock_overrides or {})
    return Product.create(
        name="T-Shirt",
        price=50000.0,
        variants=[{"color": c, "size": s, "stock": n} for (c, s), n in stock.items()],
    )


class TestProductCreation:
    def test_flat_product(self):
        product = _make_flat(stock=12)
        assert product.has_variants() is False
        assert product.total_stock() == 12

    def test_variant_product_ignores_flat_stock(self):
        product = Product.create(name="Cap", stock=99, variants=[{"color": "Red", "size": "M", "stock": 4}])
        assert product.stock == 0
        assert product.total_stock() == 4

    def test_variants_get_skus(self):
        product = _make_variant_product()
        assert product.find_variant("Red", "M").sku == "RED-M"

    def test_raises_product_created(self):
        product = _make_variant_product()
        event = product._events[0]
        assert isinstance(event, ProductCreated)
        assert event.variant_count == 3
        assert event.total_stock == 16

    def test_duplicate_pairs_are_rejected(self):
        with pytest.raises(ValidationError):
            Product.create(
                name="Cap",
                variants=[{"color": "Red", "size": "M"}, {"color": "red ", "size": "m"}],
            )


class TestVariantLookup:
    def test_lookup_is_case_insensitive(self):
        product = _make_variant_product()
        assert product.find_variant("rEd", " m ").stock == 5

    def test_unknown_pair(self):
        product = _make_variant_product()
        assert product.find_variant("Green", "M") is None

    def test_availability(self):
        product = _make_variant_product()
        assert product.is_available("Blue", "M", quantity=3)
        assert not product.is_available("Blue", "M", quantity=4)
        assert product.available_colors() == ["Red", "Blue"]
        assert product.available_sizes_for_color("Red") == ["M", "L"]


class TestDeduction:
    def test_flat_deduction(self):
        product = _make_flat(stock=10)
        change = product.deduct_stock(3)
        assert product.stock == 7
        assert (change.previous_stock, change.new_stock, change.requested) == (10, 7, 3)

    def test_flat_deduction_clamps_at_zero(self):
        product = _make_flat(stock=2)
        change = product.deduct_stock(5)
        assert product.stock == 0
        assert change.new_stock == 0
        assert change.requested == 5

    def test_variant_deduction_touches_only_target(self):
        product = _make_variant_product()
        product.deduct_stock(2, color="red", size="m")
        assert product.find_variant("Red", "M").stock == 3
        assert product.find_variant("Red", "L").stock == 8
        assert product.find_variant("Blue", "M").stock == 3

    def test_total_drops_by_deducted_amount(self):
        product = _make_variant_product()
        before = product.total_stock()
        product.deduct_stock(2, color="Red", size="L")
        assert product.total_stock() == before - 2

    def test_variant_deduction_clamps_at_zero(self):
        product = _make_variant_product({("Red", "M"): 1})
        product.deduct_stock(2, color="Red", size="M")
        assert product.find_variant("Red", "M").stock == 0

    def test_unknown_variant_raises_without_mutation(self):
        product = _make_variant_product()
        before = product.total_stock()
        with pytest.raises(VariantNotFound):
            product.deduct_stock(1, color="Green", size="XL")
        assert product.total_stock() == before

    def test_missing_selector_on_variant_product_raises(self):
        product = _make_variant_product()
        with pytest.raises(VariantNotFound):
            product.deduct_stock(1)

    def test_deduction_raises_stock_changed(self):
        product = _make_flat(stock=10)
        product._events.clear()
        product.deduct_stock(3, order_id="ord-001")
        event = product._events[0]
        assert isinstance(event, StockChanged)
        assert event.reason == "deduction"
        assert event.order_id == "ord-001"


class TestRestoration:
    def test_round_trip_without_clamping(self):
        product = _make_variant_product()
        product.deduct_stock(4, color="Red", size="L")
        product.restore_stock(4, color="Red", size="L")
        assert product.find_variant("Red", "L").stock == 8

    def test_round_trip_with_clamping_is_clamp_aware(self):
        product = _make_variant_product({("Blue", "M"): 3})
        product.deduct_stock(5, color="Blue", size="M")
        clamped = product.find_variant("Blue", "M").stock
        product.restore_stock(5, color="Blue", size="M")
        assert clamped == 0
        assert product.find_variant("Blue", "M").stock == clamped + 5

    def test_restore_is_not_capped(self):
        product = _make_flat(stock=10)
        product.restore_stock(15)
        assert product.stock == 25


class TestSetStock:
    def test_set_flat_stock(self):
        product = _make_flat(stock=10)
        change = product.set_stock(40)
        assert product.stock == 40
        assert change.previous_stock == 10

    def test_set_variant_stock(self):
        product = _make_variant_product()
        product.set_stock(20, color="Blue", size="M")
        assert product.find_variant("Blue", "M").stock == 20

    def test_negative_stock_is_rejected(self):
        product = _make_flat()
        with pytest.raises(ValidationError):
            product.set_stock(-1)

    def test_variant_selector_on_flat_product_raises(self):
        product = _make_flat()
        with pytest.raises(VariantNotFound):
            product.set_stock(5, color="Red", size="M")


class TestStockAlertFlag:
    def test_none_raises_nothing(self):
        product = _make_flat()
        product._events.clear()
        product.flag_stock_alert(StockAlert.NONE, 5, 5, 10)
        assert product._events == []

    def test_alert_event_carries_variant_label(self):
        product = _make_variant_product()
        product._events.clear()
        product.flag_stock_alert(StockAlert.OUT_OF_STOCK, 1, 0, 10, color="Red", size="M")
        event = product._events[0]
        assert isinstance(event, StockAlertRaised)
        assert event.classification == "outOfStock"
        assert event.variant_label == "Red - M"


class TestVariantMatrix:
    def test_regenerate_keeps_surviving_stock(self):
        product = _make_variant_product()
        product.regenerate_variants(["Red", "Black"], ["M"])
        assert product.find_variant("Red", "M").stock == 5
        assert product.find_variant("Black", "M").stock == 0
        assert product.find_variant("Red", "L") is None
        assert len(product.variants) == 2

    def test_regenerate_turns_flat_product_into_variant_product(self):
        product = _make_flat(stock=10)
        product.regenerate_variants(["Red"], ["S", "M"])
        assert product.has_variants()
        assert product.stock == 0
        assert isinstance(product._events[-1], VariantMatrixUpdated)

    def test_regenerate_needs_colors_and_sizes(self):
        product = _make_variant_product()
        with pytest.raises(ValidationError):
            product.regenerate_variants([], ["M"])

    def test_low_and_out_of_stock_variants(self):
        product = _make_variant_product({("Blue", "M"): 0})
        assert [v.label() for v in product.low_stock_variants(6)] == ["Red - M"]
        assert [v.label() for v in product.out_of_stock_variants()] == ["Blue - M"]
