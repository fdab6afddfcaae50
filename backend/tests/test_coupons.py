"""Tests for coupon resolution and the coupon routes."""

import pytest
from decimal import Decimal

from pydantic import ValidationError

from foodie.core.config import DEFAULT_COUPONS
from foodie.core.exceptions import CouponNotFound, MinimumOrderNotMet
from foodie.schemas.coupon import Coupon
from foodie.services.coupons import resolve_coupon

API = "/api/v1"


class TestResolveCoupon:
    def test_first20_applies_above_minimum(self):
        coupon = resolve_coupon("FIRST20", Decimal("30"), DEFAULT_COUPONS)
        assert coupon.discount_kind == "percentage"
        assert coupon.discount_value == Decimal("20")

    def test_case_and_whitespace_insensitive(self):
        coupon = resolve_coupon("  first20 ", Decimal("30"), DEFAULT_COUPONS)
        assert coupon.code == "FIRST20"

    def test_minimum_not_met(self):
        with pytest.raises(MinimumOrderNotMet) as exc_info:
            resolve_coupon("SAVE5", Decimal("10"), DEFAULT_COUPONS)
        assert exc_info.value.required == Decimal("15")
        assert exc_info.value.to_dict()["required"] == "15"

    def test_minimum_is_inclusive(self):
        assert resolve_coupon("SAVE5", Decimal("15"), DEFAULT_COUPONS).code == "SAVE5"

    def test_unknown_code(self):
        with pytest.raises(CouponNotFound):
            resolve_coupon("NOPE", Decimal("100"), DEFAULT_COUPONS)

    def test_returns_catalog_record_unmodified(self):
        catalog = [Coupon(code="Promo", discount_kind="fixed", discount_value=Decimal("3"))]
        coupon = resolve_coupon("PROMO", Decimal("1"), catalog)
        assert coupon is catalog[0]
        assert catalog[0].code == "Promo"

    def test_defaults_to_configured_catalog(self):
        assert resolve_coupon("WELCOME10", Decimal("20")).discount_value == Decimal("10")


class TestCouponCatalog:
    def test_percentage_above_hundred_rejected(self):
        with pytest.raises(ValidationError):
            Coupon(code="HALFPLUS", discount_kind="percentage", discount_value=Decimal("150"))

    def test_full_percentage_allowed(self):
        coupon = Coupon(code="FREE", discount_kind="percentage", discount_value=Decimal("100"))
        assert coupon.discount_value == Decimal("100")

    def test_fixed_amount_not_capped(self):
        coupon = Coupon(code="BIG", discount_kind="fixed", discount_value=Decimal("150"))
        assert coupon.discount_value == Decimal("150")


class TestCouponRoutes:
    def test_list_catalog(self, client):
        res = client.get(f"{API}/coupons")
        assert res.status_code == 200
        codes = {c["code"] for c in res.json()}
        assert {"FIRST20", "SAVE5", "FREEDEL", "WELCOME10"} <= codes

    def test_validate_percentage(self, client):
        res = client.post(f"{API}/coupons/validate", json={"code": "first20", "subtotal": "30"})
        assert res.status_code == 200
        data = res.json()
        assert data["coupon"]["code"] == "FIRST20"
        assert Decimal(data["discount_amount"]) == Decimal("6")
        assert data["free_delivery"] is False

    def test_validate_free_delivery(self, client):
        res = client.post(f"{API}/coupons/validate", json={"code": "FREEDEL", "subtotal": "20"})
        assert res.status_code == 200
        assert res.json()["free_delivery"] is True
        assert Decimal(res.json()["discount_amount"]) == 0

    def test_validate_minimum_not_met(self, client):
        res = client.post(f"{API}/coupons/validate", json={"code": "SAVE5", "subtotal": "10"})
        assert res.status_code == 400
        assert res.json()["code"] == "minimum_order_not_met"
        assert res.json()["required"] == "15"

    def test_validate_unknown(self, client):
        res = client.post(f"{API}/coupons/validate", json={"code": "BOGUS", "subtotal": "50"})
        assert res.status_code == 400
        assert res.json()["code"] == "coupon_not_found"
