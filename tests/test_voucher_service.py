"""Tests for voucher evaluation and administration."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from storefront.domain.errors import ValidationError, VoucherNotFoundError, VoucherRejection
from storefront.domain.schemas import VoucherCreate, VoucherUpdate
from storefront.services.voucher_service import VoucherService


def _now():
    return datetime.now(timezone.utc)


class TestEvaluateDiscount:
    def test_percent_voucher_is_capped(self, db, make_voucher):
        make_voucher(code="TEN", discount_value="10", max_discount_value=Decimal("40000"))

        result = VoucherService(db).evaluate("TEN", Decimal("500000"))

        assert result.applicable
        assert result.discount_amount == Decimal("40000.00")
        assert result.reason == "Voucher is valid"

    def test_percent_voucher_without_cap(self, db, make_voucher):
        make_voucher(code="TEN", discount_value="10")

        result = VoucherService(db).evaluate("TEN", Decimal("500000"))

        assert result.discount_amount == Decimal("50000.00")

    def test_percent_below_cap_is_not_raised_to_cap(self, db, make_voucher):
        make_voucher(code="TEN", discount_value="10", max_discount_value=Decimal("40000"))

        result = VoucherService(db).evaluate("TEN", Decimal("120000"))

        assert result.discount_amount == Decimal("12000.00")

    def test_fixed_voucher(self, db, make_voucher):
        make_voucher(code="FLAT", discount_type="fixed", discount_value="20000")

        result = VoucherService(db).evaluate("FLAT", Decimal("100000"))

        assert result.discount_amount == Decimal("20000.00")

    def test_fixed_voucher_is_not_clamped_to_subtotal(self, db, make_voucher):
        make_voucher(code="FLAT", discount_type="fixed", discount_value="20000")

        result = VoucherService(db).evaluate("FLAT", Decimal("5000"))

        assert result.applicable
        assert result.discount_amount == Decimal("20000.00")


class TestEvaluateRejections:
    def test_unknown_code(self, db):
        result = VoucherService(db).evaluate("NOPE", Decimal("100"))

        assert not result.applicable
        assert result.rejection == VoucherRejection.NOT_FOUND
        assert result.reason == "Invalid voucher code"
        assert result.discount_amount == Decimal("0.00")

    def test_inactive(self, db, make_voucher):
        make_voucher(code="OFF", is_active=False)

        result = VoucherService(db).evaluate("OFF", Decimal("100"))

        assert result.rejection == VoucherRejection.INACTIVE
        assert result.reason == "Voucher is not active"

    def test_not_yet_valid(self, db, make_voucher):
        make_voucher(code="SOON", start_at=_now() + timedelta(days=1))

        result = VoucherService(db).evaluate("SOON", Decimal("100"))

        assert result.rejection == VoucherRejection.NOT_YET_VALID
        assert result.reason == "Voucher not yet valid"

    def test_expired(self, db, make_voucher):
        make_voucher(code="OLD", end_at=_now() - timedelta(days=1))

        result = VoucherService(db).evaluate("OLD", Decimal("100"))

        assert result.rejection == VoucherRejection.EXPIRED
        assert result.reason == "Voucher has expired"

    def test_inside_window(self, db, make_voucher):
        make_voucher(code="NOW", start_at=_now() - timedelta(days=1), end_at=_now() + timedelta(days=1))

        assert VoucherService(db).evaluate("NOW", Decimal("100")).applicable

    def test_below_minimum(self, db, make_voucher):
        make_voucher(code="BIG", min_order_value="200000")

        result = VoucherService(db).evaluate("BIG", Decimal("199999.99"))

        assert result.rejection == VoucherRejection.BELOW_MINIMUM

    def test_minimum_is_inclusive(self, db, make_voucher):
        make_voucher(code="BIG", min_order_value="200000")

        assert VoucherService(db).evaluate("BIG", Decimal("200000")).applicable

    def test_limit_reached(self, db, make_voucher):
        make_voucher(code="CAP", usage_limit=3, used_count=3)

        result = VoucherService(db).evaluate("CAP", Decimal("100"))

        assert result.rejection == VoucherRejection.LIMIT_REACHED
        assert result.reason == "Voucher usage limit reached"

    def test_inactive_wins_over_expired(self, db, make_voucher):
        make_voucher(code="BOTH", is_active=False, end_at=_now() - timedelta(days=1))

        result = VoucherService(db).evaluate("BOTH", Decimal("100"))

        assert result.rejection == VoucherRejection.INACTIVE

    def test_explicit_now_is_used(self, db, make_voucher):
        start = _now() + timedelta(days=3)
        make_voucher(code="LATER", start_at=start)
        svc = VoucherService(db)

        assert not svc.evaluate("LATER", Decimal("100")).applicable
        assert svc.evaluate("LATER", Decimal("100"), now=start + timedelta(minutes=1)).applicable


class TestEvaluateIsReadOnly:
    def test_repeated_evaluation_is_identical_and_writes_nothing(self, db, make_voucher):
        voucher = make_voucher(code="CAP", usage_limit=1)
        svc = VoucherService(db)

        first = svc.evaluate("CAP", Decimal("1000"))
        second = svc.evaluate("CAP", Decimal("1000"))

        assert (first.applicable, first.discount_amount, first.reason) == (
            second.applicable,
            second.discount_amount,
            second.reason,
        )
        db.refresh(voucher)
        assert voucher.used_count == 0


class TestVoucherAdministration:
    def test_create_voucher(self, db):
        svc = VoucherService(db)

        voucher = svc.create_voucher(
            VoucherCreate(code="NEW", discount_type="fixed", discount_value=Decimal("5000"))
        )

        assert voucher.id is not None
        assert voucher.is_active
        assert voucher.used_count == 0
        assert voucher.usage_per_user == 1

    def test_duplicate_code_is_rejected(self, db, make_voucher):
        make_voucher(code="DUP")

        with pytest.raises(ValidationError):
            VoucherService(db).create_voucher(
                VoucherCreate(code="DUP", discount_type="percent", discount_value=Decimal("5"))
            )

    def test_update_changes_only_sent_fields(self, db, make_voucher):
        voucher = make_voucher(code="UPD", discount_value="10", description="old")

        updated = VoucherService(db).update_voucher(voucher.id, VoucherUpdate(description="new"))

        assert updated.description == "new"
        assert updated.discount_value == Decimal("10.00")
        assert updated.discount_type == "percent"

    @pytest.mark.parametrize("field", ["description", "min_order_value", "usage_per_user", "is_active"])
    def test_update_rejects_null_for_required_fields(self, db, make_voucher, field):
        voucher = make_voucher(code="NUL", description="keep")

        with pytest.raises(ValidationError) as exc:
            VoucherService(db).update_voucher(voucher.id, VoucherUpdate(**{field: None}))

        assert exc.value.field == field
        db.expire_all()
        assert db.get(type(voucher), voucher.id).description == "keep"

    def test_update_null_clears_optional_limit(self, db, make_voucher):
        voucher = make_voucher(code="CAP", usage_limit=5)

        updated = VoucherService(db).update_voucher(voucher.id, VoucherUpdate(usage_limit=None))

        assert updated.usage_limit is None

    def test_update_unknown_voucher(self, db):
        with pytest.raises(VoucherNotFoundError):
            VoucherService(db).update_voucher(999, VoucherUpdate(description="x"))

    def test_delete_is_soft(self, db, make_voucher):
        voucher = make_voucher(code="DEL")
        svc = VoucherService(db)

        svc.delete_voucher(voucher.id)

        assert svc.get_voucher_by_code("DEL").is_active is False
        assert svc.evaluate("DEL", Decimal("100")).rejection == VoucherRejection.INACTIVE

    def test_active_vouchers_skip_inactive_and_out_of_window(self, db, make_voucher):
        make_voucher(code="A")
        make_voucher(code="B", is_active=False)
        make_voucher(code="C", end_at=_now() - timedelta(days=1))
        make_voucher(code="D", start_at=_now() + timedelta(days=1))

        codes = [v.code for v in VoucherService(db).get_active_vouchers()]

        assert codes == ["A"]

    def test_get_by_code_not_found(self, db):
        with pytest.raises(VoucherNotFoundError):
            VoucherService(db).get_voucher_by_code("MISSING")
