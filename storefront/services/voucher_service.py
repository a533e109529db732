# storefront/services/voucher_service.py
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.data.models.voucher import VoucherModel
from storefront.domain.errors import (
    ValidationError,
    VoucherNotFoundError,
    VoucherRejection,
)
from storefront.domain.schemas import VoucherCreate, VoucherUpdate
from storefront.repos.voucher_repo import VoucherRepo
from storefront.utils.logging import get_logger
from storefront.utils.money import ZERO, to_money

logger = get_logger(__name__)

DISCOUNT_TYPES = ("percent", "fixed")
#pola bez NULL w tabeli, null w PUT jest bledem a nie "wyczysc"
REQUIRED_FIELDS = ("description", "discount_type", "discount_value", "min_order_value", "usage_per_user", "is_active")

VALID_MESSAGE = "Voucher is valid"
REJECTION_MESSAGES = {
    VoucherRejection.NOT_FOUND: "Invalid voucher code",
    VoucherRejection.INACTIVE: "Voucher is not active",
    VoucherRejection.NOT_YET_VALID: "Voucher not yet valid",
    VoucherRejection.EXPIRED: "Voucher has expired",
    VoucherRejection.BELOW_MINIMUM: "Order value does not meet minimum requirement",
    VoucherRejection.LIMIT_REACHED: "Voucher usage limit reached",
}


@dataclass(frozen=True)
class VoucherEvaluation:
    applicable: bool
    discount_amount: Decimal
    reason: str
    rejection: VoucherRejection | None = None
    voucher: VoucherModel | None = None


def _as_utc(value: datetime | None) -> datetime | None:
    # sqlite zwraca naive datetime, traktujemy je jako UTC
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def compute_discount(voucher: VoucherModel, subtotal: Decimal) -> Decimal:
    """
    percent: subtotal * value / 100, obciete do max_discount_value
    fixed:   value, bez obcinania do subtotal (total moze wyjsc ujemny)
    """
    value = Decimal(voucher.discount_value)

    if voucher.discount_type == "percent":
        discount = to_money(subtotal * value / Decimal(100))
        if voucher.max_discount_value is not None:
            discount = min(discount, to_money(voucher.max_discount_value))
        return discount

    return to_money(value)


class VoucherService:
    """
    Voucher lookup/administration and the evaluator used both by the
    read-only validate query and by checkout.
    """

    def __init__(self, db: Session):
        self.repo = VoucherRepo(db)

    #query
    def evaluate(self, code: str, subtotal: Decimal, now: datetime | None = None) -> VoucherEvaluation:
        """
        Decide whether `code` applies to `subtotal` at `now`.

        Checks run in a fixed order (lookup, active flag, validity window,
        minimum order value, global usage limit) and the first failure wins.
        Nothing is written; usage counters change only when an order commits.
        """
        now = _as_utc(now) or datetime.now(timezone.utc)
        subtotal = to_money(subtotal)

        voucher = self.repo.get_voucher_by_code(code)
        if not voucher:
            return self._reject(VoucherRejection.NOT_FOUND)

        if not voucher.is_active:
            return self._reject(VoucherRejection.INACTIVE, voucher)

        start_at = _as_utc(voucher.start_at)
        end_at = _as_utc(voucher.end_at)
        if start_at is not None and start_at > now:
            return self._reject(VoucherRejection.NOT_YET_VALID, voucher)
        if end_at is not None and end_at < now:
            return self._reject(VoucherRejection.EXPIRED, voucher)

        if subtotal < to_money(voucher.min_order_value or 0):
            return self._reject(VoucherRejection.BELOW_MINIMUM, voucher)

        if voucher.usage_limit is not None and voucher.used_count >= voucher.usage_limit:
            return self._reject(VoucherRejection.LIMIT_REACHED, voucher)

        return VoucherEvaluation(
            applicable=True,
            discount_amount=compute_discount(voucher, subtotal),
            reason=VALID_MESSAGE,
            voucher=voucher,
        )

    @staticmethod
    def _reject(rejection: VoucherRejection, voucher: VoucherModel | None = None) -> VoucherEvaluation:
        return VoucherEvaluation(
            applicable=False,
            discount_amount=ZERO,
            reason=REJECTION_MESSAGES[rejection],
            rejection=rejection,
            voucher=voucher,
        )

    def get_all_vouchers(self) -> list[VoucherModel]:
        return self.repo.get_all_vouchers()

    def get_active_vouchers(self) -> list[VoucherModel]:
        return self.repo.get_active_vouchers(datetime.now(timezone.utc))

    def get_voucher_by_code(self, code: str) -> VoucherModel:
        voucher = self.repo.get_voucher_by_code(code)
        if not voucher:
            raise VoucherNotFoundError("Voucher not found")
        return voucher

    #commands
    def create_voucher(self, payload: VoucherCreate) -> VoucherModel:
        if self.repo.get_voucher_by_code(payload.code):
            raise ValidationError("voucher code already exists", field="code")

        self._check_discount(payload.discount_type, payload.discount_value)

        voucher = VoucherModel(
            code=payload.code,
            description=payload.description,
            discount_type=payload.discount_type,
            discount_value=payload.discount_value,
            min_order_value=payload.min_order_value,
            max_discount_value=payload.max_discount_value,
            usage_limit=payload.usage_limit,
            usage_per_user=payload.usage_per_user,
            start_at=payload.start_at,
            end_at=payload.end_at,
            is_active=True,
            used_count=0,
        )
        created = self.repo.save_voucher(voucher)
        logger.info(f"Utworzono voucher {created.code} (id {created.id})")
        return created

    def update_voucher(self, voucher_id: int, payload: VoucherUpdate) -> VoucherModel:
        voucher = self.repo.get_voucher(voucher_id)
        if not voucher:
            raise VoucherNotFoundError(f"Voucher {voucher_id} not found")

        changes = payload.model_dump(exclude_unset=True)
        for field in REQUIRED_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null", field=field)

        self._check_discount(
            changes.get("discount_type", voucher.discount_type),
            changes.get("discount_value", voucher.discount_value),
        )

        for field, value in changes.items():
            setattr(voucher, field, value)

        return self.repo.save_voucher(voucher)

    def delete_voucher(self, voucher_id: int):
        #soft delete, zamowienia dalej wskazuja na voucher
        if self.repo.deactivate_voucher(voucher_id) == 0:
            raise VoucherNotFoundError(f"Voucher {voucher_id} not found")
        logger.info(f"Voucher {voucher_id} dezaktywowany")

    @staticmethod
    def _check_discount(discount_type: str, discount_value):
        if discount_type not in DISCOUNT_TYPES:
            raise ValidationError(f"Unknown discount type: {discount_type}", field="discount_type")
        if discount_value is None or Decimal(discount_value) <= 0:
            raise ValidationError("Discount value must be greater than 0", field="discount_value")
