# storefront/repos/voucher_repo.py
from datetime import datetime

from sqlalchemy import select, update, or_
from sqlalchemy.orm import Session

from storefront.data.models.voucher import VoucherModel, UserVoucherModel


class VoucherRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_voucher_by_code(self, code: str) -> VoucherModel | None:
        return self.db.execute(
            select(VoucherModel).where(VoucherModel.code == code)
        ).scalar_one_or_none()

    def get_voucher(self, voucher_id: int) -> VoucherModel | None:
        return self.db.get(VoucherModel, voucher_id)

    def get_all_vouchers(self) -> list[VoucherModel]:
        return list(self.db.execute(select(VoucherModel).order_by(VoucherModel.id)).scalars().all())

    def get_active_vouchers(self, now: datetime) -> list[VoucherModel]:
        stmt = (
            select(VoucherModel)
            .where(
                VoucherModel.is_active.is_(True),
                or_(VoucherModel.start_at.is_(None), VoucherModel.start_at <= now),
                or_(VoucherModel.end_at.is_(None), VoucherModel.end_at >= now),
            )
            .order_by(VoucherModel.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def save_voucher(self, voucher: VoucherModel) -> VoucherModel:
        self.db.add(voucher)
        self.db.commit()
        self.db.refresh(voucher)
        return voucher

    def deactivate_voucher(self, voucher_id: int) -> int:
        result = self.db.execute(
            update(VoucherModel)
            .where(VoucherModel.id == voucher_id)
            .values(is_active=False)
        )
        self.db.commit()
        return result.rowcount

    def increment_used_count(self, voucher_id: int) -> int:
        # used_count = used_count + 1 (bez sprawdzania usage_limit)
        result = self.db.execute(
            update(VoucherModel)
            .where(VoucherModel.id == voucher_id)
            .values(used_count=VoucherModel.used_count + 1)
        )
        self.db.commit()
        return result.rowcount

    def get_user_voucher(self, user_id: int, voucher_id: int) -> UserVoucherModel | None:
        return self.db.execute(
            select(UserVoucherModel).where(
                UserVoucherModel.user_id == user_id,
                UserVoucherModel.voucher_id == voucher_id,
            )
        ).scalar_one_or_none()

    def increment_user_voucher_count(self, user_id: int, voucher_id: int):
        rowcount = self.db.execute(
            update(UserVoucherModel)
            .where(
                UserVoucherModel.user_id == user_id,
                UserVoucherModel.voucher_id == voucher_id,
            )
            .values(used_count=UserVoucherModel.used_count + 1)
        ).rowcount

        #pierwsze uzycie vouchera przez usera
        if rowcount == 0:
            self.db.add(UserVoucherModel(user_id=user_id, voucher_id=voucher_id, used_count=1))

        self.db.commit()

    def rollback(self):
        self.db.rollback()
