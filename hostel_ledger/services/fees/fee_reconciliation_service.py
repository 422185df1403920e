"""
Payment and adjustment reconciler.

Every write follows the same shape: validate, take the student's ledger
lock, change transactions and the owning fee in one database
transaction, recompute the fee purely from its transactions, commit, and
only then hand the later periods to the cascade dispatcher.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, Iterator, Optional, Tuple, Union

from sqlalchemy.orm import Session

from hostel_ledger.core.exceptions import (
    FeeNotFoundError,
    InconsistentLedgerError,
    InvalidAmountError,
    PeriodLockedError,
    TransactionNotFoundError,
    ValidationError,
)
from hostel_ledger.models.base.enums import FeeHistoryAction, PaymentMode, TransactionKind
from hostel_ledger.models.fees.fee_transaction import FeeTransaction
from hostel_ledger.models.fees.monthly_fee import MonthlyFee
from hostel_ledger.repositories.fees.fee_transaction_repository import FeeTransactionRepository
from hostel_ledger.repositories.fees.monthly_fee_repository import MonthlyFeeRepository
from hostel_ledger.services.audit.fee_audit_sink import FeeAuditSink, fee_snapshot
from hostel_ledger.services.base.base_service import BaseService
from hostel_ledger.services.fees.cascade_service import CascadeDispatcher, CascadeOutcome
from hostel_ledger.services.fees.fee_totals import apply_totals
from hostel_ledger.services.fees.period_generation_service import PeriodGenerator
from hostel_ledger.services.fees.student_locks import StudentLockRegistry, get_lock_registry
from hostel_ledger.utils.date_utils import today_local
from hostel_ledger.utils.money import ZERO, differs, to_money
from hostel_ledger.utils.periods import BillingPeriod


@dataclass
class ReconciliationResult:
    """Fee state after a ledger write, plus what the cascade did."""

    fee: MonthlyFee
    transaction: Optional[FeeTransaction] = None
    previous_paid_amount: Decimal = ZERO
    drift_detected: bool = False
    cascade: Optional[CascadeOutcome] = None


def _transaction_snapshot(txn: FeeTransaction) -> Dict[str, Any]:
    return {
        "transaction_id": txn.id,
        "kind": txn.kind.value,
        "amount": str(txn.amount),
        "transaction_date": txn.transaction_date.isoformat() if txn.transaction_date else None,
    }


class FeeReconciliationService(BaseService[MonthlyFee, MonthlyFeeRepository]):
    """Records and corrects money movements against monthly fees."""

    def __init__(
        self,
        db_session: Session,
        generator: Optional[PeriodGenerator] = None,
        audit: Optional[FeeAuditSink] = None,
        locks: Optional[StudentLockRegistry] = None,
        dispatcher: Optional[CascadeDispatcher] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        super().__init__(MonthlyFeeRepository(db_session), db_session)
        self.transactions = FeeTransactionRepository(db_session)
        self.audit = audit or FeeAuditSink(db_session)
        self.generator = generator or PeriodGenerator(db_session, audit=self.audit)
        self.locks = locks or get_lock_registry()
        self.dispatcher = dispatcher or CascadeDispatcher(locks=self.locks)
        self.clock = clock or today_local

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    def record_payment(
        self,
        student_id: str,
        hostel_id: Optional[str],
        amount: Any,
        payment_date: Optional[date] = None,
        period: Optional[Union[str, BillingPeriod]] = None,
        fee_id: Optional[str] = None,
        payment_mode: Optional[PaymentMode] = None,
        reference_number: Optional[str] = None,
        receipt_number: Optional[str] = None,
        notes: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> ReconciliationResult:
        """
        Record a positive payment against a student's fee.

        The fee is looked up by `fee_id`, or found or created for the
        student and `period` (current month by default).
        """
        amount = self._parse_amount(amount)
        if amount <= ZERO:
            raise InvalidAmountError("Payment amount must be greater than zero", amount)
        payment_date = payment_date or self.clock()
        self._validate_transaction_date(payment_date)

        if fee_id:
            fee = self.repository.find_by_id(fee_id)
            if fee is None:
                raise FeeNotFoundError(fee_id)
            if fee.student_id != student_id:
                raise ValidationError(
                    f"Fee {fee_id} does not belong to student {student_id}",
                    field="fee_id",
                )
            if hostel_id and hostel_id != fee.hostel_id:
                raise ValidationError(
                    f"Fee {fee_id} does not belong to hostel {hostel_id}",
                    field="hostel_id",
                )
        else:
            target = BillingPeriod.parse(period) if period else BillingPeriod.current(self.clock())
            fee = self.generator.ensure_fee_for_student(student_id, target, hostel_id=hostel_id)

        with self._locked_write(student_id):
            fee = self._load_fee(fee.id)
            old_values = fee_snapshot(fee)
            txn = FeeTransaction(
                fee_id=fee.id,
                student_id=fee.student_id,
                hostel_id=fee.hostel_id,
                amount=amount,
                kind=TransactionKind.PAYMENT,
                transaction_date=payment_date,
                payment_mode=payment_mode,
                reference_number=reference_number,
                receipt_number=receipt_number,
                notes=notes,
                created_by=actor_id,
            )
            self.transactions.create(txn)
            previous_paid, _ = self._recompute_from_transactions(fee)
            self.audit.record(fee, FeeHistoryAction.PAID, old_values=old_values, actor_id=actor_id)

        self._log_operation(
            "record payment",
            txn.id,
            {"fee_id": fee.id, "student_id": student_id, "period": fee.period, "amount": str(amount)},
        )
        return ReconciliationResult(
            fee=fee,
            transaction=txn,
            previous_paid_amount=previous_paid,
            cascade=self._cascade(fee, actor_id),
        )

    # -------------------------------------------------------------------------
    # Adjustments and refunds
    # -------------------------------------------------------------------------

    def record_adjustment(
        self,
        fee_id: str,
        amount: Any,
        kind: TransactionKind = TransactionKind.ADJUSTMENT,
        reason: Optional[str] = None,
        transaction_date: Optional[date] = None,
        notes: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> ReconciliationResult:
        """
        Record an adjustment (signed as given) or a refund (always negative).

        Both count toward the fee's paid amount.
        """
        kind = TransactionKind(kind)
        if kind == TransactionKind.PAYMENT:
            raise ValidationError("Use record_payment for payments", field="kind")
        amount = self._signed_amount(kind, self._parse_amount(amount))
        if not reason or not reason.strip():
            raise ValidationError(f"A reason is required for {kind.value}s", field="reason")
        transaction_date = transaction_date or self.clock()
        self._validate_transaction_date(transaction_date)

        fee = self.repository.find_by_id(fee_id)
        if fee is None:
            raise FeeNotFoundError(fee_id)

        with self._locked_write(fee.student_id):
            fee = self._load_fee(fee_id)
            old_values = fee_snapshot(fee)
            txn = FeeTransaction(
                fee_id=fee.id,
                student_id=fee.student_id,
                hostel_id=fee.hostel_id,
                amount=amount,
                kind=kind,
                transaction_date=transaction_date,
                reason=reason.strip(),
                notes=notes,
                created_by=actor_id,
            )
            self.transactions.create(txn)
            previous_paid, new_paid = self._recompute_from_transactions(fee)
            if kind == TransactionKind.REFUND and new_paid < ZERO:
                raise InvalidAmountError(
                    f"Refund of {-amount} exceeds the net paid amount {previous_paid}", amount
                )
            action = FeeHistoryAction.REFUND if kind == TransactionKind.REFUND else FeeHistoryAction.ADJUSTMENT
            self.audit.record(fee, action, old_values=old_values, actor_id=actor_id)

        self._log_operation(
            f"record {kind.value}",
            txn.id,
            {"fee_id": fee.id, "student_id": fee.student_id, "period": fee.period, "amount": str(amount)},
        )
        return ReconciliationResult(
            fee=fee,
            transaction=txn,
            previous_paid_amount=previous_paid,
            cascade=self._cascade(fee, actor_id),
        )

    # -------------------------------------------------------------------------
    # Corrections
    # -------------------------------------------------------------------------

    def update_transaction(
        self,
        transaction_id: str,
        amount: Optional[Any] = None,
        transaction_date: Optional[date] = None,
        payment_mode: Optional[PaymentMode] = None,
        reference_number: Optional[str] = None,
        receipt_number: Optional[str] = None,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> ReconciliationResult:
        """Edit a recorded transaction and rebuild its fee from the transaction sum."""
        txn = self.transactions.find_by_id(transaction_id)
        if txn is None:
            raise TransactionNotFoundError(transaction_id)

        new_amount = None
        if amount is not None:
            new_amount = self._parse_amount(amount)
            if txn.kind == TransactionKind.PAYMENT and new_amount <= ZERO:
                raise InvalidAmountError("Payment amount must be greater than zero", new_amount)
            new_amount = self._signed_amount(txn.kind, new_amount)
        if transaction_date is not None:
            self._validate_transaction_date(transaction_date)

        with self._locked_write(txn.student_id):
            fee = self._load_fee(txn.fee_id)
            old_values = {**fee_snapshot(fee), "transaction": _transaction_snapshot(txn)}

            if new_amount is not None:
                txn.amount = new_amount
            if transaction_date is not None:
                txn.transaction_date = transaction_date
            if payment_mode is not None:
                txn.payment_mode = payment_mode
            if reference_number is not None:
                txn.reference_number = reference_number
            if receipt_number is not None:
                txn.receipt_number = receipt_number
            if reason is not None:
                txn.reason = reason
            if notes is not None:
                txn.notes = notes
            self.db.flush()

            previous_paid, new_paid = self._recompute_from_transactions(fee)
            self._check_refund_floor(fee, new_paid)
            self.audit.record(
                fee,
                FeeHistoryAction.TRANSACTION_UPDATED,
                old_values=old_values,
                new_values={**fee_snapshot(fee), "transaction": _transaction_snapshot(txn)},
                actor_id=actor_id,
            )

        self._log_operation("update transaction", transaction_id, {"fee_id": fee.id, "period": fee.period})
        return ReconciliationResult(
            fee=fee,
            transaction=txn,
            previous_paid_amount=previous_paid,
            cascade=self._cascade(fee, actor_id),
        )

    def delete_transaction(self, transaction_id: str, actor_id: Optional[str] = None) -> ReconciliationResult:
        """Remove a transaction and rebuild its fee from the remaining ones."""
        txn = self.transactions.find_by_id(transaction_id)
        if txn is None:
            raise TransactionNotFoundError(transaction_id)

        with self._locked_write(txn.student_id):
            fee = self._load_fee(txn.fee_id)
            old_values = {**fee_snapshot(fee), "transaction": _transaction_snapshot(txn)}
            self.transactions.delete(txn)
            previous_paid, new_paid = self._recompute_from_transactions(fee)
            self._check_refund_floor(fee, new_paid)
            self.audit.record(
                fee,
                FeeHistoryAction.TRANSACTION_DELETED,
                old_values=old_values,
                actor_id=actor_id,
            )

        self._log_operation("delete transaction", transaction_id, {"fee_id": fee.id, "period": fee.period})
        return ReconciliationResult(
            fee=fee,
            previous_paid_amount=previous_paid,
            cascade=self._cascade(fee, actor_id),
        )

    def recalculate_fee_totals(self, fee_id: str, actor_id: Optional[str] = None) -> ReconciliationResult:
        """
        Repair a fee's paid amount, balance and status from its transactions.

        Idempotent. Drift between the stored paid amount and the
        transaction sum is logged and recorded in the fee history; later
        periods are cascaded only when something changed.
        """
        fee = self.repository.find_by_id(fee_id)
        if fee is None:
            raise FeeNotFoundError(fee_id)

        with self._locked_write(fee.student_id):
            fee = self._load_fee(fee_id)
            old_values = fee_snapshot(fee)
            previous_paid, new_paid = self._recompute_from_transactions(fee)
            drift = differs(previous_paid, new_paid)
            changed = fee_snapshot(fee) != old_values
            if drift:
                self._logger.warning(
                    InconsistentLedgerError(fee.id, previous_paid, new_paid).message,
                    extra={"fee_id": fee.id, "student_id": fee.student_id, "period": fee.period},
                )
            if changed:
                self.audit.record(fee, FeeHistoryAction.RECALCULATED, old_values=old_values, actor_id=actor_id)

        return ReconciliationResult(
            fee=fee,
            previous_paid_amount=previous_paid,
            drift_detected=drift,
            cascade=self._cascade(fee, actor_id) if changed else None,
        )

    def edit_fee(
        self,
        fee_id: str,
        base_rent: Optional[Any] = None,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> ReconciliationResult:
        """
        Edit the current month's fee.

        Carry-forward is derived and cannot be set here. Changing the rent
        changes total_due, so later periods are cascaded.
        """
        fee = self.repository.find_by_id(fee_id)
        if fee is None:
            raise FeeNotFoundError(fee_id)

        current = str(BillingPeriod.current(self.clock()))
        if fee.period != current:
            raise PeriodLockedError(fee.period, current)

        new_rent = None
        if base_rent is not None:
            new_rent = self._parse_amount(base_rent)
            if new_rent < ZERO:
                raise InvalidAmountError("Monthly rent cannot be negative", new_rent)

        with self._locked_write(fee.student_id):
            fee = self._load_fee(fee_id)
            old_values = fee_snapshot(fee)
            if new_rent is not None:
                fee.base_rent = new_rent
            if due_date is not None:
                if BillingPeriod.from_date(due_date) != BillingPeriod.parse(fee.period):
                    raise ValidationError("Due date must fall within the fee's month", field="due_date")
                fee.due_date = due_date
            if notes is not None:
                fee.notes = notes
            apply_totals(fee)
            self.db.flush()
            self.audit.record(fee, FeeHistoryAction.UPDATED, old_values=old_values, actor_id=actor_id)

        total_changed = differs(old_values["total_due"], fee.total_due, ZERO)
        self._log_operation("edit fee", fee.id, {"period": fee.period, "student_id": fee.student_id})
        return ReconciliationResult(
            fee=fee,
            previous_paid_amount=fee.paid_amount,
            cascade=self._cascade(fee, actor_id) if total_changed else None,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @contextmanager
    def _locked_write(self, student_id: str) -> Iterator[Session]:
        with self.locks.hold(student_id):
            with self.transaction() as session:
                yield session

    def _load_fee(self, fee_id: str) -> MonthlyFee:
        fee = self.repository.get_for_update(fee_id)
        if fee is None:
            raise FeeNotFoundError(fee_id)
        return fee

    def _recompute_from_transactions(self, fee: MonthlyFee) -> Tuple[Decimal, Decimal]:
        """Set paid amount to the transaction sum; returns (old, new) paid."""
        self.db.flush()
        previous_paid = to_money(fee.paid_amount)
        computed = self.transactions.sum_for_fee(fee.id)
        apply_totals(fee, computed)
        self.db.flush()
        return previous_paid, computed

    def _cascade(self, fee: MonthlyFee, actor_id: Optional[str]) -> CascadeOutcome:
        return self.dispatcher.dispatch(fee.student_id, fee.hostel_id, fee.period, self.db, actor_id=actor_id)

    def _check_refund_floor(self, fee: MonthlyFee, new_paid: Decimal) -> None:
        """Refunds may never take a fee's net paid amount below zero."""
        if new_paid < ZERO and self.transactions.has_refund(fee.id):
            raise InvalidAmountError(
                f"Refunds on fee {fee.id} would exceed its net paid amount ({new_paid})", new_paid
            )

    def _parse_amount(self, amount: Any) -> Decimal:
        try:
            return to_money(amount)
        except ValueError:
            raise InvalidAmountError(f"Amount {amount!r} is not a valid number")

    def _signed_amount(self, kind: TransactionKind, amount: Decimal) -> Decimal:
        if amount == ZERO:
            raise InvalidAmountError(f"{kind.value.capitalize()} amount cannot be zero", amount)
        if kind == TransactionKind.REFUND:
            return -abs(amount)
        return amount

    def _validate_transaction_date(self, value: date) -> None:
        if value > self.clock():
            raise ValidationError("Transaction date cannot be in the future", field="transaction_date")
