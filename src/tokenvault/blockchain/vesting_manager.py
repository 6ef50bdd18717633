from __future__ import annotations

import hashlib
import logging
from dataclasses import asdict, dataclass, replace
from typing import TYPE_CHECKING, Any, Callable

from ..core.config import ZERO_ADDRESS
from ..core.exceptions import (
    AlreadyRevokedError,
    InvalidScheduleError,
    MathError,
    NoTokensVestedError,
    NotRevocableError,
    ScheduleNotFoundError,
    TokenVaultError,
    TransferFailedError,
    UnauthorizedError,
)
from ..core.metrics import record_vesting_flow, update_schedule_count
from ..core.safe_math import checked_add, linear_vesting, require_uint256
from .schedule_id import compute_schedule_id

if TYPE_CHECKING:
    from ..core.contracts.erc20 import ERC20Token

logger = logging.getLogger("tokenvault.blockchain.vesting_manager")


@dataclass
class VestingSchedule:
    schedule_id: str
    beneficiary: str
    start_time: int
    duration: int
    total_amount: int
    released_amount: int = 0
    revocable: bool = True
    revoked: bool = False

    @property
    def end_time(self) -> int:
        return self.start_time + self.duration

    @property
    def fully_released(self) -> bool:
        return self.released_amount == self.total_amount


class VestingManager:
    """
    Vesting schedule store backed by ledger escrow.

    Creating a schedule pulls the amount from the administrator into the
    store's escrow account; releases and refunds are paid out of escrow.
    The store shares the ledger's lock so each operation, including the ledger
    movements it triggers, is one serialized state transition.
    """

    def __init__(
        self,
        token: "ERC20Token",
        escrow_address: str | None = None,
        time_provider: Callable[[], int] | None = None,
    ):
        self.token = token
        self.admin_config = token.admin_config
        self._lock = token.lock
        self._time_provider = time_provider or token.current_time
        if not escrow_address:
            digest = hashlib.sha3_256(f"vesting:{token.address}".encode()).digest()
            escrow_address = f"0x{digest[-20:].hex()}"
        self.escrow_address = escrow_address.lower()
        # Escrow payouts are system movements, not actions of a primary actor
        token.rate_limiter.exempt(self.escrow_address)

        # {schedule_id: VestingSchedule}
        self.vesting_schedules: dict[str, VestingSchedule] = {}
        # {beneficiary: [schedule_id, ...]} in creation order, append-only
        self.beneficiary_schedules: dict[str, list[str]] = {}
        logger.info(
            "VestingManager initialized with escrow %s (custom time provider: %s)",
            self.escrow_address,
            bool(time_provider),
        )

    def _current_time(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    def _require_administrator(self, caller: str, action: str) -> None:
        if not self.admin_config.is_administrator(caller):
            raise UnauthorizedError(
                f"Caller {caller} is not authorized to {action}.",
                details={"caller": caller, "action": action},
            )

    def _get(self, schedule_id: str) -> VestingSchedule:
        schedule = self.vesting_schedules.get(schedule_id)
        if schedule is None:
            raise ScheduleNotFoundError(
                f"Vesting schedule {schedule_id} not found.", schedule_id=schedule_id
            )
        return schedule

    def _vested(self, schedule: VestingSchedule, now: int) -> int:
        return linear_vesting(schedule.total_amount, schedule.start_time, schedule.duration, now)

    def _pay_out(self, recipient: str, amount: int, reason: str) -> None:
        try:
            self.token.transfer(self.escrow_address, recipient, amount)
        except TokenVaultError as exc:
            raise TransferFailedError(
                f"Escrow {reason} of {amount} to {recipient} failed: {exc.message}",
                details={"recipient": recipient, "amount": amount},
            ) from exc

    def create_vesting_schedule(
        self,
        caller: str,
        beneficiary: str,
        start_time: int,
        duration: int,
        amount: int,
        revocable: bool = True,
    ) -> str:
        """
        Creates a new vesting schedule funded from the caller's balance.

        The caller must be the administrator and must have approved the escrow
        address for at least ``amount``. Identical parameters produce the same
        id; the existing record is then replaced and the id listed again.
        """
        with self._lock:
            self._require_administrator(caller, "create vesting schedules")
            if not beneficiary or beneficiary.lower() == ZERO_ADDRESS:
                raise InvalidScheduleError("Beneficiary address cannot be empty.")
            try:
                require_uint256(start_time, "start_time")
                require_uint256(duration, "duration")
                require_uint256(amount, "amount")
                checked_add(start_time, duration)
            except MathError as exc:
                raise InvalidScheduleError(f"Invalid schedule parameters: {exc.message}") from exc
            if duration == 0:
                raise InvalidScheduleError("Duration must be positive.")
            if amount == 0:
                raise InvalidScheduleError("Amount must be positive.")
            now = self._current_time()
            if start_time < now:
                raise InvalidScheduleError(
                    f"Start time {start_time} is in the past (now {now}).",
                    details={"start_time": start_time, "now": now},
                )

            beneficiary = beneficiary.lower()
            schedule_id = compute_schedule_id(beneficiary, start_time, duration, amount)

            try:
                self.token.transfer_from(self.escrow_address, caller, self.escrow_address, amount)
            except TokenVaultError as exc:
                raise TransferFailedError(
                    f"Escrow funding of {amount} from {caller} failed: {exc.message}",
                    details={"caller": caller, "amount": amount},
                ) from exc

            if schedule_id in self.vesting_schedules:
                logger.warning(
                    "Vesting schedule %s recreated with identical parameters",
                    schedule_id,
                    extra={"event": "vesting.aliased", "schedule_id": schedule_id},
                )
            self.vesting_schedules[schedule_id] = VestingSchedule(
                schedule_id=schedule_id,
                beneficiary=beneficiary,
                start_time=start_time,
                duration=duration,
                total_amount=amount,
                revocable=revocable,
            )
            self.beneficiary_schedules.setdefault(beneficiary, []).append(schedule_id)

            record_vesting_flow("escrowed", amount)
            update_schedule_count(len(self.vesting_schedules))
            logger.info(
                "Vesting schedule %s created for %s",
                schedule_id,
                beneficiary,
                extra={"event": "vesting.created", "amount": amount, "duration": duration},
            )
            return schedule_id

    def release(self, schedule_id: str) -> int:
        """
        Pays the beneficiary everything vested but not yet released.

        Returns:
            The amount released by this call
        """
        with self._lock:
            schedule = self._get(schedule_id)
            if schedule.revoked:
                raise AlreadyRevokedError(f"Vesting schedule {schedule_id} was revoked.")

            vested = self._vested(schedule, self._current_time())
            releasable = vested - schedule.released_amount
            if releasable <= 0:
                raise NoTokensVestedError(
                    f"No tokens available to release for schedule {schedule_id}.",
                    details={"vested": vested, "released": schedule.released_amount},
                )

            # The schedule only advances once the payout succeeded
            self._pay_out(schedule.beneficiary, releasable, "release")
            schedule.released_amount += releasable

            record_vesting_flow("released", releasable)
            logger.info(
                "Released %d tokens for schedule %s",
                releasable,
                schedule_id,
                extra={"event": "vesting.released", "released_total": schedule.released_amount},
            )
            return releasable

    def revoke(self, caller: str, schedule_id: str) -> int:
        """
        Stops a revocable schedule and refunds the unvested part to the administrator.

        Tokens vested but not yet released stay in escrow.

        Returns:
            The refunded amount
        """
        with self._lock:
            self._require_administrator(caller, "revoke vesting schedules")
            schedule = self._get(schedule_id)
            if not schedule.revocable:
                raise NotRevocableError(f"Vesting schedule {schedule_id} is not revocable.")
            if schedule.revoked:
                raise AlreadyRevokedError(f"Vesting schedule {schedule_id} was already revoked.")

            vested = self._vested(schedule, self._current_time())
            refund = schedule.total_amount - vested
            if refund > 0:
                self._pay_out(self.admin_config.administrator, refund, "refund")
            schedule.revoked = True

            record_vesting_flow("refunded", refund)
            logger.warning(
                "Vesting schedule %s revoked by %s, refunded %d",
                schedule_id,
                caller,
                refund,
                extra={"event": "vesting.revoked", "vested": vested, "refund": refund},
            )
            return refund

    def get_vesting_schedule(self, schedule_id: str) -> VestingSchedule:
        with self._lock:
            return replace(self._get(schedule_id))

    def compute_vested_amount(self, schedule_id: str) -> int:
        """
        Amount vested so far; frozen at the released amount once revoked.
        """
        with self._lock:
            schedule = self._get(schedule_id)
            if schedule.revoked:
                return schedule.released_amount
            return self._vested(schedule, self._current_time())

    def get_vesting_schedules_by_beneficiary(self, beneficiary: str) -> list[str]:
        with self._lock:
            return list(self.beneficiary_schedules.get(beneficiary.lower(), []))

    def get_schedule_status(self, schedule_id: str) -> str:
        with self._lock:
            schedule = self._get(schedule_id)
            if schedule.revoked:
                return "revoked"
            if schedule.fully_released:
                return "fully_released"
            return "active"

    def escrow_balance(self) -> int:
        return self.token.balance_of(self.escrow_address)

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            schedules = list(self.vesting_schedules.values())
            return {
                "schedules": len(schedules),
                "revoked": sum(1 for s in schedules if s.revoked),
                "fully_released": sum(1 for s in schedules if s.fully_released),
                "total_committed": sum(s.total_amount for s in schedules),
                "total_released": sum(s.released_amount for s in schedules),
                "escrow_balance": self.escrow_balance(),
            }

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            return {
                "escrow_address": self.escrow_address,
                "schedules": [asdict(s) for s in self.vesting_schedules.values()],
                "beneficiary_schedules": {
                    k: list(v) for k, v in self.beneficiary_schedules.items()
                },
            }

    def load_dict(self, data: dict[str, Any]) -> None:
        """Replace the store contents with a snapshot produced by to_dict()."""
        with self._lock:
            if data.get("escrow_address", self.escrow_address) != self.escrow_address:
                raise ValueError("Snapshot escrow address does not match this store.")
            self.vesting_schedules = {
                s["schedule_id"]: VestingSchedule(**s) for s in data.get("schedules", [])
            }
            self.beneficiary_schedules = {
                k: list(v) for k, v in data.get("beneficiary_schedules", {}).items()
            }
            update_schedule_count(len(self.vesting_schedules))
