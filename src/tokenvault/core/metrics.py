"""
Ledger and vesting instrumentation for TokenVault.

Provides Prometheus metrics for ledger operations and escrow flows, with
helper functions that are safe to call from inside a committed operation.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

ledger_operations_counter = Counter(
    "tokenvault_ledger_operations_total",
    "Ledger operations by kind and outcome",
    ["operation", "outcome"],
)

minted_amount_counter = Counter(
    "tokenvault_minted_amount_total", "Total token units minted", ["token"]
)

total_supply_gauge = Gauge("tokenvault_total_supply", "Current total supply", ["token"])

vesting_flow_counter = Counter(
    "tokenvault_vesting_amount_total",
    "Token units moved by the vesting escrow",
    ["direction"],
)

vesting_schedules_gauge = Gauge(
    "tokenvault_vesting_schedules", "Number of stored vesting schedules"
)


def record_ledger_operation(operation: str, success: bool) -> None:
    """Count a ledger operation attempt."""
    outcome = "success" if success else "rejected"
    ledger_operations_counter.labels(operation=operation, outcome=outcome).inc()


def record_mint(token: str, amount: int, total_supply: int) -> None:
    """Track minted units and refresh the supply gauge."""
    if amount > 0:
        minted_amount_counter.labels(token=token).inc(amount)
    total_supply_gauge.labels(token=token).set(total_supply)


def record_vesting_flow(direction: str, amount: int) -> None:
    """Count units escrowed, released or refunded by the vesting store."""
    if amount <= 0:
        return
    vesting_flow_counter.labels(direction=direction).inc(amount)


def update_schedule_count(count: int) -> None:
    vesting_schedules_gauge.set(count)
