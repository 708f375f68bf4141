"""
ptb.gas.meter — GasMeter (debit), out-of-gas semantics.

The GasMeter tracks a block's gas budget while the simulated engine runs it:
- deterministic debits that raise OutOfGas when insufficient gas remains, and
- snapshots/restore for scoped charging.

There are no refunds: a block is charged for what it used, also when it fails.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from ..errors import OutOfGas


class GasSnapshot(NamedTuple):
    """Lightweight snapshot for scoped execution."""
    used: int


class GasMeter:
    """
    Deterministic gas meter.

    Parameters
    ----------
    limit : int
        Total gas made available to the block.

    Notes
    -----
    - A debit that would exceed the budget raises `OutOfGas` and consumes the rest of
      the budget, so a failed block reports `gas_used == limit`.
    """

    __slots__ = ("_limit", "_used")

    def __init__(self, limit: int) -> None:
        lim = int(limit)
        if lim < 0:
            raise ValueError("gas limit must be non-negative")
        self._limit: int = lim
        self._used: int = 0

    # --------------------------- properties ---------------------------------

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def used(self) -> int:
        return self._used

    @property
    def remaining(self) -> int:
        rem = self._limit - self._used
        return rem if rem > 0 else 0

    @property
    def exhausted(self) -> bool:
        return self.remaining == 0

    # --------------------------- operations ---------------------------------

    def require(self, amount: int, *, reason: Optional[str] = None) -> None:
        """
        Ensure at least `amount` gas remains; raise OutOfGas if not. Does not debit.
        """
        amt = int(amount)
        if amt < 0:
            raise ValueError("gas amount must be non-negative")
        if amt > self.remaining:
            raise OutOfGas(self._oog_message(amt, reason), data=self._oog_data(amt, reason))

    def debit(self, amount: int, *, reason: Optional[str] = None) -> None:
        """
        Consume `amount` gas, raising OutOfGas if insufficient remains.
        """
        amt = int(amount)
        if amt < 0:
            raise ValueError("gas amount must be non-negative")
        if amt > self.remaining:
            data = self._oog_data(amt, reason)
            self._used = self._limit
            raise OutOfGas(self._oog_message(amt, reason), data=data)
        self._used += amt

    def try_debit(self, amount: int) -> bool:
        """
        Best-effort debit that returns False (no mutation) if insufficient gas.
        """
        amt = int(amount)
        if amt < 0 or amt > self.remaining:
            return False
        self._used += amt
        return True

    def _oog_message(self, amount: int, reason: Optional[str]) -> str:
        msg = "out of gas"
        if reason:
            msg = f"{msg}: {reason}"
        return msg

    def _oog_data(self, amount: int, reason: Optional[str]) -> dict:
        return {"needed": amount, "remaining": self.remaining, "limit": self._limit, "reason": reason}

    # --------------------------- snapshots ----------------------------------

    def snapshot(self) -> GasSnapshot:
        return GasSnapshot(self._used)

    def restore(self, snap: GasSnapshot) -> None:
        if snap.used < 0:
            raise ValueError("snapshot values must be non-negative")
        if snap.used > self._limit:
            raise ValueError("snapshot 'used' exceeds limit")
        self._used = int(snap.used)

    # --------------------------- repr ---------------------------------------

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"GasMeter(limit={self._limit}, used={self._used}, remaining={self.remaining})"


__all__ = ["GasMeter", "GasSnapshot"]
