"""Market cap threshold crossing state machine.

Pure logic over an explicit ledger object. A threshold fires once per token,
re-arming when the market cap was below it on the previous observation.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_THRESHOLDS: tuple[int, ...] = (60_000, 50_000, 30_000)


@dataclass
class ThresholdLedger:
    """Per-address notified thresholds and last observed market cap."""

    notified: dict[str, set[int]] = field(default_factory=dict)
    last_values: dict[str, float] = field(default_factory=dict)

    def last_value(self, address: str) -> float:
        return self.last_values.get(address, 0.0)

    def has_notified(self, address: str, threshold: int) -> bool:
        return threshold in self.notified.get(address, set())

    def record(self, address: str, threshold: int) -> None:
        self.notified.setdefault(address, set()).add(threshold)


def evaluate_threshold(
    ledger: ThresholdLedger,
    address: str,
    current: float,
    thresholds: tuple[int, ...] | list[int] = DEFAULT_THRESHOLDS,
) -> int | None:
    """Return the threshold to report for this observation, if any.

    Thresholds are checked highest first and only the first qualifying one
    fires. The last observed value is updated whether or not anything fired.
    """
    previous = ledger.last_value(address)
    crossed: int | None = None

    for threshold in sorted(thresholds, reverse=True):
        if current < threshold:
            continue
        if not ledger.has_notified(address, threshold) or previous < threshold:
            ledger.record(address, threshold)
            crossed = threshold
            break

    ledger.last_values[address] = current
    return crossed
