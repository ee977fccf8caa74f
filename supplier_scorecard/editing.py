"""
Supplier Scorecard - Editing Capability.

============================================================
PURPOSE
============================================================
Decides which metric readings a caller may write, and
prepares the updated sample for the store.

The editable fields are passed in explicitly as an
EditableFields capability set built from the user's stored
permission flags. Scoring operations never consult it.

============================================================
RULES
============================================================
1. A metric may only be written if it is in the capability set
2. Months after the reference month are locked
3. Written values are clamped to [0, 10]; None clears a reading

============================================================
"""

from dataclasses import dataclass, replace
from datetime import date
from typing import Any, FrozenSet, Iterable, Mapping, Optional, Union
import logging
import math

from .clock import ClockProtocol, SystemClock
from .exceptions import FieldNotEditableError, FutureMonthError, InvalidMetricValueError
from .types import METRIC_MAX_VALUE, METRIC_MIN_VALUE, Metric, MetricSample, to_real


logger = logging.getLogger(__name__)


# Stored permission flags that grant edit rights
EDIT_FLAGS = frozenset({"sim", "1", "true", "edit"})


@dataclass(frozen=True)
class EditableFields:
    """Set of metrics a caller is allowed to write."""

    metrics: FrozenSet[Metric] = frozenset()

    @classmethod
    def all(cls) -> "EditableFields":
        return cls(frozenset(Metric.all_metrics()))

    @classmethod
    def none(cls) -> "EditableFields":
        return cls(frozenset())

    @classmethod
    def of(cls, metrics: Iterable[Union[Metric, str]]) -> "EditableFields":
        return cls(frozenset(Metric(metric) for metric in metrics))

    @classmethod
    def from_permissions(cls, permissions: Mapping[str, Any]) -> "EditableFields":
        """
        Build the capability set from stored permission flags.

        Accepts keys "otif", "nil", "pickup", "package" (optionally
        prefixed with "user_permissions_"). Flags "Sim", "1",
        "true", "edit" (any case) or True grant edit rights;
        anything else is read-only.
        """
        granted = set()
        for key, flag in permissions.items():
            name = str(key).strip().lower()
            if name.startswith("user_permissions_"):
                name = name[len("user_permissions_"):]
            try:
                metric = Metric(name)
            except ValueError:
                continue
            if flag is True or (isinstance(flag, str) and flag.strip().lower() in EDIT_FLAGS):
                granted.add(metric)
        return cls(frozenset(granted))

    def can_edit(self, metric: Union[Metric, str]) -> bool:
        return Metric(metric) in self.metrics

    def __contains__(self, metric: object) -> bool:
        try:
            return self.can_edit(metric)
        except ValueError:
            return False


def is_future_month(year: int, month: int, as_of: date) -> bool:
    """True if (year, month) is after the month containing as_of."""
    if year != as_of.year:
        return year > as_of.year
    return month > as_of.month


def clamp_metric_value(value: Optional[float]) -> Optional[float]:
    """
    Clamp a reading to [0, 10] before it is stored.

    Raises:
        InvalidMetricValueError: If the value is not a finite number
    """
    if value is None:
        return None
    number = to_real(value)
    if number is None:
        raise InvalidMetricValueError(f"Metric value must be a number, got {value!r}")
    if math.isnan(number):
        raise InvalidMetricValueError("Metric value is NaN")
    return min(METRIC_MAX_VALUE, max(METRIC_MIN_VALUE, number))


def apply_metric_updates(
    sample: MetricSample,
    updates: Mapping[Union[Metric, str], Optional[float]],
    editable: EditableFields,
    as_of: Optional[date] = None,
    clock: Optional[ClockProtocol] = None,
) -> MetricSample:
    """
    Return a copy of the sample with the requested readings changed.

    Args:
        sample: Current stored sample
        updates: New readings keyed by metric; None clears a reading
        editable: Capability set of the caller
        as_of: Reference date for the future-month lock
        clock: Used when as_of is not given

    Returns:
        New MetricSample

    Raises:
        FieldNotEditableError: If a metric is outside the capability set
        FutureMonthError: If the sample's month has not started yet
        InvalidMetricValueError: If a value cannot be clamped
    """
    if not updates:
        return sample

    if as_of is None:
        as_of = (clock or SystemClock()).today()

    if is_future_month(sample.year, sample.month, as_of):
        raise FutureMonthError(sample.year, sample.month)

    changes = {}
    for key, value in updates.items():
        metric = Metric(key)
        if not editable.can_edit(metric):
            raise FieldNotEditableError(metric)
        changes[metric.value] = clamp_metric_value(value)

    logger.debug(
        f"Updating {sample.supplier_id} {sample.year}-{sample.month:02d}: {changes}"
    )
    return replace(sample, **changes)
