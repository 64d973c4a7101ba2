"""Map configured log retention days to CloudWatch Logs retention periods."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from aws_cdk import aws_logs as logs

from infrastructure.config.errors import InvalidRetentionDays

RETENTION_DAYS: Mapping[int, logs.RetentionDays] = MappingProxyType(
    {
        1: logs.RetentionDays.ONE_DAY,
        3: logs.RetentionDays.THREE_DAYS,
        5: logs.RetentionDays.FIVE_DAYS,
        7: logs.RetentionDays.ONE_WEEK,
        14: logs.RetentionDays.TWO_WEEKS,
        30: logs.RetentionDays.ONE_MONTH,
        60: logs.RetentionDays.TWO_MONTHS,
        90: logs.RetentionDays.THREE_MONTHS,
        120: logs.RetentionDays.FOUR_MONTHS,
        150: logs.RetentionDays.FIVE_MONTHS,
        180: logs.RetentionDays.SIX_MONTHS,
        365: logs.RetentionDays.ONE_YEAR,
        400: logs.RetentionDays.THIRTEEN_MONTHS,
        545: logs.RetentionDays.EIGHTEEN_MONTHS,
        731: logs.RetentionDays.TWO_YEARS,
        1827: logs.RetentionDays.FIVE_YEARS,
        3653: logs.RetentionDays.TEN_YEARS,
    }
)

_ASCENDING_DAYS = tuple(sorted(RETENTION_DAYS))


def map_retention_days(days: int) -> logs.RetentionDays:
    """Return the shortest supported retention that keeps logs at least ``days`` days.

    ``0`` means keep forever; anything longer than ten years also maps to
    ``INFINITE``. Negative values raise :class:`InvalidRetentionDays`.
    """
    if isinstance(days, bool) or not isinstance(days, int) or days < 0:
        raise InvalidRetentionDays(days)

    if days == 0:
        return logs.RetentionDays.INFINITE

    exact = RETENTION_DAYS.get(days)
    if exact is not None:
        return exact

    for supported in _ASCENDING_DAYS:
        if supported >= days:
            return RETENTION_DAYS[supported]

    return logs.RetentionDays.INFINITE
