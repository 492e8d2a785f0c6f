"""Checks CronJobs for suspension, bad schedules and bad deadlines."""

from __future__ import annotations

import re
from typing import NamedTuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from clusterlens.common import Analyzer, BaseAnalyzer, Failure, Result, Sensitive
from clusterlens.metrics import ANALYZER_ERRORS_METRIC
from clusterlens.util import mask_string

KIND = "CronJob"


class CronScheduleError(ValueError):
    """Raised when a cron schedule cannot be parsed."""


class _Bounds(NamedTuple):
    low: int
    high: int
    names: dict[str, int]


_MINUTES = _Bounds(0, 59, {})
_HOURS = _Bounds(0, 23, {})
_DAYS_OF_MONTH = _Bounds(1, 31, {})
_MONTHS = _Bounds(
    1,
    12,
    {
        "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
        "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
    },
)
_DAYS_OF_WEEK = _Bounds(
    0, 6, {"sun": 0, "mon": 1, "tue": 2, "wed": 3, "thu": 4, "fri": 5, "sat": 6}
)
_FIELDS = (_MINUTES, _HOURS, _DAYS_OF_MONTH, _MONTHS, _DAYS_OF_WEEK)

_DESCRIPTORS = frozenset(
    {"@yearly", "@annually", "@monthly", "@weekly", "@daily", "@midnight", "@hourly"}
)
_DURATION = re.compile(
    r"[-+]?(?:(?:\d+(?:\.\d*)?|\.\d+)(?:ns|us|\u00b5s|\u03bcs|ms|s|m|h))+"
)
_INTEGER = re.compile(r"[+-]?\d+")


def _parse_int(expr: str) -> int:
    if not _INTEGER.fullmatch(expr):
        raise CronScheduleError(
            f'failed to parse int from {expr}: strconv.Atoi: parsing "{expr}": invalid syntax'
        )
    number = int(expr)
    if number < 0:
        raise CronScheduleError(f"negative number ({number}) not allowed: {expr}")
    return number


def _parse_int_or_name(expr: str, bounds: _Bounds) -> int:
    named = bounds.names.get(expr.lower())
    if named is not None:
        return named
    return _parse_int(expr)


def _check_range(expr: str, bounds: _Bounds) -> None:
    range_and_step = expr.split("/")
    low_and_high = range_and_step[0].split("-")
    single = len(low_and_high) == 1

    if low_and_high[0] in ("*", "?"):
        start, end = bounds.low, bounds.high
    else:
        start = _parse_int_or_name(low_and_high[0], bounds)
        if len(low_and_high) == 1:
            end = start
        elif len(low_and_high) == 2:
            end = _parse_int_or_name(low_and_high[1], bounds)
        else:
            raise CronScheduleError(f"too many hyphens: {expr}")

    if len(range_and_step) == 1:
        step = 1
    elif len(range_and_step) == 2:
        step = _parse_int(range_and_step[1])
        if single:
            end = bounds.high
    else:
        raise CronScheduleError(f"too many slashes: {expr}")

    if start < bounds.low:
        raise CronScheduleError(
            f"beginning of range ({start}) below minimum ({bounds.low}): {expr}"
        )
    if end > bounds.high:
        raise CronScheduleError(f"end of range ({end}) above maximum ({bounds.high}): {expr}")
    if start > end:
        raise CronScheduleError(
            f"beginning of range ({start}) beyond end of range ({end}): {expr}"
        )
    if step == 0:
        raise CronScheduleError(f"step of range should be a positive number: {expr}")


def _check_descriptor(descriptor: str) -> None:
    if descriptor in _DESCRIPTORS:
        return
    prefix = "@every "
    if descriptor.startswith(prefix):
        duration = descriptor[len(prefix):]
        if duration != "0" and not _DURATION.fullmatch(duration):
            raise CronScheduleError(
                f'failed to parse duration {descriptor}: time: invalid duration "{duration}"'
            )
        return
    raise CronScheduleError(f"unrecognized descriptor: {descriptor}")


def _check_location(name: str) -> None:
    if name in ("", "UTC", "Local"):
        return
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        raise CronScheduleError(
            f"provided bad location {name}: unknown time zone {name}"
        ) from None


def check_cron_schedule_is_valid(schedule: str) -> bool:
    """Return ``True`` for a valid standard five-field schedule.

    Descriptors such as ``@daily`` and ``@every 1h`` and a leading
    ``TZ=``/``CRON_TZ=`` zone are accepted; anything else raises
    :class:`CronScheduleError`.
    """
    if not schedule:
        raise CronScheduleError("empty spec string")

    spec = schedule
    if spec.startswith(("TZ=", "CRON_TZ=")):
        space = spec.find(" ")
        equals = spec.find("=")
        if space == -1:
            zone, spec = spec[equals + 1:], ""
        else:
            zone, spec = spec[equals + 1:space], spec[space:].strip()
        _check_location(zone)

    if spec.startswith("@"):
        _check_descriptor(spec)
        return True

    fields = spec.split()
    if len(fields) != len(_FIELDS):
        raise CronScheduleError(
            f"expected exactly {len(_FIELDS)} fields, found {len(fields)}: [{' '.join(fields)}]"
        )
    for field_text, bounds in zip(fields, _FIELDS):
        for part in field_text.split(","):
            _check_range(part, bounds)
    return True


def _sensitive(*values: str) -> list[Sensitive]:
    return [Sensitive(unmasked=value, masked=mask_string(value)) for value in values]


class CronJobAnalyzer(BaseAnalyzer):
    """Reports suspended CronJobs, invalid schedules and negative deadlines."""

    def analyze(self, analysis: Analyzer) -> list[Result]:
        ANALYZER_ERRORS_METRIC.delete_partial_match({"analyzer_name": KIND})

        cron_jobs = analysis.client.list(KIND, analysis.namespace)
        pre_analysis: dict[str, list[Failure]] = {}

        for cron_job in cron_jobs:
            meta = cron_job.get("metadata") or {}
            name = meta.get("name", "")
            namespace = meta.get("namespace", "")
            spec = cron_job.get("spec") or {}
            failures: list[Failure] = []

            if spec.get("suspend"):
                failures.append(
                    Failure(f"CronJob {name} is suspended", _sensitive(namespace, name))
                )
            else:
                try:
                    check_cron_schedule_is_valid(spec.get("schedule") or "")
                except CronScheduleError as exc:
                    failures.append(
                        Failure(
                            f"CronJob {name} has an invalid schedule: {exc}",
                            _sensitive(namespace, name),
                        )
                    )
                deadline = spec.get("startingDeadlineSeconds")
                if deadline is not None and deadline < 0:
                    failures.append(
                        Failure(
                            f"CronJob {name} has a negative starting deadline",
                            _sensitive(namespace, name),
                        )
                    )

            if failures:
                pre_analysis[f"{namespace}/{name}"] = failures
                ANALYZER_ERRORS_METRIC.with_label_values(KIND, name, namespace).set(
                    len(failures)
                )

        results = list(analysis.results)
        results.extend(
            Result(kind=KIND, name=key, error=failures)
            for key, failures in pre_analysis.items()
        )
        return results