"""
Reduce a flat list of historical flight occurrences into schedule summaries.

Occurrences are grouped by flight number and by directional route key
(origin, destination). Each group keeps the distinct scheduled times of day,
weekdays, aircraft models and callsigns seen across its occurrences. The result
only depends on the set of input records, not on their order.

Records missing a mandatory field are skipped and reported instead of aborting
the whole fold.
"""
from typing import Dict, Iterable, List, Tuple

from loguru import logger

from core.models import (
    ConsolidatedResult,
    ConsolidationReport,
    FlightOccurrence,
    RouteKey,
    ScheduleSummary,
    SkippedOccurrence,
    Weekday,
)

MANDATORY_FIELDS = ("flight_number", "origin_code", "destination_code", "aircraft_model_code")


def find_missing_fields(occurrence: FlightOccurrence) -> List[str]:
    """Return the mandatory fields that are blank on `occurrence` (whitespace is stripped on construction)."""
    missing = []
    for name in MANDATORY_FIELDS:
        if not getattr(occurrence, name):
            missing.append(name)
    return missing


def occurrence_to_summary(occurrence: FlightOccurrence) -> ScheduleSummary:
    """Build the initial summary for the first occurrence of a flight number and route."""
    summary = ScheduleSummary(origin=occurrence.origin_code, destination=occurrence.destination_code)
    merge_occurrence(summary, occurrence)
    return summary


def merge_occurrence(summary: ScheduleSummary, occurrence: FlightOccurrence) -> ScheduleSummary:
    """
    Add the values derivable from `occurrence` to `summary` in place.

    Times of day and weekdays are read in the timezone the timestamp carries.
    Origin and destination of the summary are never touched.
    """
    departure = occurrence.scheduled_departure
    if departure is not None:
        summary.scheduled_departure_times.add(departure.time())
        summary.weekdays.add(Weekday.from_datetime(departure))

    if occurrence.scheduled_arrival is not None:
        summary.scheduled_arrival_times.add(occurrence.scheduled_arrival.time())

    summary.aircraft_models.add(occurrence.aircraft_model_code)

    if occurrence.callsign:
        summary.callsigns.add(occurrence.callsign)

    return summary


def _group_by_flight_number(accumulator: Dict[Tuple[str, RouteKey], ScheduleSummary]) -> ConsolidatedResult:
    flights: ConsolidatedResult = {}
    for (flight_number, route_key), summary in accumulator.items():
        flights.setdefault(flight_number, {})[route_key] = summary
    return flights


def consolidate_flight_info(occurrences: Iterable[FlightOccurrence]) -> ConsolidationReport:
    """
    Fold `occurrences` into flight_number -> route key -> ScheduleSummary.

    Malformed records are left out of the result and listed in
    `ConsolidationReport.skipped`.
    """
    accumulator: Dict[Tuple[str, RouteKey], ScheduleSummary] = {}
    skipped: List[SkippedOccurrence] = []
    total = 0

    for index, occurrence in enumerate(occurrences):
        total += 1
        missing = find_missing_fields(occurrence)
        if missing:
            logger.warning(
                f"Skipping record #{index} ({occurrence.flight_number or '?'}, {occurrence.registration or 'no registration'}): "
                f"missing {', '.join(missing)}"
            )
            skipped.append(
                SkippedOccurrence(
                    index=index,
                    flight_number=occurrence.flight_number or None,
                    registration=occurrence.registration,
                    missing_fields=missing,
                )
            )
            continue

        key = (occurrence.flight_number, occurrence.route_key)
        summary = accumulator.get(key)
        if summary is None:
            accumulator[key] = occurrence_to_summary(occurrence)
        else:
            merge_occurrence(summary, occurrence)

    flights = _group_by_flight_number(accumulator)
    logger.debug(
        f"Consolidated {total - len(skipped)}/{total} records into "
        f"{len(accumulator)} routes across {len(flights)} flight numbers"
    )
    return ConsolidationReport(flights=flights, skipped=skipped, total=total)
