"""
JSON rendering of consolidated schedules.

Sets are written as arrays sorted into a canonical order (times ascending,
weekdays Monday first, strings lexically) so that the same history always
produces the same document. Times of day are written as HH:MM:SS. Example:

    {"BA123": {"EGLL-KJFK": {"origin": "EGLL", "destination": "KJFK",
                             "scheduled_departure_times": ["10:00:00"], ...}}}
"""
import json
from typing import Any, Dict, Optional

from core.models import ConsolidatedResult, ConsolidationReport, ScheduleSummary


def summary_to_dict(summary: ScheduleSummary) -> Dict[str, Any]:
    return {
        "origin": summary.origin,
        "destination": summary.destination,
        "scheduled_departure_times": [t.strftime("%H:%M:%S") for t in sorted(summary.scheduled_departure_times)],
        "scheduled_arrival_times": [t.strftime("%H:%M:%S") for t in sorted(summary.scheduled_arrival_times)],
        "weekdays": [d.value for d in sorted(summary.weekdays, key=lambda d: d.ordinal)],
        "aircraft_models": sorted(summary.aircraft_models),
        "callsigns": sorted(summary.callsigns),
    }


def result_to_dict(result: ConsolidatedResult) -> Dict[str, Dict[str, Dict[str, Any]]]:
    return {
        flight_number: {str(route_key): summary_to_dict(summary) for route_key, summary in routes.items()}
        for flight_number, routes in result.items()
    }


def report_to_dict(report: ConsolidationReport) -> Dict[str, Any]:
    """Result plus the diagnostics of records that were left out."""
    return {
        "flights": result_to_dict(report.flights),
        "records": report.total,
        "skipped": [s.model_dump() for s in report.skipped],
    }


def dumps(result: ConsolidatedResult, indent: Optional[int] = None) -> str:
    return json.dumps(result_to_dict(result), indent=indent, sort_keys=True)


def dumps_report(report: ConsolidationReport, indent: Optional[int] = None) -> str:
    return json.dumps(report_to_dict(report), indent=indent, sort_keys=True)
