from dataclasses import dataclass, field
from datetime import datetime, time
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Set

from pydantic import BaseModel, ConfigDict, Field


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def from_datetime(cls, moment: datetime) -> "Weekday":
        """Weekday of the civil date carried by `moment`, in its own timezone."""
        return list(cls)[moment.weekday()]

    @property
    def ordinal(self) -> int:
        return list(Weekday).index(self)


class RouteKey(NamedTuple):
    origin: str
    destination: str

    def __str__(self) -> str:
        return f"{self.origin}-{self.destination}"


class FlightOccurrence(BaseModel):
    """One historical operation of a flight leg, as decoded from the provider."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    flight_number: str = Field("", description="Flight number, e.g. 'BA123'")
    origin_code: str = Field("", description="ICAO code of the departure airport")
    destination_code: str = Field("", description="ICAO code of the arrival airport")
    scheduled_departure: Optional[datetime] = None
    scheduled_arrival: Optional[datetime] = None
    aircraft_model_code: str = Field("", description="ICAO aircraft type designator, e.g. 'B77W'")
    callsign: Optional[str] = None

    # Reported for skipped records, never aggregated
    registration: Optional[str] = None
    source: str = Field("unknown", description="Source of the data (e.g., 'fr24', 'preloaded')")

    @property
    def route_key(self) -> RouteKey:
        return RouteKey(self.origin_code, self.destination_code)


class ScheduleSummary(BaseModel):
    origin: str
    destination: str
    scheduled_departure_times: Set[time] = Field(default_factory=set)
    scheduled_arrival_times: Set[time] = Field(default_factory=set)
    weekdays: Set[Weekday] = Field(default_factory=set)
    aircraft_models: Set[str] = Field(default_factory=set)
    callsigns: Set[str] = Field(default_factory=set)


class SkippedOccurrence(BaseModel):
    index: int = Field(..., description="Position of the record in the input sequence")
    flight_number: Optional[str] = None
    registration: Optional[str] = None
    missing_fields: List[str] = Field(default_factory=list)


ConsolidatedResult = Dict[str, Dict[RouteKey, ScheduleSummary]]


@dataclass
class ConsolidationReport:
    flights: ConsolidatedResult = field(default_factory=dict)
    skipped: List[SkippedOccurrence] = field(default_factory=list)
    total: int = 0

    @property
    def accepted(self) -> int:
        return self.total - len(self.skipped)
