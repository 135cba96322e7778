from abc import ABC, abstractmethod
from typing import List
from core.models import FlightOccurrence

class FlightHistoryProvider(ABC):
    @abstractmethod
    async def fetch_flight_history(self, flight_number: str) -> List[FlightOccurrence]:
        """Fetch past operations of a flight number, in the provider's delivery order."""
        pass
