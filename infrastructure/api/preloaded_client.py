import json
from pathlib import Path
from typing import List, Union
from loguru import logger
from core.errors import FetchError, ResponseDecodeError
from core.interfaces import FlightHistoryProvider
from core.models import FlightOccurrence
from infrastructure.api.fr24_client import map_to_occurrence, parse_history_page

class PreloadedHistoryProvider(FlightHistoryProvider):
    """
    Serves flight history from a history response saved to disk, in the same
    shape the Flightradar24 list endpoint returns. Useful for offline runs.
    """

    def __init__(self, path: Union[str, Path], filter_by_number: bool = True):
        self.path = Path(path)
        self.filter_by_number = filter_by_number

    async def fetch_flight_history(self, flight_number: str) -> List[FlightOccurrence]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                payload = json.load(f)
        except FileNotFoundError:
            raise FetchError(f"Preloaded history file '{self.path}' not found") from None
        except json.JSONDecodeError as e:
            raise ResponseDecodeError(f"Preloaded history file '{self.path}' contains invalid JSON") from e

        records, _ = parse_history_page(payload)
        occurrences = [map_to_occurrence(raw, source="preloaded") for raw in records]

        if self.filter_by_number:
            wanted = flight_number.strip().upper()
            occurrences = [o for o in occurrences if o.flight_number.upper() == wanted]

        logger.info(f"Loaded {len(occurrences)} historical flights for {flight_number} from '{self.path}'")
        return occurrences
