from loguru import logger
from core.interfaces import FlightHistoryProvider
from core.models import ConsolidationReport
from services.consolidation import consolidate_flight_info

class FlightHistoryService:
    def __init__(self, provider: FlightHistoryProvider):
        self.provider = provider

    async def summarize(self, flight_number: str) -> ConsolidationReport:
        """
        Fetch the history of a flight number and reduce it to schedule summaries.
        Fetch errors are propagated untouched so callers can tell them apart from
        records dropped during consolidation.
        """
        flight_number = (flight_number or "").strip()
        if not flight_number:
            raise ValueError("A flight number is required")

        provider_name = self.provider.__class__.__name__
        logger.info(f"Fetching history of {flight_number} from {provider_name}...")
        occurrences = await self.provider.fetch_flight_history(flight_number)

        if not occurrences:
            logger.warning(f"No historical flights found for {flight_number}.")

        report = consolidate_flight_info(occurrences)
        if report.skipped:
            logger.warning(f"Skipped {len(report.skipped)} of {report.total} records with missing data")

        routes = sum(len(r) for r in report.flights.values())
        logger.info(f"Summarized {report.accepted} flights into {routes} routes")
        return report
