import aiohttp
import asyncio
from typing import List, Dict, Any, Optional, Tuple
from datetime import datetime, timezone
from loguru import logger
from pydantic import ValidationError
from core.errors import AuthenticationError, FetchError, ResponseDecodeError
from core.interfaces import FlightHistoryProvider
from core.models import FlightOccurrence

DEFAULT_LOGIN_URL = "https://www.flightradar24.com/user/login"
DEFAULT_HISTORY_URL = "https://api.flightradar24.com/common/v1/flight/list.json"
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 6.1; WOW64; rv:28.0) Gecko/20100101 Firefox/28.0"


def extract_subscription_key(payload: Any) -> str:
    """Pull the API token out of a login response body."""
    try:
        token = payload["userData"]["subscriptionKey"]
    except (KeyError, TypeError):
        raise AuthenticationError("Login response carries no subscription key") from None
    if not token:
        raise AuthenticationError("Login response carries an empty subscription key")
    return token


def parse_history_page(payload: Any) -> Tuple[List[Dict[str, Any]], bool]:
    """
    Return the raw flight records of one history page and whether more pages follow.
    A page with `data: null` holds no records.
    """
    try:
        response = payload["result"]["response"]
    except (KeyError, TypeError):
        raise ResponseDecodeError("History response has no result.response section") from None
    if not isinstance(response, dict):
        raise ResponseDecodeError("History response section is not an object")

    data = response.get("data") or []
    if not isinstance(data, list):
        raise ResponseDecodeError(f"Expected a list of flights, got {type(data).__name__}")

    page = response.get("page")
    if not isinstance(page, dict):
        page = {}
    return data, bool(page.get("more", False))


def _timestamp(value: Any) -> Optional[datetime]:
    # Provider timestamps are epoch seconds in UTC
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        logger.warning(f"Ignoring unreadable timestamp {value!r}")
        return None


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def map_to_occurrence(raw: Any, source: str = "fr24") -> FlightOccurrence:
    """
    Decode one wire record. Missing or mistyped fields come out blank so the
    record is reported by consolidation rather than failing the whole page.
    """
    if not isinstance(raw, dict):
        logger.warning(f"Expected a flight object, got {type(raw).__name__}")
        return FlightOccurrence(source=source)

    identification = _dict(raw.get('identification'))
    aircraft = _dict(raw.get('aircraft'))
    airports = _dict(raw.get('airport'))
    origin = _dict(_dict(airports.get('origin')).get('code'))
    destination = _dict(_dict(airports.get('destination')).get('code'))
    scheduled = _dict(_dict(raw.get('time')).get('scheduled'))

    try:
        return FlightOccurrence(
            flight_number=_str(_dict(identification.get('number')).get('default')),
            origin_code=_str(origin.get('icao')),
            destination_code=_str(destination.get('icao')),
            scheduled_departure=_timestamp(scheduled.get('departure')),
            scheduled_arrival=_timestamp(scheduled.get('arrival')),
            aircraft_model_code=_str(_dict(aircraft.get('model')).get('code')),
            callsign=_str(identification.get('callsign')) or None,
            registration=_str(aircraft.get('registration')) or None,
            source=source,
        )
    except ValidationError as e:
        raise ResponseDecodeError(f"Flight record could not be decoded: {e}") from e


class Fr24Client(FlightHistoryProvider):
    def __init__(self, email: str, password: str, settings: Optional[Dict[str, Any]] = None):
        settings = settings or {}
        self.email = email
        self.password = password
        self.login_url = settings.get('login_url', DEFAULT_LOGIN_URL)
        self.history_url = settings.get('history_url', DEFAULT_HISTORY_URL)
        self.page_limit = int(settings.get('page_limit', 25))
        self.max_pages = max(1, int(settings.get('max_pages', 1)))
        self.timeout = aiohttp.ClientTimeout(total=float(settings.get('timeout_seconds', 30)))
        self.headers = {
            "Origin": "https://www.flightradar24.com",
            "Referer": "https://www.flightradar24.com",
            "User-Agent": settings.get('user_agent', DEFAULT_USER_AGENT),
        }

    async def fetch_flight_history(self, flight_number: str) -> List[FlightOccurrence]:
        occurrences: List[FlightOccurrence] = []
        try:
            async with aiohttp.ClientSession(headers=self.headers, timeout=self.timeout) as session:
                token = await self._login(session)
                page = 1
                while True:
                    payload = await self._fetch_page(session, token, flight_number, page)
                    records, has_more = parse_history_page(payload)
                    occurrences.extend(map_to_occurrence(raw) for raw in records)
                    logger.debug(f"Page {page}: {len(records)} records for {flight_number}")
                    if not has_more or page >= self.max_pages:
                        break
                    page += 1
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(f"Request to Flightradar24 failed: {e}") from e

        logger.info(f"Fetched {len(occurrences)} historical flights for {flight_number} from Flightradar24")
        return occurrences

    async def _login(self, session: aiohttp.ClientSession) -> str:
        form = {
            "remember": "true",
            "type": "web",
            "email": self.email,
            "password": self.password,
        }
        async with session.post(self.login_url, data=form) as response:
            if response.status in [401, 403]:
                raise AuthenticationError(f"Login rejected with status {response.status}")
            if response.status != 200:
                raise FetchError(f"Login failed: {response.status} - {await response.text()}")
            payload = await self._read_json(response)
        token = extract_subscription_key(payload)
        logger.debug("Logged in to Flightradar24")
        return token

    async def _fetch_page(self, session: aiohttp.ClientSession, token: str, flight_number: str, page: int) -> Any:
        params = {
            "query": flight_number,
            "fetchBy": "flight",
            "page": page,
            "limit": self.page_limit,
            "token": token,
        }
        async with session.get(self.history_url, params=params) as response:
            if response.status != 200:
                raise FetchError(f"History request failed: {response.status} - {await response.text()}")
            return await self._read_json(response)

    @staticmethod
    async def _read_json(response: aiohttp.ClientResponse) -> Any:
        try:
            # Provider sometimes labels JSON as text/plain
            return await response.json(content_type=None)
        except ValueError as e:
            raise ResponseDecodeError(f"Response from {response.url} is not valid JSON") from e
