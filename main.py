import argparse
import asyncio
import functools
import os
import signal
import sys
from loguru import logger
from config import config_manager
from core.errors import FetchError
from core.interfaces import FlightHistoryProvider
from core.serialization import dumps, dumps_report
from infrastructure.api.fr24_client import Fr24Client
from infrastructure.api.preloaded_client import PreloadedHistoryProvider
from log.logger_config import setup_logger
from services.history_service import FlightHistoryService

# Load environment variables
from dotenv import load_dotenv

TERMINATION_SIGNALS = ("SIGHUP", "SIGINT", "SIGQUIT", "SIGTERM")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Summarize the historical schedule of a flight number")
    parser.add_argument("-m", "--email", default=os.getenv("MAIL"), help="Flightradar24 account e-mail (env: MAIL)")
    parser.add_argument("-p", "--password", default=os.getenv("PASSWORD"), help="Flightradar24 account password (env: PASSWORD)")
    parser.add_argument("-f", "--flight-number", default=os.getenv("FLIGHT_NUMBER"), help="Flight number to look up, e.g. BA123")
    parser.add_argument("-c", "--config", default=str(config_manager.CONFIG_PATH), help="Path to a YAML or JSON config file")
    parser.add_argument("-i", "--input", help="Read a saved history response instead of calling the API")
    parser.add_argument("--indent", type=int, default=None, help="Indent the JSON output")
    parser.add_argument("--with-diagnostics", action="store_true", help="Include skipped records in the output")

    args = parser.parse_args(argv)
    if not args.flight_number:
        parser.error("a flight number is required (--flight-number or FLIGHT_NUMBER)")
    return args


def build_provider(args, config) -> FlightHistoryProvider:
    api_settings = config_manager.get_config(config, 'api') or {}
    if args.input or config_manager.get_config(config, 'api.preloaded_data'):
        path = args.input or config_manager.get_config(config, 'api.preloaded_path')
        if not path:
            raise ValueError("Preloaded data requested but no input file given")
        return PreloadedHistoryProvider(path)

    if not args.email or not args.password:
        raise ValueError("MAIL and PASSWORD must be set to query Flightradar24")
    return Fr24Client(args.email, args.password, api_settings)


def _on_signal(received: asyncio.Future, signame: str) -> None:
    if not received.done():
        received.set_result(signame)


async def wait_for_termination_signal() -> str:
    """Resolve with the name of the first termination signal received."""
    loop = asyncio.get_running_loop()
    received = loop.create_future()
    installed = []
    for signame in TERMINATION_SIGNALS:
        signum = getattr(signal, signame, None)
        if signum is None:
            continue
        try:
            loop.add_signal_handler(signum, functools.partial(_on_signal, received, signame))
        except NotImplementedError:
            logger.warning(f"Cannot listen for {signame} on this platform")
            continue
        installed.append(signum)
    try:
        return await received
    finally:
        for signum in installed:
            loop.remove_signal_handler(signum)


async def run(args, config) -> int:
    indent = args.indent if args.indent is not None else (config_manager.get_config(config, 'output.indent') or None)
    with_diagnostics = args.with_diagnostics or bool(config_manager.get_config(config, 'output.with_diagnostics'))

    try:
        provider = build_provider(args, config)
    except ValueError as e:
        logger.error(str(e))
        return 1

    service = FlightHistoryService(provider)
    signal_task = asyncio.create_task(wait_for_termination_signal())
    fetch_task = asyncio.create_task(service.summarize(args.flight_number))

    done, _ = await asyncio.wait({signal_task, fetch_task}, return_when=asyncio.FIRST_COMPLETED)

    if signal_task in done:
        logger.info(f"Received signal {signal_task.result()}")
        logger.info("Terminating")
        return 0

    signal_task.cancel()
    await asyncio.gather(signal_task, return_exceptions=True)
    try:
        report = fetch_task.result()
    except FetchError as e:
        logger.error(f"Data fetching unsuccessful: {e}")
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"Critical error while summarizing {args.flight_number}: {e}")
        return 1

    if with_diagnostics:
        print(dumps_report(report, indent=indent))
    else:
        print(dumps(report.flights, indent=indent))
    return 0


def main(argv=None) -> int:
    load_dotenv()
    args = parse_args(argv)
    config = config_manager.load_config(args.config)
    setup_logger(config)
    return asyncio.run(run(args, config))


if __name__ == "__main__":
    sys.exit(main())
