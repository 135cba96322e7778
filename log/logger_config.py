from loguru import logger
import sys

def setup_logger(config):
    """Configure loguru sinks from the 'logging' section. Stdout is left for program output."""
    settings = config.get('logging', {})
    log_level = str(settings.get('log_level', 'INFO')).upper()
    log_file = settings.get('log_file')
    warn_log_file = settings.get('warning_log_file')
    log_rotation = settings.get('log_rotation', '10 MB')

    logger.remove() # Remove default handler
    logger.add(sys.stderr, level=log_level)
    if log_file:
        logger.add(log_file, level=log_level, enqueue=True, rotation=log_rotation)
    if warn_log_file and warn_log_file != log_file:
        logger.add(warn_log_file, level="WARNING", enqueue=True, rotation=log_rotation)
    return logger
