import functools
import logging
import os
from datetime import datetime


# Set up logging with environment variable
log_level_str = os.environ.get("LOG_LEVEL", "INFO")
log_level = getattr(logging, log_level_str.upper(), logging.INFO)


def get_logger(name: str):
    logging.basicConfig(
        level=log_level,
        format="[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s",
    )
    logger = logging.getLogger(name)
    return logger


def time_execution(func):
    """
    Decorator to time the execution of a function.
    Logs execution time at debug level but returns only the original result.
    """
    logger = get_logger(__name__)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = datetime.now()
        result = func(*args, **kwargs)
        elapsed_time = datetime.now() - start_time
        logger.debug(f"{func.__name__} completed in {elapsed_time}")
        return result

    return wrapper


def env_int(name: str, default: int) -> int:
    """
    Read an integer from the environment, keeping the default on bad input.

    Args:
        name: Environment variable name
        default: Value used when the variable is unset or not an integer

    Returns:
        Parsed integer value
    """
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        get_logger(__name__).warning(
            f"Invalid {name} value: {raw}, using default {default}"
        )
        return default


def env_float(name: str, default: float) -> float:
    """Float counterpart of env_int."""
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        get_logger(__name__).warning(
            f"Invalid {name} value: {raw}, using default {default}"
        )
        return default
