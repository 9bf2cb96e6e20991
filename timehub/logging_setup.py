"""Logging configuration: a TRACE level below DEBUG plus per-library levels."""

import logging

# Custom TRACE level
logging.TRACE = 5
logging.addLevelName(logging.TRACE, "TRACE")


# Add trace method to standard Logger class for all instances
def trace_method(self, msg, *args, **kwargs):
    if self.isEnabledFor(logging.TRACE):
        self._log(logging.TRACE, msg, args, **kwargs)


logging.Logger.trace = trace_method


def configure_logging(level_name: str) -> None:
    """Configure the root logger once; VERBOSE and TRACE open up HTTP client logs."""
    level_name = level_name.upper()
    log_level = logging.TRACE if level_name == "TRACE" else getattr(logging, level_name, logging.INFO)
    if logging.getLogger().hasHandlers():
        return

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)-8s - %(message)s'
    )
    root = logging.getLogger()

    if level_name == "VERBOSE":
        root_level = logging.DEBUG
        http_level = logging.DEBUG
        providers_level = logging.TRACE
        root.info("VERBOSE mode enabled: HTTP details and provider traces active for debugging.")
    elif level_name == "TRACE":
        root_level = logging.TRACE
        http_level = logging.TRACE
        providers_level = logging.TRACE
    else:
        root_level = log_level
        http_level = logging.WARNING
        providers_level = log_level

    root.setLevel(root_level)
    logging.getLogger("httpcore").setLevel(http_level)
    logging.getLogger("httpx").setLevel(http_level)
    logging.getLogger("timehub.providers").setLevel(providers_level)
    logging.getLogger("apscheduler").setLevel(max(root_level, logging.INFO))
