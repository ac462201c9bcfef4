import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

# Workflow command syntax:
# https://docs.github.com/en/actions/using-workflows/workflow-commands-for-github-actions
VERBOSE = 5
NOTICE = 25

logging.addLevelName(VERBOSE, "VERBOSE")
logging.addLevelName(NOTICE, "NOTICE")

_ANNOTATION_PROPERTIES = ("title", "file", "line", "endLine", "col", "endColumn")

_group_level = 0


class ActionsFormatter(logging.Formatter):
    """
    Formats log records as GitHub Actions workflow commands.

    Debug output goes through `::debug::` so the runner hides it unless step debugging is on;
    notices, warnings and errors become annotations. Extra annotation properties such as `title`
    can be passed with `extra=`.
    """

    def __init__(self, fmt: str = "%(message)s (%(name)s)"):
        super().__init__(fmt)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        # Raw workflow commands (groups) are passed through untouched
        if record.getMessage().startswith("::"):
            return record.getMessage()

        if record.levelno <= logging.DEBUG:
            return "\n".join(f"::debug::{line}" for line in message.splitlines())
        if record.levelno < NOTICE:
            return message

        if record.levelno < logging.WARNING:
            command = "notice"
        elif record.levelno < logging.ERROR:
            command = "warning"
        else:
            command = "error"

        properties = ",".join(
            f"{key}={_escape_property(getattr(record, key))}"
            for key in _ANNOTATION_PROPERTIES
            if getattr(record, key, None) is not None
        )
        if properties:
            command = f"{command} {properties}"

        return f"::{command}::{_escape_data(message)}"


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value) -> str:
    return _escape_data(str(value)).replace(":", "%3A").replace(",", "%2C")


def configure_logging(debug: bool = False, verbose: bool = False) -> None:
    """Configures the root logger for a GitHub Actions runner."""
    level = VERBOSE if verbose else logging.DEBUG if debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ActionsFormatter())

    logging.basicConfig(level=level, handlers=[handler], force=True)


def verbose(logger: logging.Logger, message: str, *args, **kwargs) -> None:
    logger.log(VERBOSE, message, *args, **kwargs)


def notice(logger: logging.Logger, message: str, title: Optional[str] = None) -> None:
    logger.log(NOTICE, message, extra={"title": title})


def warning(logger: logging.Logger, message: str, title: Optional[str] = None) -> None:
    logger.warning(message, extra={"title": title})


def start_group(logger: logging.Logger, title: str = "") -> None:
    global _group_level
    logger.info(f"::group::{title}")
    _group_level += 1


def end_group(logger: logging.Logger) -> None:
    global _group_level
    if _group_level <= 0:
        raise RuntimeError("Attempting to close a logging group that was never opened.")
    logger.info("::endgroup::")
    _group_level -= 1


def end_all_groups(logger: logging.Logger) -> None:
    while _group_level > 0:
        end_group(logger)


@contextmanager
def log_group(logger: logging.Logger, title: str = "") -> Iterator[None]:
    """Wraps the enclosed log lines in a collapsible group, closing it even on error."""
    start_group(logger, title)
    try:
        yield
    finally:
        end_group(logger)


def mask(value: str, reveal: int = 0, fixed_length: Optional[int] = None, mask_char: str = "*") -> str:
    """
    Masks a secret for display, optionally revealing its first `reveal` characters.
    """
    target_length = len(value)

    if fixed_length and len(value) > fixed_length:
        value = value[:fixed_length]
        target_length = fixed_length

    masked = value[:reveal] if reveal > 0 else ""
    return masked + mask_char * (target_length - len(masked))
