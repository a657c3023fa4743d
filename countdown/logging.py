from logging import _nameToLevel, basicConfig

from structlog import (
    configure_once,
    get_logger as structlog_get_logger,
    make_filtering_bound_logger,
)
from structlog.dev import ConsoleRenderer
from structlog.processors import (
    StackInfoRenderer,
    TimeStamper,
    UnicodeDecoder,
    add_log_level,
)
from structlog.stdlib import PositionalArgumentsFormatter

from countdown.settings import get_settings

_LOGGING = get_settings().logging

# Default logging level for all the dependencies
basicConfig(level=_LOGGING.sys_level.value)

configure_once(
    cache_logger_on_first_use=True,
    context_class=dict,
    wrapper_class=make_filtering_bound_logger(_nameToLevel[_LOGGING.app_level.value]),
    processors=[
        add_log_level,
        # Enable %s-style formatting
        PositionalArgumentsFormatter(),
        TimeStamper(fmt="iso", utc=True),
        StackInfoRenderer(),
        UnicodeDecoder(),
        ConsoleRenderer(),
    ],
)

logger = structlog_get_logger("countdown")
