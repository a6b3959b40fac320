import logging
import sys

import structlog
from structlog.stdlib import add_log_level, add_logger_name


def setup_logging(
    level: int = logging.INFO, colors: bool = True, json_output: bool = False
) -> None:
    """Configure structlog over standard logging at ``level``.

    Sound diagnostics (pool growth, late releases, unknown sound types) reach
    the console through :class:`sfx.observer.StructlogObserver` once this has
    run.  ``json_output`` switches to one JSON object per line, for piping the
    demo's output into other tools.
    """
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)

    processors = [
        structlog.contextvars.merge_contextvars,
        add_logger_name,
        add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=json_output),
    ]
    if json_output:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
