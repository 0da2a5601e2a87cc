"""
Logging setup for the API server and the CLI, using loguru.

The API and the CLI both call ``setup_logger`` once at start-up. Modules
import ``logger`` from here and never configure sinks themselves.
"""
import sys
from pathlib import Path
from loguru import logger as _logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def setup_logger(
    log_dir: Path | None = None,
    level: str = "INFO",
    serialize: bool = False,
) -> None:
    """
    Replace loguru's default sink with Paddock's sinks.

    Args:
        log_dir: Also write ``paddock.log`` here (rotated daily) when given.
        level: Minimum level for every sink.
        serialize: Emit one JSON object per line instead of the coloured format.
    """
    _logger.remove()

    if serialize:
        _logger.add(sys.stderr, level=level.upper(), serialize=True)
    else:
        _logger.add(sys.stderr, level=level.upper(), format=CONSOLE_FORMAT, colorize=True)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        _logger.add(
            log_dir / "paddock.log",
            level=level.upper(),
            serialize=serialize,
            rotation="00:00",
            retention="7 days",
            compression="gz",
        )


logger = _logger
