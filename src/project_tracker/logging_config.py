import sys
from pathlib import Path

from loguru import logger

from project_tracker.settings import Settings


def setup_logging(settings: Settings) -> None:
    """
    Configure logging for the application.
    """

    # Remove default handler to avoid duplicate logs
    logger.remove()

    # Console handler; stdout is reserved for command output
    logger.add(
        sys.stderr,
        level=settings.logging_level,
        format=settings.logging_format,
        colorize=False,
        backtrace=True,
        diagnose=True,
        catch=True,
    )

    if settings.logging_to_file:
        log_dir = Path(settings.app_data_dir).joinpath("logs")
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir.joinpath(f"{settings.app_name}.log"),
            level=settings.logging_level,
            format=settings.logging_format,
            rotation=settings.logging_rotation,
            retention=settings.logging_retention,
            compression=settings.logging_compression,
            backtrace=True,
            diagnose=False,
            catch=True,
        )

    # Configure common context (can be overridden per module)
    logger.configure(extra={"app": settings.app_name, "version": settings.app_version})

    logger.debug(
        "Logging system initialized",
        log_level=settings.logging_level,
    )
