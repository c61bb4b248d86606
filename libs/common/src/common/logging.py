"""Logging setup shared by messenger processes, with optional CloudWatch."""

import logging
import os

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(service_name: str, level: str | None = None) -> None:
    """Configure the root logger for a service.

    Args:
        service_name: Used as the CloudWatch log stream name (e.g., "messenger")
        level: Log level name; falls back to LOG_LEVEL, then INFO

    Environment variables:
        LOG_LEVEL: Root log level (default: "INFO")
        ENABLE_CLOUDWATCH: Set to "true" to ship logs to CloudWatch
        CLOUDWATCH_LOG_GROUP: Log group name (default: "messenger")
    """
    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    log_group = os.environ.get("CLOUDWATCH_LOG_GROUP", "messenger")

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(console)

    if os.environ.get("ENABLE_CLOUDWATCH", "").lower() != "true":
        return

    try:
        import watchtower
    except ImportError:
        root.warning("watchtower not installed, CloudWatch logging disabled")
        return

    try:
        cw_handler = watchtower.CloudWatchLogHandler(
            log_group_name=log_group,
            log_stream_name=service_name,
            use_queues=True,
            create_log_group=True,
        )
    except Exception as e:
        root.warning("Failed to initialize CloudWatch logging: %s", e)
        return

    cw_handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(cw_handler)
    root.info("CloudWatch logging enabled: group=%s, stream=%s", log_group, service_name)
