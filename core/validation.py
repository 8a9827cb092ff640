"""Fail-fast checks on the settings singletons.

Every problem found is collected and reported in a single RuntimeError so
an operator fixes the environment in one pass.
"""

import logging
import re

logger = logging.getLogger(__name__)

HTTP_URL = re.compile(r"^https?://.+")


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _missing_settings(db, s3, config_service, app) -> list[str]:
    required = {
        "Page store": {
            "DB_HOST": db.DB_HOST,
            "DB_NAME": db.DB_NAME,
            "DB_USER": db.DB_USER,
            "DB_PASSWORD": db.DB_PASSWORD.get_secret_value(),
        },
        "Page image storage": {
            "S3_ENDPOINT": s3.S3_ENDPOINT,
            "S3_BUCKET": s3.S3_BUCKET,
            "S3_ACCESS_KEY": s3.S3_ACCESS_KEY,
            "S3_SECRET_KEY": s3.S3_SECRET_KEY.get_secret_value(),
        },
        "Link blocklist": {"EDGE_CONFIG_URL": config_service.EDGE_CONFIG_URL},
        "Request authentication": {
            "INTERNAL_API_KEY": app.INTERNAL_API_KEY.get_secret_value(),
        },
    }
    return [
        f"{name} is not set (needed by: {purpose})"
        for purpose, values in required.items()
        for name, value in values.items()
        if _blank(value)
    ]


def _malformed_urls(config_service, alerts) -> list[str]:
    urls = {
        "EDGE_CONFIG_URL": config_service.EDGE_CONFIG_URL,
        "ALERT_WEBHOOK_URL": alerts.ALERT_WEBHOOK_URL,
    }
    return [
        f"{name}={url} is not an http(s) URL"
        for name, url in urls.items()
        if url and not HTTP_URL.match(url)
    ]


def _out_of_range(db, app) -> list[str]:
    problems = []
    if not 1 <= db.DB_PORT <= 65535:
        problems.append(f"DB_PORT must be 1-65535, got {db.DB_PORT}")
    if db.DB_POOL_MIN_SIZE > db.DB_POOL_MAX_SIZE:
        problems.append(
            f"DB_POOL_MIN_SIZE ({db.DB_POOL_MIN_SIZE}) "
            f"exceeds DB_POOL_MAX_SIZE ({db.DB_POOL_MAX_SIZE})"
        )
    if app.RENDER_MAX_WORKERS < 1:
        problems.append(f"RENDER_MAX_WORKERS must be at least 1, got {app.RENDER_MAX_WORKERS}")
    if app.FETCH_TIMEOUT_SECONDS <= 0:
        problems.append(f"FETCH_TIMEOUT_SECONDS must be positive, got {app.FETCH_TIMEOUT_SECONDS}")
    return problems


def validate_all_settings() -> None:
    """Validate settings before the app starts serving.

    Raises:
        RuntimeError: Listing every missing or invalid setting
    """
    from core.settings import (
        alert_settings,
        app_settings,
        config_service_settings,
        db_settings,
        s3_settings,
    )

    problems = (
        _missing_settings(db_settings, s3_settings, config_service_settings, app_settings)
        + _malformed_urls(config_service_settings, alert_settings)
        + _out_of_range(db_settings, app_settings)
    )
    if problems:
        error_msg = "❌ Invalid configuration:\n" + "\n".join(f"  - {p}" for p in problems)
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    logger.info(
        "✅ Settings validated: "
        f"page store {db_settings.DB_HOST}:{db_settings.DB_PORT}/{db_settings.DB_NAME}, "
        f"bucket {s3_settings.S3_ENDPOINT}/{s3_settings.S3_BUCKET}, "
        f"config store {config_service_settings.EDGE_CONFIG_URL}, "
        f"alerts {alert_settings.ALERT_WEBHOOK_URL or 'log only'}, "
        f"render pool {app_settings.RENDER_EXECUTOR} x {app_settings.RENDER_MAX_WORKERS}"
    )
