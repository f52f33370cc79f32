"""HTTP entry point: authenticate the caller, run the pipeline, map the result."""

from __future__ import annotations

import hmac
import traceback
from typing import Callable

from flask import Flask, jsonify, request

from .config import ConfigRepository, Settings
from .logging_conf import configure_logging
from .orchestrator import Pipeline, RunResult

PipelineFactory = Callable[[Settings], Pipeline]


def _authorised(settings: Settings) -> bool:
    if not settings.api_key:
        return True
    header = request.headers.get("Authorization", "")
    return hmac.compare_digest(header, f"Bearer {settings.api_key}")


def _failure_payload(result: RunResult, settings: Settings) -> dict:
    payload: dict = {"success": False, "error": str(result.error)}
    if settings.is_development and result.error is not None:
        payload["stack"] = "".join(
            traceback.format_exception(type(result.error), result.error, result.error.__traceback__)
        )
    return payload


def create_app(
    settings: Settings | None = None,
    pipeline_factory: PipelineFactory | None = None,
) -> Flask:
    """Build the Flask application exposing ``/api/scrape``."""

    settings = settings or ConfigRepository().load_settings()
    factory = pipeline_factory or (lambda cfg: Pipeline(cfg))
    logger = configure_logging().bind(component="api")

    app = Flask(__name__)
    app.config["SCRAPER_SETTINGS"] = settings

    @app.route("/healthz", methods=["GET"])
    def healthz():
        return jsonify({"status": "ok"})

    @app.route("/api/scrape", methods=["GET", "POST"])
    def scrape():
        if not _authorised(settings):
            logger.warning("unauthorised_request", remote_addr=request.remote_addr)
            return jsonify({"error": "Unauthorized"}), 401

        result = factory(settings).run()
        if not result.success:
            logger.error("scrape_request_failed", error=str(result.error))
            return jsonify(_failure_payload(result, settings)), 500

        payload = {"message": "Scraping completed successfully", **result.as_dict()}
        return jsonify(payload), 200

    return app


__all__ = ["create_app"]
