"""HTTP interface for managing subscriptions and the server entry point."""

import argparse
import json
import logging
import re
import signal
import sys
from typing import Any, Optional, Sequence

from flask import Flask, Response, request
from sqlalchemy.engine import Engine

from subtrack.config import ConfigError, load
from subtrack.conversion import ConversionError
from subtrack.models import RawReportFilter, RawSubscription, Report
from subtrack.repository import (
    EmptyAllFields,
    EmptySomeFields,
    SubscriptionExists,
    SubscriptionNotFound,
    connect,
)
from subtrack.service import SubscriptionService

log = logging.getLogger(__name__)

_SIGNED = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_UINT64 = 2**64


def _error(message: str, status: int) -> Response:
    response = Response(message + "\n", status=status, mimetype="text/plain")
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


def _json(payload: Any, status: int) -> Response:
    body = json.dumps(payload, ensure_ascii=False) + "\n"
    return Response(body, status=status, mimetype="application/json")


def _parse_signed(text: str) -> int:
    if _SIGNED.fullmatch(text) is None:
        raise ValueError(f"invalid syntax: {text!r}")
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"value out of range: {text!r}")
    return value


def _decode_subscription() -> RawSubscription:
    """Decode the request body into a raw subscription or raise ValueError."""
    text = request.get_data(as_text=True)
    if not text.strip():
        raise ValueError("EOF")
    return RawSubscription.from_json(json.loads(text))


def create_app(engine: Engine) -> Flask:
    """Build the web application serving the subscription endpoints."""
    app = Flask(__name__)
    service = SubscriptionService(engine)

    @app.post("/subscriptions")
    def create() -> Response:
        try:
            raw = _decode_subscription()
        except ValueError as exc:
            return _error(f"Invalid JSON: {exc}", 400)
        try:
            service.create_subscription(raw)
        except EmptySomeFields as exc:
            return _error(f"Validation error: {exc}", 400)
        except SubscriptionExists as exc:
            return _error(f"Conflict: {exc}", 409)
        except Exception as exc:  # any other failure is reported as an internal error
            return _error(f"Internal error: {exc}", 500)
        return _json(raw.to_json(), 201)

    @app.put("/subscriptions/<sid>")
    def update_by_sid(sid: str) -> Response:
        try:
            raw = _decode_subscription()
        except ValueError:
            return _error("Failed to decode subscription from json", 400)
        try:
            service.update_by_sid(raw, sid)
        except EmptyAllFields:
            return _error("At least one field must not be empty", 400)
        except SubscriptionNotFound:
            return _error("Subscription not found", 404)
        except Exception as exc:
            # Other failures end the request without a body.
            log.warning("Update of subscription %s failed: %s", sid, exc)
            return Response(status=200)
        return _json(raw.to_json(), 200)

    @app.get("/subscriptions/<sid>")
    def get_by_sid(sid: str) -> Response:
        try:
            number = _parse_signed(sid)
        except ValueError:
            return _error("Failed to parse subscription SID", 500)
        try:
            raw = service.get_by_sid(number % _UINT64)
        except Exception:
            return _error("Failed to find subscription SID", 404)
        return _json(raw.to_json(), 200)

    @app.get("/subscriptions")
    def get_list() -> Response:
        try:
            subs = service.get_list()
        except Exception:
            return _error("Failed to fetch subscriptions", 500)
        payload = [sub.to_json() for sub in subs] if subs else None
        return _json(payload, 200)

    @app.delete("/subscriptions/<sid>")
    def delete(sid: str) -> Response:
        try:
            number = _parse_signed(sid)
        except ValueError:
            return _error("Failed to parse subscription SID", 500)
        try:
            service.delete_subscription(number % _UINT64)
        except SubscriptionNotFound:
            return _error("Subscription not found", 404)
        except Exception as exc:
            return _error(f"Failed to delete subscription: {exc}", 400)
        return Response(status=204)

    @app.get("/subscriptions/report")
    def report() -> Response:
        raw_filter = RawReportFilter(
            period=request.args.get("period", ""),
            uid=request.args.get("uid", ""),
            provider=request.args.get("provider", ""),
        )
        if not raw_filter.period:
            return _error("Empty mandatory period field", 400)
        try:
            total = service.report(raw_filter)
        except ConversionError:
            return _error("Incorrect input data", 400)
        except Exception as exc:
            return _error(f"Failed to compose report: {exc}", 500)
        return _json(Report(total=total).to_json(), 200)

    return app


def _split_address(address: str) -> tuple:
    host, sep, port = address.rpartition(":")
    if not sep:
        host, port = "", address
    return host or "0.0.0.0", int(port)


def _install_shutdown(engine: Engine) -> None:
    """Close database connections and exit cleanly on SIGINT or SIGTERM."""

    def _shutdown(signum: int, frame: Any) -> None:
        engine.dispose()
        log.info("Subscription server stopped: DB-connections closed.")
        raise SystemExit(0)

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start the subscription server using settings from the environment."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    parser = argparse.ArgumentParser(description="REST API for managing subscriptions")
    parser.parse_args(argv)

    try:
        cfg = load()
    except ConfigError as exc:
        log.error("%s", exc)
        return 1
    try:
        host, port = _split_address(cfg.port)
    except ValueError:
        log.error("Invalid SUBSCRIPTION_PORT: %s", cfg.port)
        return 1
    try:
        engine = connect(cfg.dsn)
    except Exception as exc:
        log.error("Cannot open db: %s", exc)
        return 1

    app = create_app(engine)
    _install_shutdown(engine)
    log.info("Server running on http://localhost%s", cfg.port)
    try:
        app.run(host=host, port=port)
    except OSError as exc:
        log.error("Server failed to start: %s", exc)
        engine.dispose()
        return 1
    engine.dispose()
    log.info("Subscription server stopped: DB-connections closed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())