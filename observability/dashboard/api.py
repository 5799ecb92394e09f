"""
JSON API for gap statistics.
Registered on the dashboard by create_app() via register_api_routes(app, analyzer, config)

    GET /api/gaps?ticker=SPY&years=3&minGap=0.3&intraday=1

Status codes:
    200  analysis ran (including "not enough data", which has success=false)
    400  missing ticker or invalid parameter
    502  daily bars could not be fetched
    500  any other analysis failure
"""
import json
import logging

from flask import Response, request

from config import parse_analysis_params
from research.gap_report import error_payload
from utils.errors import DataFetchError, GapAnalyzerError, ValidationError, format_exception_chain

logger = logging.getLogger(__name__)


def json_response(payload: dict, status: int = 200) -> Response:
    # json.dumps keeps insertion order (Mon..Fri, bin order)
    return Response(json.dumps(payload), mimetype="application/json", status=status)


def register_api_routes(dash_app, analyzer, config=None):
    """Register /api/gaps on the Flask server underlying Dash."""
    intraday_default = config.intraday_enabled if config is not None else True

    @dash_app.server.route("/api/gaps")
    def api_gaps():
        try:
            params = parse_analysis_params(request.args, intraday_default=intraday_default)
        except ValidationError as e:
            logger.info(f"Rejected /api/gaps request: {e.message}")
            ticker = (request.args.get("ticker") or "").strip().upper()
            return json_response(error_payload(e.message, ticker=ticker), 400)

        try:
            result = analyzer.analyze(params)
        except DataFetchError as e:
            logger.warning(f"{params.ticker}: Daily bars unavailable: {e.message}")
            return json_response(
                error_payload(e.message, params.ticker, params.years, params.min_gap), 502
            )
        except GapAnalyzerError as e:
            logger.error(f"{params.ticker}: Analysis failed: {format_exception_chain(e)}")
            return json_response(
                error_payload(e.message, params.ticker, params.years, params.min_gap), 500
            )

        return json_response(result.to_dict(), 200)

    return dash_app
