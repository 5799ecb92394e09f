"""
Health check endpoint for monitoring tools.
Registered on the dashboard by create_app() via register_health_endpoint(app, config)
"""
import json
import time
import psutil
from flask import Response


def _provider_check(config) -> dict:
    """Credentials for the selected bar provider are present (no network call)."""
    if config is None:
        return {"provider": None, "configured": False, "status": "critical"}

    if config.provider == "polygon":
        configured = bool(config.polygon_api_key)
    else:
        configured = bool(config.alpaca_api_key and config.alpaca_secret_key)

    return {
        "provider": config.provider,
        "configured": configured,
        "intraday_enabled": config.intraday_enabled,
        "status": "ok" if configured else "critical",
    }


def register_health_endpoint(dash_app, config=None):
    """Register /health endpoint on the Flask server underlying Dash."""

    @dash_app.server.route("/health")
    def health_check():
        start = time.time()
        health = {
            "status": "healthy",
            "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
            "checks": {}
        }

        # Memory check
        mem = psutil.virtual_memory()
        health["checks"]["memory"] = {
            "available_mb": round(mem.available / 1024 / 1024),
            "percent_used": mem.percent,
            "status": "ok" if mem.available > 300 * 1024 * 1024 else "warning"
        }

        # CPU check
        cpu = {"percent": psutil.cpu_percent(interval=0.1), "status": "ok"}
        if hasattr(psutil, "getloadavg"):
            cpu["load_avg"] = list(psutil.getloadavg())
        health["checks"]["cpu"] = cpu

        # Disk check
        disk = psutil.disk_usage("/")
        health["checks"]["disk"] = {
            "free_gb": round(disk.free / 1024 / 1024 / 1024, 1),
            "percent_used": disk.percent,
            "status": "ok" if disk.percent < 90 else "warning"
        }

        # Process check
        proc = psutil.Process()
        health["checks"]["process"] = {
            "rss_mb": round(proc.memory_info().rss / 1024 / 1024, 1),
            "threads": proc.num_threads(),
            "status": "ok"
        }

        # Bar provider check
        health["checks"]["bar_provider"] = _provider_check(config)

        # Overall status
        statuses = [c.get("status", "ok") for c in health["checks"].values()]
        if "critical" in statuses:
            health["status"] = "unhealthy"
        elif "warning" in statuses:
            health["status"] = "degraded"

        health["response_time_ms"] = round((time.time() - start) * 1000, 1)

        return Response(
            json.dumps(health, indent=2),
            mimetype="application/json",
            status=200 if health["status"] == "healthy" else 503
        )

    return dash_app
