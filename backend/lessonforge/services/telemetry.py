import time
import json
import logging
import inspect
from typing import Optional
from functools import wraps

from lessonforge.core.config import get_settings

logger = logging.getLogger("lessonforge.telemetry")


def emit_event(event: str, *, route: str, version: str, session_id: Optional[str] = None,
               subject: Optional[str] = None, skill_area: Optional[str] = None,
               template_id: Optional[str] = None, error_type: Optional[str] = None,
               latency_ms: Optional[int] = None, ok: Optional[bool] = None):
    payload = {
        "event": event,
        "route": route,
        "version": version,
        "session_id": session_id,
        "subject": subject,
        "skill_area": skill_area,
        "template_id": template_id,
        "error_type": error_type,
        "latency_ms": latency_ms,
        "ok": ok,
        "ts": time.time(),
    }
    # single-line JSON for log shipping
    logger.info("telemetry=%s", json.dumps(payload, separators=(",", ":")))

    # persist to Supabase (best-effort, never block the request)
    if not get_settings().enable_telemetry_db:
        return

    try:
        from lessonforge.services.supabase_client import get_supabase_client
        sb = get_supabase_client()
        sb.table("telemetry_events").insert({k: v for k, v in payload.items() if k != "ts"}).execute()
    except Exception as e:
        logger.error(f"[telemetry.emit_event] {e}", exc_info=True)


def _request_context(args, kwargs) -> dict:
    """
    Session/subject/skill for the api_call event.

    Path parameters arrive as keyword arguments; for JSON bodies the fields
    are read off the first request model that carries a ``session_id``.
    """
    ctx = {"session_id": kwargs.get("session_id")}
    if ctx["session_id"] is None:
        for value in (*args, *kwargs.values()):
            if isinstance(getattr(value, "session_id", None), str):
                ctx["session_id"] = value.session_id
                ctx["subject"] = getattr(value, "subject", None)
                ctx["skill_area"] = getattr(value, "skill_area", None)
                break
    return ctx


def instrument(route: str, version: str):
    """Emit one ``api_call`` event per handler call with latency and outcome."""
    def finish(t0: float, err: Optional[str], args, kwargs) -> None:
        emit_event("api_call", route=route, version=version,
                   latency_ms=int((time.time() - t0) * 1000), ok=err is None, error_type=err,
                   **_request_context(args, kwargs))

    def deco(fn):
        if inspect.iscoroutinefunction(fn):
            @wraps(fn)
            async def wrapped_async(*args, **kwargs):
                t0, err = time.time(), None
                try:
                    return await fn(*args, **kwargs)
                except Exception as e:
                    err = e.__class__.__name__
                    raise
                finally:
                    finish(t0, err, args, kwargs)
            return wrapped_async

        @wraps(fn)
        def wrapped(*args, **kwargs):
            t0, err = time.time(), None
            try:
                return fn(*args, **kwargs)
            except Exception as e:
                err = e.__class__.__name__
                raise
            finally:
                finish(t0, err, args, kwargs)
        return wrapped
    return deco
