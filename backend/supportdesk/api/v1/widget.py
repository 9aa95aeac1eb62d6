"""Public widget configuration endpoint."""

from __future__ import annotations

from urllib.parse import urlsplit

from flask import Blueprint, request

from supportdesk.api.deps import get_domain_service, json_response, timing, unwrap_result
from supportdesk.core.errors import NotFound
from supportdesk.schemas import WidgetConfigQuerySchema, WidgetConfigSchema

bp = Blueprint("widget", __name__, url_prefix="/widget")

query_schema = WidgetConfigQuerySchema()
config_schema = WidgetConfigSchema()


def _embedding_host() -> str | None:
    """Host of the page embedding the widget, from ``Origin`` or ``Referer``."""

    for header in ("Origin", "Referer"):
        value = request.headers.get(header)
        if value and urlsplit(value).netloc:
            return value
    return None


@bp.get("/config")
@timing
def widget_config():
    """Return the API key for a verified domain."""

    args = query_schema.load(request.args)
    hostname = args.get("domain") or _embedding_host()
    if not hostname:
        raise NotFound("Domain not found")
    out = unwrap_result(get_domain_service().widget_config(hostname))
    return json_response({"data": config_schema.dump(out)})
