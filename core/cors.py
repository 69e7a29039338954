"""Cross-origin headers for the paper endpoints."""

from .paper_config import get_paper_config

PREFLIGHT_MAX_AGE = 86400


def allowed_origin(request_origin) -> str:
    """
    Echo the request's Origin when it is on the allow-list; otherwise answer
    with the first configured origin so the browser rejects the response.
    """
    origins = get_paper_config().allowed_origins
    if request_origin and request_origin in origins:
        return request_origin
    return origins[0]


def apply_cors(request, response):
    response["Access-Control-Allow-Origin"] = allowed_origin(request.headers.get("Origin"))
    response["Vary"] = "Origin"
    return response


def apply_preflight(request, response):
    apply_cors(request, response)
    response["Access-Control-Allow-Methods"] = "POST, OPTIONS"
    response["Access-Control-Allow-Headers"] = "Content-Type"
    response["Access-Control-Max-Age"] = str(PREFLIGHT_MAX_AGE)
    return response
