import json
import logging

from django.http import HttpResponse, JsonResponse
from django.utils.http import content_disposition_header
from django.views.decorators.csrf import csrf_exempt

from .cors import apply_cors, apply_preflight
from .export_paper import DOCX_CONTENT_TYPE, export_paper_to_docx
from .export_pdf import render_pdf
from .paper_types import PaperRequest
from .paper_utils import compose_request
from .paper_validation import validate_paper
from .preview_renderer import render_composed_html

logger = logging.getLogger(__name__)


def _method_not_allowed(request):
    response = JsonResponse({"error": "Method not allowed. Use POST."}, status=405)
    response["Allow"] = "POST, OPTIONS"
    return apply_cors(request, response)


def _parse_and_validate(request):
    """
    Returns ``(composed_paper, None)`` for a valid body, or
    ``(None, 400 response)`` when validation fails. Malformed JSON and
    badly shaped bodies raise and are reported as 500 by the caller.
    """
    body = json.loads(request.body.decode("utf-8"))
    paper_request = PaperRequest.from_payload(body)
    result = validate_paper(
        paper_request.settings,
        paper_request.mcqs,
        paper_request.shorts,
        paper_request.longs,
        paper_request.attempt_rules,
    )
    if not result.valid:
        logger.info("Paper rejected: %d error(s), first: %s", len(result.errors), result.errors[0])
        response = JsonResponse(
            {"error": "Validation failed", "errors": result.errors, "warnings": result.warnings},
            status=400,
        )
        return None, response
    for warning in result.warnings:
        logger.info("Paper warning: %s", warning)
    return compose_request(paper_request), None


def _paper_headers(response, composed):
    response["X-Total-Marks"] = str(composed.total_marks)
    response["X-Page-Estimate"] = str(composed.page_count)
    return response


def _attachment(content, content_type, filename):
    response = HttpResponse(content, content_type=content_type)
    response["Content-Disposition"] = content_disposition_header(True, filename)
    return response


def _render_paper(request, render):
    """Shared POST handling: parse, validate, compose and hand off to ``render``."""
    try:
        composed, error_response = _parse_and_validate(request)
        if error_response is not None:
            return apply_cors(request, error_response)
        response = render(composed)
        logger.info(
            "Rendered %s (%s marks, ~%s pages)",
            composed.filename_stem,
            composed.total_marks,
            composed.page_count,
        )
        return apply_cors(request, _paper_headers(response, composed))
    except Exception as exc:
        logger.exception("Paper rendering failed")
        return apply_cors(request, JsonResponse({"error": str(exc)}, status=500))


@csrf_exempt
def preview_paper(request):
    if request.method != "POST":
        return _method_not_allowed(request)

    def render(composed):
        return HttpResponse(render_composed_html(composed), content_type="text/html; charset=utf-8")

    return _render_paper(request, render)


@csrf_exempt
def generate_docx(request):
    if request.method == "OPTIONS":
        return apply_preflight(request, HttpResponse(status=204))
    if request.method != "POST":
        return _method_not_allowed(request)

    def render(composed):
        return _attachment(
            export_paper_to_docx(composed), DOCX_CONTENT_TYPE, f"{composed.filename_stem}.docx"
        )

    return _render_paper(request, render)


@csrf_exempt
def generate_pdf(request):
    if request.method == "OPTIONS":
        return apply_preflight(request, HttpResponse(status=204))
    if request.method != "POST":
        return _method_not_allowed(request)

    def render(composed):
        return _attachment(render_pdf(composed), "application/pdf", f"{composed.filename_stem}.pdf")

    return _render_paper(request, render)
