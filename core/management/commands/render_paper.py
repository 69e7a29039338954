import json
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from core.export_paper import export_paper_to_docx
from core.export_pdf import render_pdf
from core.paper_types import PaperPayloadError, PaperRequest
from core.paper_utils import compose_request
from core.paper_validation import validate_paper
from core.preview_renderer import render_composed_html

FORMATS = ("html", "docx", "pdf")


class Command(BaseCommand):
    help = "Validate a paper request JSON file and render it to HTML, DOCX or PDF"

    def add_arguments(self, parser):
        parser.add_argument("payload", help="Path to a JSON body as sent to /preview-paper")
        parser.add_argument("--format", choices=FORMATS, default="html", dest="fmt")
        parser.add_argument(
            "--output",
            help="Where to write the artifact (default: <classId>_<subject>.<format>)",
        )

    def handle(self, *args, **options):
        path = Path(options["payload"])
        try:
            body = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise CommandError(f"Payload file {path} not found")
        except json.JSONDecodeError as exc:
            raise CommandError(f"{path} is not valid JSON: {exc}")

        try:
            paper_request = PaperRequest.from_payload(body)
        except PaperPayloadError as exc:
            raise CommandError(str(exc))

        result = validate_paper(
            paper_request.settings,
            paper_request.mcqs,
            paper_request.shorts,
            paper_request.longs,
            paper_request.attempt_rules,
        )
        for warning in result.warnings:
            self.stdout.write(self.style.WARNING(f"Warning: {warning}"))
        if not result.valid:
            raise CommandError("Validation failed:\n  " + "\n  ".join(result.errors))

        composed = compose_request(paper_request)
        fmt = options["fmt"]
        if fmt == "html":
            content = render_composed_html(composed).encode("utf-8")
        elif fmt == "docx":
            content = export_paper_to_docx(composed)
        else:
            content = render_pdf(composed)

        output = Path(options["output"] or f"{composed.filename_stem}.{fmt}")
        output.write_bytes(content)
        self.stdout.write(
            self.style.SUCCESS(
                f"Wrote {output} ({composed.total_marks} marks, ~{composed.page_count} pages)"
            )
        )
