import json
from io import BytesIO
from urllib.parse import quote

from django.test import SimpleTestCase
from django.urls import reverse
from docx import Document

from .payloads import paper_body, settings_payload


class PaperViewTestCase(SimpleTestCase):
    def post(self, name, body, **extra):
        return self.client.post(
            reverse(name), data=json.dumps(body), content_type="application/json", **extra
        )


class PreviewPaperViewTests(PaperViewTestCase):
    def test_returns_html_with_metadata_headers(self):
        response = self.post("preview_paper", paper_body(mcqs=20, shorts=10, longs=5))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "text/html; charset=utf-8")
        self.assertEqual(response["X-Total-Marks"], str(20 * 1 + 10 * 2 + 5 * 5))
        self.assertEqual(response["X-Page-Estimate"], "6")
        self.assertContains(response, "Q1: Objective (MCQs)")

    def test_validation_failure(self):
        response = self.post("preview_paper", paper_body(mcqs=0, shorts=0, longs=0))

        self.assertEqual(response.status_code, 400)
        data = response.json()
        self.assertEqual(data["error"], "Validation failed")
        self.assertIn("No questions selected", data["errors"])
        self.assertIn("warnings", data)

    def test_get_not_allowed(self):
        response = self.client.get(reverse("preview_paper"))

        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.json(), {"error": "Method not allowed. Use POST."})

    def test_malformed_json_is_server_error(self):
        response = self.client.post(reverse("preview_paper"), data="{not json", content_type="application/json")

        self.assertEqual(response.status_code, 500)
        self.assertIn("error", response.json())

    def test_bad_shape_is_server_error(self):
        body = paper_body()
        body["mcqs"] = {"m1": {}}

        with self.assertLogs("core.views", level="ERROR"):
            response = self.post("preview_paper", body)

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "'mcqs' must be a list of questions"})

    def test_infinite_font_size_uses_default(self):
        response = self.post("preview_paper", paper_body(layout={"fontSize": float("inf")}))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "font-size: 12pt;")

    def test_answer_sheet_can_be_switched_off(self):
        body = paper_body(settings=settings_payload(includeAnswerSheet=False))

        response = self.post("preview_paper", body)

        self.assertNotContains(response, "bubble-row")

    def test_answer_sheet_on_by_default(self):
        response = self.post("preview_paper", paper_body(mcqs=3))

        self.assertContains(response, 'class="bubble-row"', count=3)


class GenerateDocxViewTests(PaperViewTestCase):
    def test_returns_docx_attachment(self):
        response = self.post(
            "generate_docx",
            paper_body(settings=settings_payload(classId="10", subject="Biology")),
            HTTP_ORIGIN="capacitor://localhost",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response["Content-Type"],
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        )
        self.assertEqual(response["Content-Disposition"], 'attachment; filename="10_Biology.docx"')
        self.assertEqual(response["Access-Control-Allow-Origin"], "capacitor://localhost")
        self.assertEqual(response["Vary"], "Origin")
        self.assertEqual(response["X-Total-Marks"], "13")

        doc = Document(BytesIO(response.content))
        self.assertIn("BIOLOGY - CLASS 10", [p.text for p in doc.paragraphs])

    def test_unknown_origin_gets_first_allowed_origin(self):
        response = self.post("generate_docx", paper_body(), HTTP_ORIGIN="https://evil.example")

        self.assertEqual(response["Access-Control-Allow-Origin"], "https://paperpress.vercel.app")

    def test_origin_prefix_is_not_enough(self):
        response = self.post("generate_docx", paper_body(), HTTP_ORIGIN="http://localhost:3000.evil.example")

        self.assertEqual(response["Access-Control-Allow-Origin"], "https://paperpress.vercel.app")

    def test_preflight(self):
        response = self.client.options(reverse("generate_docx"), HTTP_ORIGIN="http://localhost:3000")

        self.assertEqual(response.status_code, 204)
        self.assertEqual(response["Access-Control-Allow-Origin"], "http://localhost:3000")
        self.assertEqual(response["Access-Control-Allow-Methods"], "POST, OPTIONS")
        self.assertEqual(response["Access-Control-Allow-Headers"], "Content-Type")
        self.assertEqual(response["Access-Control-Max-Age"], "86400")

    def test_validation_runs_before_rendering(self):
        response = self.post("generate_docx", paper_body(settings=settings_payload(subject="")))

        self.assertEqual(response.status_code, 400)
        self.assertIn("Subject is required (subject)", response.json()["errors"])

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get(reverse("generate_docx")).status_code, 405)

    def test_control_character_in_question_still_renders(self):
        body = paper_body(mcqs=0, shorts=1, longs=0)
        body["shorts"][0]["questionText"] = "Define\x0bforce."

        self.assertEqual(self.post("preview_paper", body).status_code, 200)
        response = self.post("generate_docx", body)

        self.assertEqual(response.status_code, 200)
        doc = Document(BytesIO(response.content))
        self.assertIn("1. Define force. [2]", [p.text for p in doc.paragraphs])

    def test_non_ascii_subject_filename(self):
        response = self.post("generate_docx", paper_body(settings=settings_payload(subject="اردو")))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response["Content-Disposition"], "attachment; filename*=utf-8''" + quote("9_اردو.docx")
        )

    def test_quote_in_class_is_escaped(self):
        response = self.post("generate_docx", paper_body(settings=settings_payload(classId='9"A')))

        self.assertEqual(response["Content-Disposition"], r'attachment; filename="9\"A_Physics.docx"')

    def test_newline_in_class_is_dropped_from_filename(self):
        response = self.post("generate_docx", paper_body(settings=settings_payload(classId="9\nA")))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Disposition"], 'attachment; filename="9A_Physics.docx"')


class GeneratePdfViewTests(PaperViewTestCase):
    def test_returns_pdf_attachment(self):
        response = self.post("generate_pdf", paper_body())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertEqual(response["Content-Disposition"], 'attachment; filename="9_Physics.pdf"')
        self.assertTrue(response.content.startswith(b"%PDF"))

    def test_preflight(self):
        response = self.client.options(reverse("generate_pdf"))

        self.assertEqual(response.status_code, 204)
        self.assertEqual(response["Access-Control-Allow-Origin"], "https://paperpress.vercel.app")
