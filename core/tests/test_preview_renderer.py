from django.test import SimpleTestCase
from lxml import html as lxml_html

from core.paper_types import AttemptRule, AttemptRules, MCQQuestion, ShortQuestion
from core.paper_utils import compose_paper
from core.preview_renderer import KATEX_JS_URL, render_composed_html, render_preview_html

from .payloads import PNG_1X1, make_longs, make_mcqs, make_settings, make_shorts


def by_class(doc, css_class):
    return doc.xpath(f"//*[contains(concat(' ', normalize-space(@class), ' '), ' {css_class} ')]")


class PreviewRendererTests(SimpleTestCase):
    def render(self, mcqs=None, shorts=None, longs=None, layout=None, settings=None, **kwargs):
        return render_preview_html(
            settings or make_settings(),
            layout,
            make_mcqs(2) if mcqs is None else mcqs,
            make_shorts(3) if shorts is None else shorts,
            make_longs(1) if longs is None else longs,
            **kwargs,
        )

    def test_output_is_deterministic(self):
        self.assertEqual(self.render(), self.render())

    def test_header_and_total(self):
        doc = lxml_html.fromstring(self.render())

        self.assertEqual(by_class(doc, "h-school")[0].text_content(), "GOVT HIGH SCHOOL")
        self.assertEqual(by_class(doc, "h-subject")[0].text_content(), "PHYSICS - CLASS 9")
        # 2 MCQs x 1 + 3 shorts x 2 + 1 long x 5
        self.assertEqual(by_class(doc, "total-marks")[0].text_content(), "13")
        self.assertEqual(len(by_class(doc, "info-table")), 1)

    def test_sections_in_order_with_marks_text(self):
        rules = AttemptRules(short=AttemptRule(attempt=2, total=3))
        doc = lxml_html.fromstring(self.render(attempt_rules=rules))

        self.assertEqual(doc.xpath("//section/@data-section"), ["mcq", "short", "long"])
        self.assertEqual(
            [el.text_content() for el in by_class(doc, "sec-title")],
            ["Q1: Objective (MCQs)", "Q2: Short Questions", "Q3: Long Questions"],
        )
        self.assertEqual(
            by_class(doc, "sec-marks")[1].text_content(), "Attempt any 2 of 3 (2 × 2 = 4 Marks)"
        )
        self.assertEqual(
            doc.xpath("//div[@data-question-id]/@data-question-id"),
            ["m1", "m2", "s1", "s2", "s3", "l1"],
        )

    def test_empty_section_is_not_rendered(self):
        doc = lxml_html.fromstring(self.render(mcqs=[], longs=[]))

        self.assertEqual(doc.xpath("//section/@data-section"), ["short"])
        self.assertEqual(by_class(doc, "sec-title")[0].text_content(), "Q1: Short Questions")

    def test_grid_style(self):
        doc = lxml_html.fromstring(self.render(layout={"mcqStyle": "grid"}))

        grids = by_class(doc, "mcq-grid")
        self.assertEqual(len(grids), 2)
        self.assertEqual(len(grids[0].xpath(".//tr")), 2)
        self.assertEqual(grids[0].xpath(".//td")[1].text_content().strip(), "(B) Joule")

    def test_letters_only_style(self):
        html = self.render(layout={"mcqStyle": "letters_only"})
        doc = lxml_html.fromstring(html)

        self.assertEqual(len(by_class(doc, "letters-only")), 2)
        self.assertNotIn("Newton", html)

    def test_inline_style(self):
        doc = lxml_html.fromstring(self.render())

        self.assertEqual(len(by_class(doc, "inline")), 2)
        self.assertIn("(A) Newton", by_class(doc, "inline")[0].text_content())

    def test_bubble_sheet_rows(self):
        doc = lxml_html.fromstring(self.render(mcqs=make_mcqs(5), show_bubbles=True))

        rows = by_class(doc, "bubble-row")
        self.assertEqual(len(rows), 5)
        self.assertEqual(doc.xpath("//tr[@data-question-id]/@data-question-id"), ["m1", "m2", "m3", "m4", "m5"])
        self.assertEqual(len(rows[0].xpath(".//span")), 4)

    def test_no_bubble_sheet_by_default(self):
        doc = lxml_html.fromstring(self.render())
        self.assertEqual(by_class(doc, "bubble-sheet"), [])

    def test_short_and_long_items_show_marks_and_answer_lines(self):
        doc = lxml_html.fromstring(self.render(mcqs=[], shorts=make_shorts(1), longs=make_longs(1)))

        self.assertEqual([el.text_content() for el in by_class(doc, "q-marks")], ["[2]", "[5]"])
        self.assertEqual(len(by_class(doc, "answer-line")), 2 + 6)

    def test_answer_lines_can_be_hidden(self):
        doc = lxml_html.fromstring(self.render(layout={"showAnswerLines": False}))
        self.assertEqual(by_class(doc, "answer-line"), [])

    def test_font_size_and_spacing(self):
        html = self.render(layout={"fontSize": 14, "questionSpacing": "spacious"})

        self.assertIn(".q-text, .mcq-option { font-size: 14pt; }", html)
        self.assertIn('style="margin-bottom: 8pt;"', html)

    def test_logo_size_and_visibility(self):
        settings = make_settings(instituteLogo=PNG_1X1)
        doc = lxml_html.fromstring(self.render(settings=settings, layout={"logoSize": "large"}))

        logo = by_class(doc, "logo")[0]
        self.assertEqual(logo.get("width"), "60")
        self.assertTrue(logo.get("src").startswith("data:image/png;base64,"))

        hidden = make_settings(instituteLogo=PNG_1X1, showLogo=False)
        doc = lxml_html.fromstring(self.render(settings=hidden))
        self.assertEqual(by_class(doc, "logo"), [])

    def test_unsafe_logo_url_is_dropped(self):
        settings = make_settings(instituteLogo="javascript:alert(1)")
        doc = lxml_html.fromstring(self.render(settings=settings))

        self.assertEqual(by_class(doc, "logo"), [])

    def test_watermark(self):
        self.assertIn("PaperPress App - paperpressapp@gmail.com", self.render())
        self.assertNotIn("paperpressapp@gmail.com", self.render(layout={"showWatermark": False}))

    def test_question_text_is_escaped(self):
        shorts = [ShortQuestion(id="x", question_text="Is 2 < 3 <b>really</b>?", marks=2)]
        html = self.render(mcqs=[], shorts=shorts, longs=[])

        self.assertIn("Is 2 &lt; 3 &lt;b&gt;really&lt;/b&gt;?", html)

    def test_custom_css_cannot_close_style_block(self):
        html = self.render(layout={"customCSS": ".q-text { color: red; } </style><script>x()</script>"})

        self.assertIn(".q-text { color: red; }", html)
        self.assertNotIn("</style><script>", html)

    def test_math_is_wrapped_for_katex(self):
        mcq = MCQQuestion(
            id="m", question_text="Solve $x^2 = 4$", marks=1,
            options=("$2$", "$-2$", "both", "none"), correct_option=2,
        )
        html = self.render(mcqs=[mcq], shorts=[], longs=[])
        doc = lxml_html.fromstring(html)

        spans = doc.xpath("//span[@data-katex]")
        self.assertEqual(spans[0].get("data-katex"), "x^2 = 4")
        self.assertIn("math-inline", spans[0].get("class"))
        self.assertIn(KATEX_JS_URL, html)

    def test_katex_only_when_needed(self):
        self.assertNotIn(KATEX_JS_URL, self.render())

    def test_print_rendering_skips_katex(self):
        shorts = [ShortQuestion(id="x", question_text="Evaluate $$\\int x\\,dx$$", marks=2)]
        composed = compose_paper(make_settings(), [], shorts, [])

        self.assertNotIn(KATEX_JS_URL, render_composed_html(composed, for_print=True))
