"""Unit tests for the HTML table and the plain-text report"""

import pytest

from feedback_batch.report import (
    generate_report,
    render_table_html,
    write_report,
    write_table_html,
)

pytestmark = pytest.mark.unit

BRAND_RECORDS = [
    {
        "clothing_id": "1077",
        "sentiment": "Positive",
        "key_issues": "fit, fabric",
        "summary": "Loves the dress",
    },
    {
        "clothing_id": "1049",
        "sentiment": "Negative",
        "key_issues": "zipper",
        "summary": "",
    },
]


class TestGenerateReport:
    def test_layout(self):
        report = generate_report(BRAND_RECORDS)

        assert report == (
            "BRAND INTELLIGENCE REPORT\n"
            "Generated by feedback-batch\n"
            "========================================\n"
            "\n"
            "PRODUCT #1\n"
            "ID:        1077\n"
            "Sentiment: Positive\n"
            "Issues:    fit, fabric\n"
            "Summary:   Loves the dress\n"
            "----------------------------------------\n"
            "PRODUCT #2\n"
            "ID:        1049\n"
            "Sentiment: Negative\n"
            "Issues:    zipper\n"
            "Summary:\n"
            "----------------------------------------\n"
        )

    def test_generic_fields_are_title_cased(self):
        report = generate_report(
            [{"type": "Fit", "status": "Open"}], title="T", subtitle="S", item_label="ITEM"
        )

        assert "ITEM #1\nType:   Fit\nStatus: Open\n" in report

    def test_list_values_joined(self):
        report = generate_report([{"key_issues": ["fit", "zip"]}])

        assert "Issues: fit, zip" in report

    def test_empty_records(self):
        report = generate_report([])

        assert report.startswith("BRAND INTELLIGENCE REPORT\n")
        assert "#1" not in report

    def test_write_report(self, tmp_path):
        path = write_report(BRAND_RECORDS, tmp_path / "report.txt")

        assert path.read_text(encoding="utf-8") == generate_report(BRAND_RECORDS)


class TestRenderTableHtml:
    def test_columns_in_first_seen_order(self):
        html = render_table_html([{"b": "1", "a": "2"}, {"c": "3"}])

        assert html.index("<th>B</th>") < html.index("<th>A</th>") < html.index("<th>C</th>")

    def test_sentiment_classes(self):
        records = [
            {"sentiment": "Positive"},
            {"sentiment": "very NEGATIVE"},
            {"sentiment": "Mixed"},
            {"sentiment": "Unknown"},
        ]

        html = render_table_html(records)

        for css in ("positive", "negative", "mixed", "neutral"):
            assert f'class="sentiment-{css}"' in html

    def test_label_column_gets_sentiment_class(self):
        html = render_table_html([{"label": "POSITIVE", "score": "90.0%"}])

        assert '<td class="sentiment-positive">POSITIVE</td>' in html
        assert "<td>90.0%</td>" in html

    def test_values_are_escaped(self):
        html = render_table_html([{"summary": "<script>alert(1)</script> & more"}])

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "&amp; more" in html

    def test_explicit_columns_and_missing_values(self):
        html = render_table_html(BRAND_RECORDS, columns=["summary", "missing"])

        assert "<th>Summary</th>" in html
        assert "<th>Missing</th>" in html
        assert "Clothing" not in html
        assert "<td></td>" in html

    def test_fragment_vs_document(self):
        fragment = render_table_html(BRAND_RECORDS)
        document = render_table_html(BRAND_RECORDS, document=True, title="Run 1")

        assert "<html" not in fragment
        assert fragment.lstrip().startswith('<table class="feedback-results">')
        assert "<title>Run 1</title>" in document

    def test_write_table_html(self, tmp_path):
        path = write_table_html(BRAND_RECORDS, tmp_path / "table.html")

        assert "<!DOCTYPE html>" in path.read_text(encoding="utf-8")
