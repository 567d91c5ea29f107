"""Behavioral tests for BatchProcessor.

The endpoint is replaced by an httpx.MockTransport, so these tests cover the
whole read -> call -> normalize chain without network access.
"""

import pytest

from feedback_batch.batch_processor import BatchProcessor, BatchResult, analyze_file
from feedback_batch.client import AnalysisClient
from feedback_batch.config import resolve_config
from feedback_batch.exceptions import APIError, ConfigurationError
from feedback_batch.telemetry import SimpleReporter, TelemetryContext

pytestmark = pytest.mark.unit

ROWS = ["id,review", "1,Too small", "2,Lovely", "3,Seams split", "4,Great", "5,Meh"]


def make_processor(endpoint_url, transport, **overrides):
    config = resolve_config({"endpoint_url": endpoint_url, **overrides}).to_frozen()
    client = AnalysisClient.from_config(config, transport=transport)
    return BatchProcessor(config, client=client)


class TestPayloads:
    def test_batch_mode_chunks_rows_under_header(self, endpoint_url, mock_endpoint):
        transport, _ = mock_endpoint({})
        processor = make_processor(endpoint_url, transport, batch_size=2)

        header, groups = processor.build_payloads(ROWS)

        assert header == "id,review"
        assert groups == [ROWS[1:3], ROWS[3:5], ROWS[5:]]

    def test_max_rows_limits_data_rows(self, endpoint_url, mock_endpoint):
        transport, _ = mock_endpoint({})
        processor = make_processor(endpoint_url, transport, max_rows=3)

        _, groups = processor.build_payloads(ROWS)

        assert groups == [ROWS[1:4]]

    def test_row_mode_one_row_per_call(self, endpoint_url, mock_endpoint):
        transport, _ = mock_endpoint({})
        processor = make_processor(endpoint_url, transport, mode="row", max_rows=2)

        _, groups = processor.build_payloads(ROWS)

        assert groups == [["1,Too small"], ["2,Lovely"]]

    def test_requires_a_data_row(self, endpoint_url, mock_endpoint):
        transport, _ = mock_endpoint({})
        processor = make_processor(endpoint_url, transport)

        with pytest.raises(ValueError, match="data row"):
            processor.build_payloads(["id,review"])

    def test_config_and_overrides_are_exclusive(self, endpoint_url):
        config = resolve_config({"endpoint_url": endpoint_url}).to_frozen()

        with pytest.raises(ValueError, match="Cannot specify both"):
            BatchProcessor(config, mode="row")


class TestProcessRows:
    @pytest.mark.asyncio
    async def test_sends_header_with_each_batch(self, endpoint_url, mock_endpoint):
        transport, received = mock_endpoint({"output": "Type: Fit | Status: Open"})
        processor = make_processor(endpoint_url, transport, batch_size=3)

        result = await processor.process_rows(ROWS)

        assert received == [
            {"text": "id,review\n1,Too small\n2,Lovely\n3,Seams split"},
            {"text": "id,review\n4,Great\n5,Meh"},
        ]
        assert isinstance(result, BatchResult)
        assert [item.index for item in result.items] == [0, 1]
        assert all(item.ok for item in result.items)
        assert result.records[0]["type"] == "Fit"

    @pytest.mark.asyncio
    async def test_row_mode_sends_bare_rows(self, endpoint_url, mock_endpoint):
        transport, received = mock_endpoint([{"label": "LABEL_1", "score": 0.9}])
        processor = make_processor(
            endpoint_url, transport, mode="row", max_rows=2, field_profile="sentiment"
        )

        result = await processor.process_rows(ROWS)

        assert received == [{"text": "1,Too small"}, {"text": "2,Lovely"}]
        assert result.records == [
            {"label": "POSITIVE", "score": "90.0%"},
            {"label": "POSITIVE", "score": "90.0%"},
        ]

    @pytest.mark.asyncio
    async def test_collection_answers_are_flattened_in_order(
        self, endpoint_url, mock_endpoint
    ):
        answer = {"analysis": [{"clothing_id": "1"}, {"clothing_id": "2"}]}
        transport, _ = mock_endpoint(answer)
        processor = make_processor(
            endpoint_url, transport, batch_size=2, max_rows=4, field_profile="brand"
        )

        result = await processor.process_rows(ROWS)

        assert [r["clothing_id"] for r in result.records] == ["1", "2", "1", "2"]
        assert result.summary() == {
            "mode": "batch",
            "calls": 2,
            "rows": 4,
            "records": 4,
            "failed_calls": 0,
            "fallback_calls": 0,
        }

    @pytest.mark.asyncio
    async def test_failed_call_yields_diagnostic_item_and_continues(
        self, endpoint_url, mock_endpoint
    ):
        """Should record the failure and still process later batches"""
        transport, received = mock_endpoint(503, {"output": "Type: Fit"})
        processor = make_processor(endpoint_url, transport, batch_size=2)

        result = await processor.process_rows(ROWS)

        assert len(received) == 3
        first, *rest = result.items
        assert first.error is not None and "503" in first.error
        assert first.records == [
            {
                "type": "General",
                "status": "Error",
                "aspect": "General",
                "action": "none",
            }
        ]
        assert first.rows == ROWS[1:3]
        assert all(item.ok for item in rest)
        assert result.failed_items == [first]

    @pytest.mark.asyncio
    async def test_stop_on_error(self, endpoint_url, mock_endpoint):
        transport, received = mock_endpoint(500, {"output": "Type: Fit"})
        processor = make_processor(
            endpoint_url, transport, batch_size=2, continue_on_error=False
        )

        with pytest.raises(APIError):
            await processor.process_rows(ROWS)

        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_unparseable_answer_is_fallback_not_error(
        self, endpoint_url, mock_endpoint
    ):
        transport, _ = mock_endpoint({"output": "I could not analyze this."})
        processor = make_processor(endpoint_url, transport, max_rows=1)

        result = await processor.process_rows(ROWS)

        (item,) = result.items
        assert item.error is None
        assert item.method == "fallback"
        assert not item.ok
        assert item.records[0]["status"] == "Error"

    @pytest.mark.asyncio
    async def test_progress_callback(self, endpoint_url, mock_endpoint):
        transport, _ = mock_endpoint({"output": "Type: A"})
        config = resolve_config({"endpoint_url": endpoint_url, "batch_size": 2}).to_frozen()
        calls: list[tuple[int, int]] = []
        processor = BatchProcessor(
            config,
            client=AnalysisClient.from_config(config, transport=transport),
            on_progress=lambda done, total: calls.append((done, total)),
        )

        await processor.process_rows(ROWS)

        assert calls == [(1, 3), (2, 3), (3, 3)]

    @pytest.mark.asyncio
    async def test_results_are_not_shared_between_runs(
        self, endpoint_url, mock_endpoint
    ):
        transport, _ = mock_endpoint({"output": "Type: A"})
        processor = make_processor(endpoint_url, transport, max_rows=1)

        first = await processor.process_rows(ROWS)
        second = await processor.process_rows(ROWS)

        assert first is not second
        assert len(first.items) == len(second.items) == 1

    @pytest.mark.asyncio
    async def test_telemetry_scopes(self, endpoint_url, mock_endpoint):
        transport, _ = mock_endpoint({"output": "Type: A"})
        config = resolve_config({"endpoint_url": endpoint_url, "max_rows": 2}).to_frozen()
        reporter = SimpleReporter()
        processor = BatchProcessor(
            config,
            client=AnalysisClient.from_config(config, transport=transport),
            telemetry_context=TelemetryContext(reporter, enabled=True),
        )

        await processor.process_rows(ROWS)

        assert "batch.total_processing" in reporter.timings
        assert "batch.total_processing.batch.call" in reporter.timings
        assert any(scope.endswith("api_calls_successful") for scope in reporter.metrics)


class TestFiles:
    @pytest.mark.asyncio
    async def test_process_file(self, tmp_path, endpoint_url, mock_endpoint):
        path = tmp_path / "reviews.csv"
        path.write_text("\n".join(ROWS) + "\n", encoding="utf-8")
        transport, received = mock_endpoint({"output": "Type: A"})
        processor = make_processor(endpoint_url, transport)

        result = await processor.process_file(path)

        assert received == [{"text": "\n".join(ROWS)}]
        assert result.header == "id,review"
        assert result.row_count == 5

    def test_analyze_file_one_shot(self, tmp_path, endpoint_url, mock_endpoint, monkeypatch):
        path = tmp_path / "reviews.csv"
        path.write_text("\n".join(ROWS), encoding="utf-8")
        transport, received = mock_endpoint({"output": "Type: A"})
        real_from_config = AnalysisClient.from_config.__func__

        monkeypatch.setattr(
            AnalysisClient,
            "from_config",
            classmethod(lambda cls, config: real_from_config(cls, config, transport)),
        )

        result = analyze_file(path, endpoint_url=endpoint_url, mode="row", max_rows=2)

        assert len(received) == 2
        assert [r["type"] for r in result.records] == ["A", "A"]

    def test_analyze_file_without_endpoint(self, tmp_path):
        path = tmp_path / "reviews.csv"
        path.write_text("\n".join(ROWS), encoding="utf-8")

        with pytest.raises(ConfigurationError):
            analyze_file(path)
