"""Replays recorded endpoint answers through the client and the normalizer."""

import pytest

from feedback_batch.batch_processor import BatchProcessor
from feedback_batch.client import AnalysisClient
from feedback_batch.config import resolve_config
from feedback_batch.normalize import normalize

pytestmark = pytest.mark.integration

SAMPLES = [
    "pipe_text",
    "output_envelope_fenced",
    "response_envelope_prefixed",
    "chat_completion",
    "huggingface_classifier",
    "analysis_array",
    "error_envelope",
]


@pytest.mark.parametrize("name", SAMPLES)
def test_sample_normalizes_to_expected(name, sample_responses):
    sample = sample_responses[name]

    assert normalize(sample["raw"], profile=sample.get("profile")) == sample["expected"]


def test_every_sample_is_covered(sample_responses):
    assert set(sample_responses) == set(SAMPLES)


@pytest.mark.asyncio
@pytest.mark.parametrize("name", SAMPLES)
async def test_sample_through_the_endpoint(
    name, sample_responses, mock_endpoint, endpoint_url
):
    sample = sample_responses[name]
    raw = sample["raw"]
    transport, _ = mock_endpoint(raw, as_text=isinstance(raw, str))
    config = resolve_config(
        {"endpoint_url": endpoint_url, "field_profile": sample.get("profile") or "review"}
    ).to_frozen()
    processor = BatchProcessor(
        config, client=AnalysisClient.from_config(config, transport=transport)
    )

    result = await processor.process_rows(["id,review", "1,Sample"])

    expected = sample["expected"]
    assert result.records == (expected if isinstance(expected, list) else [expected])
    assert result.failed_items == []
