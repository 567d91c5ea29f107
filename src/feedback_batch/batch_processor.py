"""
Batch processor for feedback files
"""  # noqa: D200, D212, D415

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any

from .client import AnalysisClient
from .config import FrozenConfig, resolve_config
from .exceptions import APIError, NetworkError
from .files import read_rows
from .normalize import NormalizationDiagnostics, NormalizedRecord, ResponseNormalizer
from .telemetry import TelemetryContext, TelemetryContextProtocol

log = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class BatchItem:
    """Outcome of one remote call"""

    index: int
    rows: list[str]
    records: list[NormalizedRecord]
    method: str
    error: str | None = None
    diagnostics: NormalizationDiagnostics | None = None

    @property
    def ok(self) -> bool:
        """True when the call succeeded and a strategy parsed the response"""
        return self.error is None and self.method != "fallback"


@dataclass
class BatchResult:
    """Ordered outcome of a whole run"""

    header: str
    mode: str
    items: list[BatchItem] = field(default_factory=list)

    @property
    def records(self) -> list[NormalizedRecord]:
        """All records of all items, in call order"""
        return [record for item in self.items for record in item.records]

    @property
    def failed_items(self) -> list[BatchItem]:
        return [item for item in self.items if item.error is not None]

    @property
    def row_count(self) -> int:
        return sum(len(item.rows) for item in self.items)

    def summary(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "calls": len(self.items),
            "rows": self.row_count,
            "records": len(self.records),
            "failed_calls": len(self.failed_items),
            "fallback_calls": sum(1 for i in self.items if i.method == "fallback"),
        }


class BatchProcessor:
    """Sends feedback rows to the analysis endpoint, one awaited call at a time."""

    def __init__(
        self,
        config: FrozenConfig | None = None,
        *,
        client: AnalysisClient | None = None,
        normalizer: ResponseNormalizer | None = None,
        telemetry_context: TelemetryContextProtocol | None = None,
        on_progress: ProgressCallback | None = None,
        **overrides: Any,
    ):
        """
        Creates a processor from explicit or ambient configuration.

        Examples:
            processor = BatchProcessor()  # Zero config (env vars, pyproject.toml)
            processor = BatchProcessor(mode="row", max_rows=10)  # Override a setting
            processor = BatchProcessor(config, client=my_client)  # Advanced
        """  # noqa: D212
        if config is not None and overrides:
            raise ValueError(
                "Cannot specify both `config` and configuration keyword arguments."
            )

        self.config = config or resolve_config(overrides).to_frozen()
        self.tele = telemetry_context or TelemetryContext()
        self.normalizer = normalizer or ResponseNormalizer(self.config.field_profile)
        self.on_progress = on_progress
        self._client = client

    def build_payloads(self, rows: list[str]) -> tuple[str, list[list[str]]]:
        """Split rows into the header and the groups of data rows sent per call."""
        if len(rows) < 2:
            raise ValueError("At least a header and one data row are required")

        header, data = rows[0], rows[1:]
        if self.config.max_rows is not None:
            data = data[: self.config.max_rows]

        if self.config.mode == "row":
            return header, [[row] for row in data]

        size = self.config.batch_size
        return header, [data[i : i + size] for i in range(0, len(data), size)]

    def _payload_text(self, header: str, group: list[str]) -> str:
        if self.config.mode == "row":
            return group[0]
        return header + "\n" + "\n".join(group)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AnalysisClient]:
        if self._client is not None:
            # Injected clients are owned by the caller
            yield self._client
            return
        async with AnalysisClient.from_config(self.config) as client:
            yield client

    async def process_rows(self, rows: list[str]) -> BatchResult:
        """Analyze already-read rows (header first) and collect the results."""
        header, groups = self.build_payloads(rows)
        result = BatchResult(header=header, mode=self.config.mode)
        total = len(groups)
        log.info(
            "Processing %d data rows in %d call(s), mode=%s.",
            sum(len(g) for g in groups),
            total,
            self.config.mode,
        )

        with self.tele("batch.total_processing", calls=total, mode=self.config.mode):
            async with self._session() as client:
                for index, group in enumerate(groups):
                    with self.tele("batch.call", index=index):
                        item = await self._process_group(client, index, header, group)
                    result.items.append(item)
                    if self.on_progress is not None:
                        self.on_progress(index + 1, total)

        if result.failed_items:
            log.warning(
                "%d of %d call(s) failed; diagnostic records were recorded.",
                len(result.failed_items),
                total,
            )
        return result

    async def _process_group(
        self, client: AnalysisClient, index: int, header: str, group: list[str]
    ) -> BatchItem:
        try:
            raw = await client.analyze(self._payload_text(header, group))
            self.tele.count("api_calls_successful")
        except (APIError, NetworkError) as e:
            self.tele.count("api_calls_failed")
            if not self.config.continue_on_error:
                raise
            log.warning("Call %d failed, continuing: %s", index + 1, e)
            return BatchItem(
                index=index,
                rows=group,
                records=[self.normalizer.diagnostic_record()],
                method="fallback",
                error=str(e),
            )

        with self.tele("batch.normalize"):
            normalized = self.normalizer.normalize_detailed(raw)
        if normalized.is_fallback:
            self.tele.count("normalization_fallbacks")
        return BatchItem(
            index=index,
            rows=group,
            records=normalized.records,
            method=normalized.method,
            diagnostics=normalized.diagnostics,
        )

    async def process_file(self, file_path: str | Path) -> BatchResult:
        """Read a feedback file and analyze its rows."""
        with self.tele("batch.read_file"):
            rows = read_rows(file_path, json_row_limit=self.config.json_row_limit)
        return await self.process_rows(rows)


def analyze_file(file_path: str | Path, **overrides: Any) -> BatchResult:
    """One-shot synchronous helper: resolve config, read, analyze.

    Example:
        result = analyze_file("reviews.csv", endpoint_url="https://worker.example/")
    """
    processor = BatchProcessor(**overrides)
    return asyncio.run(processor.process_file(file_path))
