import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from . import data_handler
from .aggregator import Aggregates, aggregate
from .decision import build_working_records
from .errors import RestockError
from .parsers import Table
from .schemas import SourceType, WorkingRecord

logger = logging.getLogger(__name__)

VALIDATED = "Validated"


class Stage(str, Enum):
    IDLE = "Idle"
    SOURCES_LOADED = "Sources Loaded"
    AGGREGATED = "Aggregated"
    DECIDED = "Decided"
    RENDERED = "Rendered"


@dataclass(frozen=True)
class PipelineState:
    """
    Everything one run knows: the validated source tables, a status line per
    source and the current working records. Never mutated; every transition
    returns a new state.
    """

    sources: dict[SourceType, Table] = field(default_factory=dict)
    statuses: dict[SourceType, str] = field(default_factory=dict)
    aggregates: Optional[Aggregates] = None
    records: tuple[WorkingRecord, ...] = ()
    stage: Stage = Stage.IDLE

    def _with_sources(self, sources: dict[SourceType, Table], statuses: dict[SourceType, str]) -> "PipelineState":
        # Records from the previous decision stay visible until a new run replaces them.
        stage = Stage.SOURCES_LOADED if all(s in sources for s in SourceType) else Stage.IDLE
        return replace(self, sources=sources, statuses=statuses, aggregates=None, stage=stage)

    def with_source(self, source: SourceType, table: Table) -> "PipelineState":
        return self._with_sources(
            {**self.sources, source: table}, {**self.statuses, source: VALIDATED}
        )

    def without_source(self, source: SourceType, reason: str) -> "PipelineState":
        sources = {s: t for s, t in self.sources.items() if s is not source}
        return self._with_sources(sources, {**self.statuses, source: reason})

    def with_aggregates(self, aggregates: Aggregates) -> "PipelineState":
        return replace(self, aggregates=aggregates, stage=Stage.AGGREGATED)

    def with_records(self, records: list[WorkingRecord]) -> "PipelineState":
        return replace(self, records=tuple(records), stage=Stage.DECIDED)

    def rendered(self) -> "PipelineState":
        return replace(self, stage=Stage.RENDERED)


def is_ready(state: PipelineState) -> bool:
    """True when all four sources are present and validated."""
    return all(source in state.sources for source in SourceType)


def missing_sources(state: PipelineState) -> list[SourceType]:
    return [source for source in SourceType if source not in state.sources]


def run_decision(state: PipelineState) -> PipelineState:
    """
    Aggregates the sources and computes a fresh record set.
    The returned state carries the new records; the input state is untouched.
    """
    if not is_ready(state):
        labels = ", ".join(s.label for s in missing_sources(state))
        raise RestockError(f"Pipeline not ready. Missing sources: {labels}")

    aggregates = aggregate(
        state.sources[SourceType.SALE],
        state.sources[SourceType.FC],
        state.sources[SourceType.CENTRAL],
        state.sources[SourceType.MAPPING],
    )
    aggregated = state.with_aggregates(aggregates)
    return aggregated.with_records(build_working_records(aggregates))


class DataPipeline(ABC):
    """
    Abstract base class for report pipelines.
    Follows an Extract -> Transform -> Load (ETL) pattern over a PipelineState.
    """

    def __init__(self, report_type: str, test_mode: bool = False):
        self.report_type = report_type
        self.test_mode = test_mode
        self.state = PipelineState()

    def run(self) -> list[WorkingRecord] | None:
        """
        Orchestrates the pipeline execution.
        Returns the working records, or None when the run could not complete.
        """
        logger.info(f"🚀 STEP: {self.report_type.upper()} REPORT")
        logger.info("-" * 30)

        # --- 1. EXTRACT ---
        self.extract()
        if not is_ready(self.state):
            labels = ", ".join(s.label for s in missing_sources(self.state))
            logger.warning(f"⚠️ Not all sources are validated ({labels}). Skipping decisions.")
            self.log_status_summary()
            return None

        # --- 2. TRANSFORM ---
        records = self.transform()
        if records is None:
            logger.error(f"❌ Transformation failed for {self.report_type}.")
            return None

        # --- 3. LOAD ---
        self.load(records)

        logger.info(f"✅ {self.report_type.capitalize()} Pipeline Finished.\n")
        logger.info("=" * 60)
        return records

    @abstractmethod
    def extract(self) -> PipelineState:
        """
        Loads and validates every source into self.state.
        """
        pass

    @abstractmethod
    def transform(self) -> list[WorkingRecord] | None:
        """
        Turns the loaded sources into validated working records.
        """
        pass

    def log_status_summary(self):
        logger.info("\n--- Final Status Summary ---")
        for source in SourceType:
            logger.info(f"{source.label}: {self.state.statuses.get(source, 'Not loaded')}")

    def load(self, records: list[WorkingRecord]):
        """
        Saves the report to disk and posts it to the webhook.
        """
        # 1. Print Status Summary
        self.log_status_summary()

        # 2. Save Outputs (CSV/JSON)
        if records:
            data_handler.save_outputs(records)
        else:
            logger.warning("No data to save to disk.")

        # 3. Post to Webhook
        if not self.test_mode:
            data_handler.post_to_webhook(
                records=records,
                status_summary=self.status_summary(),
                report_type=self.report_type,
            )
        else:
            logger.info("🧪 Test Mode: Skipping webhook post.")

        self.state = self.state.rendered()

    def status_summary(self) -> dict[str, str | None]:
        summary: dict[str, str | None] = {
            source.label: self.state.statuses.get(source) for source in SourceType
        }
        latest = self.state.aggregates.latest_snapshot if self.state.aggregates else None
        summary["FC_SNAPSHOT_DATE"] = latest.isoformat() if latest else None
        return summary
