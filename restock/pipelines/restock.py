import asyncio
import logging
import pydantic

from restock.errors import RestockError
from restock.loaders import TextLoader
from restock.logger import DiagnosticLog
from restock.parsers import load_table
from restock.pipeline import DataPipeline, PipelineState, is_ready, missing_sources, run_decision
from restock.schemas import SourceType, WorkingRecord

logger = logging.getLogger(__name__)


class RestockPipeline(DataPipeline):
    """
    Loads the sale, FC, central and mapping sources concurrently, then decides
    what to send to or recall from every fulfillment center.
    Every event of `run` and `reload` is also kept in `diagnostics`.
    """

    def __init__(
        self,
        loaders: dict[SourceType, TextLoader],
        test_mode: bool = False,
        sale_schema: str | None = None,
    ):
        super().__init__("restock", test_mode=test_mode)
        self.loaders = dict(loaders)
        self.sale_schema = sale_schema
        self.diagnostics = DiagnosticLog()

    def run(self) -> list[WorkingRecord] | None:
        with self.diagnostics:
            return super().run()

    async def load_source(self, source: SourceType, loader: TextLoader) -> None:
        """
        Reads, parses and validates one source into its slot.
        Any failure clears the slot and is logged; nothing is raised.
        """
        try:
            text = await asyncio.to_thread(loader)
            table = load_table(text, source, self.sale_schema)
        except RestockError as e:
            self.state = self.state.without_source(source, str(e))
            if source is SourceType.MAPPING:
                logger.error(f"SKU Mapping error: {e}")
            else:
                logger.error(f"{source.label}: {e}")
        else:
            self.state = self.state.with_source(source, table)
            if source is SourceType.MAPPING:
                logger.info("SKU Mapping loaded & validated")
            else:
                logger.info(f"{source.label} file validated ({len(table)} rows)")

        self._log_readiness()

    async def load_all(self) -> PipelineState:
        """Starts every load at once and waits until all of them have finished."""
        tasks = [
            asyncio.create_task(self.load_source(source, loader))
            for source, loader in self.loaders.items()
        ]
        await asyncio.gather(*tasks)
        return self.state

    def _log_readiness(self):
        if is_ready(self.state):
            logger.info("All sources validated. Ready to generate.")
        else:
            labels = ", ".join(s.label for s in missing_sources(self.state))
            logger.info(f"Waiting for: {labels}")

    def extract(self) -> PipelineState:
        logger.info("--- Loading Sources ---")
        return asyncio.run(self.load_all())

    def reload(self, source: SourceType, loader: TextLoader) -> PipelineState:
        """Re-supplies one source, e.g. after fixing a file that failed validation."""
        self.loaders[source] = loader
        with self.diagnostics:
            asyncio.run(self.load_source(source, loader))
        return self.state

    def transform(self) -> list[WorkingRecord] | None:
        try:
            self.state = run_decision(self.state)
        except pydantic.ValidationError as e:
            logger.error("❌ Data validation failed!")
            logger.error(e)
            return None

        return list(self.state.records)
