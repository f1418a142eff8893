import argparse
import logging
from pathlib import Path

from restock import settings, utils
from restock.errors import LoadError
from restock.loaders import TextLoader, file_loader, mapping_loader
from restock.logger import setup_logger
from restock.pipelines.restock import RestockPipeline
from restock.schemas import SourceType

logger = logging.getLogger("restock.main")

# --- Source Registry ---
# Where each report is looked for when no explicit path is given.
SOURCE_REGISTRY = {
    SourceType.SALE: settings.SALE_FILENAME_PREFIX,
    SourceType.FC: settings.FC_FILENAME_PREFIX,
    SourceType.CENTRAL: settings.CENTRAL_FILENAME_PREFIX,
}


def _missing_report(prefix: str) -> TextLoader:
    def load() -> str:
        raise LoadError(f"No '{prefix}*.csv' report found in {settings.INPUT_DIR}")

    return load


def build_loaders(paths: dict[SourceType, Path | None]) -> dict[SourceType, TextLoader]:
    """Explicit paths win; otherwise the latest matching report in INPUT_DIR is used."""
    loaders: dict[SourceType, TextLoader] = {}
    for source, prefix in SOURCE_REGISTRY.items():
        path = paths.get(source)
        if path is None:
            found_info = utils.find_latest_report(settings.INPUT_DIR, prefix)
            if found_info:
                path, report_date = found_info
                logger.info(f"  > Found {source.label}: {path.name} ({report_date})")
        loaders[source] = file_loader(path) if path else _missing_report(prefix)

    loaders[SourceType.MAPPING] = mapping_loader()
    return loaders


def run_process(
    sale: Path | None = None,
    fc: Path | None = None,
    central: Path | None = None,
    test_mode: bool = False,
    sale_schema: str | None = None,
):
    """Main orchestration function to run the entire restock process."""
    setup_logger("restock")
    loaders = build_loaders({SourceType.SALE: sale, SourceType.FC: fc, SourceType.CENTRAL: central})
    pipeline = RestockPipeline(loaders, test_mode=test_mode, sale_schema=sale_schema)
    return pipeline.run()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send/recall plan for every SKU at every fulfillment center.")
    parser.add_argument("--sale", type=Path, help="Marketplace sale transactions CSV")
    parser.add_argument("--fc", type=Path, help="Fulfillment-center inventory snapshot CSV")
    parser.add_argument("--central", type=Path, help="Central (Uniware) inventory CSV")
    parser.add_argument("--sale-schema", choices=["minimal", "rich"], default=None)
    parser.add_argument("--test", action="store_true", help="Skip the webhook post")
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    run_process(args.sale, args.fc, args.central, test_mode=args.test, sale_schema=args.sale_schema)
