import logging
import sys
from pathlib import Path

from stock_dashboard import aggregations, settings, utils
from stock_dashboard.data_handler import HttpRecordStore, InMemoryRecordStore
from stock_dashboard.exceptions import InventoryError
from stock_dashboard.logger import setup_logger
from stock_dashboard.pipeline import LoggingProgressObserver
from stock_dashboard.pipelines.inventory import InventoryPipeline
from stock_dashboard.schemas import StoreConfig

logger = logging.getLogger("stock_dashboard")


def resolve_csv_path(args: list[str]) -> Path | None:
    positional = [arg for arg in args if not arg.startswith("--")]
    if positional:
        return Path(positional[0])
    return utils.find_latest_export(settings.INPUT_DIR, settings.INVENTORY_FILENAME_PREFIX)


def log_dashboard_summary(records: list[dict]) -> None:
    dashboard = aggregations.build_dashboard(records)

    logger.info("\n--- Dashboard Summary ---")
    for entry in dashboard["category_distribution"]:
        logger.info(f"{entry['name']}: {entry['value']} item(s)")

    logger.info("\nStock value by category:")
    for entry in dashboard["stock_value_by_category"]:
        logger.info(f"  {entry['name']}: {entry['value']:,.0f}")

    logger.info("\nTop sold products:")
    for entry in dashboard["top_sold_products"][:5]:
        logger.info(f"  {entry['name']}: {entry['Quantity Sold']:g}")


def main(args: list[str] | None = None) -> int:
    args = sys.argv[1:] if args is None else args
    setup_logger("stock_dashboard")

    csv_path = resolve_csv_path(args)
    if csv_path is None:
        logger.error(
            f"❌ No '{settings.INVENTORY_FILENAME_PREFIX}*.csv' export found in {settings.INPUT_DIR}."
        )
        return 1

    csv_text = utils.load_csv_text(csv_path)
    if csv_text is None:
        return 1
    logger.info(f"📂 Reading {csv_path.name}")

    config = StoreConfig.from_settings()
    if settings.STORE_URL and "--dry-run" not in args:
        store = HttpRecordStore(settings.STORE_URL, config)
    else:
        logger.info("🧪 Dry run: records are kept in memory only.")
        store = InMemoryRecordStore(config)

    pipeline = InventoryPipeline(
        store=store, config=config, observer=LoggingProgressObserver(), export=True
    )
    try:
        result = pipeline.run(csv_text)
    except InventoryError:
        return 1

    log_dashboard_summary(result.rows)
    return 0


if __name__ == "__main__":
    sys.exit(main())
