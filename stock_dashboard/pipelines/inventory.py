import logging
import uuid
from typing import Any, Optional

from pydantic import ValidationError

from stock_dashboard import data_handler, parsers, settings, utils
from stock_dashboard.coercion import coerce_row
from stock_dashboard.data_handler import RecordStore
from stock_dashboard.exceptions import PersistenceFailure, RecordValidationError
from stock_dashboard.pipeline import DataPipeline, ProgressObserver
from stock_dashboard.schemas import IngestionResult, ParsedCsv, SparePartRecord, StoreConfig
from stock_dashboard.thresholds import apply_threshold

logger = logging.getLogger(__name__)


class InventoryPipeline(DataPipeline):
    """
    CSV text -> typed spare-parts records with MinStockThreshold -> replace-all write.
    The record store and the export step are both optional.
    """

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        config: Optional[StoreConfig] = None,
        observer: Optional[ProgressObserver] = None,
        export: bool = False,
    ):
        super().__init__("inventory", observer=observer)
        self.config = config or (store.config if store else StoreConfig())
        self.store = store
        self.export = export

    def extract(self, csv_text: str) -> ParsedCsv:
        logger.info("--- Parsing CSV ---")
        parsed = parsers.parse_csv_text(csv_text)
        logger.info(
            f"  > {len(parsed.headers)} columns, {len(parsed.rows)} rows accepted "
            f"out of {parsed.total_lines} lines."
        )
        return parsed

    @staticmethod
    def item_code(record: dict[str, Any]) -> Optional[str]:
        code = record.get(settings.ITEM_CODE)
        if code is not None and str(code).strip():
            return str(code)
        return None

    def generated_key(self, row_index: int, taken: set[str]) -> str:
        """Key for a row without an item code. Never one of the taken keys."""
        if self.config.identity_fallback != "row_number":
            key = uuid.uuid4().hex
            while key in taken:
                key = uuid.uuid4().hex
            return key

        key = f"row-{row_index}"
        suffix = 1
        while key in taken:
            suffix += 1
            key = f"row-{row_index}-{suffix}"
        return key

    def transform(self, parsed: ParsedCsv) -> IngestionResult:
        logger.info("\n--- Normalizing Data ---")

        total = len(parsed.rows)
        self.report_progress(0, total)

        validated = []
        for index, raw_row in enumerate(parsed.rows, start=1):
            enriched = apply_threshold(coerce_row(raw_row))
            try:
                validated.append(
                    SparePartRecord.model_validate(enriched).to_record(enriched)
                )
            except ValidationError as e:
                raise RecordValidationError(f"Row {index} failed validation: {e}") from e
            self.report_progress(index, total)

        # Real item codes are claimed first so a generated key can never shadow one.
        taken = {code for code in map(self.item_code, validated) if code is not None}
        records: dict[str, dict[str, Any]] = {}
        duplicate_keys = []
        for index, record in enumerate(validated, start=1):
            key = self.item_code(record)
            if key is None:
                key = self.generated_key(index, taken)
                taken.add(key)
            if key in records:
                duplicate_keys.append(key)
            records[key] = record

        warnings = []
        if parsed.skipped_lines:
            warnings.append(
                f"{len(parsed.skipped_lines)} row(s) skipped for a column count mismatch "
                f"(lines {', '.join(str(n) for n in parsed.skipped_lines)})."
            )
        if duplicate_keys:
            warnings.append(
                f"{len(duplicate_keys)} duplicate item code(s) overwritten by a later row: "
                f"{', '.join(duplicate_keys)}."
            )
        for warning in warnings:
            logger.warning(f"⚠️ {warning}")

        return IngestionResult(
            records=records,
            headers=utils.canonical_headers(records.values()),
            total_rows=parsed.total_lines,
            skipped_lines=parsed.skipped_lines,
            duplicate_keys=duplicate_keys,
            warnings=warnings,
        )

    def load(self, result: IngestionResult) -> None:
        if self.store is not None:
            logger.info(f"Replacing records in '{self.config.store_namespace}'...")
            try:
                written = self.store.replace_all(result.records)
            except OSError as e:
                raise PersistenceFailure(f"Record store write failed: {e}") from e
            logger.info(f"✅ {written} records uploaded.")
        else:
            logger.info("No record store configured. Skipping upload.")

        if self.export:
            data_handler.save_outputs(result.rows, result.headers)
