import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from .exceptions import InventoryError

logger = logging.getLogger(__name__)


class ProgressObserver:
    """Receives (current row, total rows) as the pipeline walks the input. No-op by default."""

    def on_progress(self, current: int, total: int) -> None:
        pass


class LoggingProgressObserver(ProgressObserver):
    def __init__(self, every: int = 100):
        self.every = every

    def on_progress(self, current: int, total: int) -> None:
        if current and (current % self.every == 0 or current == total):
            logger.info(f"  > Processing row {current} of {total}")


class DataPipeline(ABC):
    """
    Abstract base class for ingestion pipelines.
    Follows an Extract -> Transform -> Load (ETL) pattern.
    """

    def __init__(self, report_type: str, observer: Optional[ProgressObserver] = None):
        self.report_type = report_type
        self.observer = observer or ProgressObserver()

    def run(self, source: Any) -> Any:
        """
        Orchestrates the pipeline execution. Any InventoryError is logged once and re-raised;
        nothing is written when extract or transform fails.
        """
        logger.info(f"🚀 STEP: {self.report_type.upper()} INGESTION")
        logger.info("-" * 30)

        try:
            # --- 1. EXTRACT ---
            raw_data = self.extract(source)

            # --- 2. TRANSFORM ---
            result = self.transform(raw_data)

            # --- 3. LOAD ---
            self.load(result)
        except InventoryError as e:
            logger.error(f"❌ {self.report_type.capitalize()} ingestion failed: {e}")
            raise

        logger.info(f"✅ {self.report_type.capitalize()} Pipeline Finished.")
        logger.info("=" * 60)
        return result

    def report_progress(self, current: int, total: int) -> None:
        self.observer.on_progress(current, total)

    @abstractmethod
    def extract(self, source: Any) -> Any:
        """Turns the raw source into parsed rows. Raises on structurally unusable input."""
        pass

    @abstractmethod
    def transform(self, raw_data: Any) -> Any:
        """Normalization, derived fields and validation."""
        pass

    @abstractmethod
    def load(self, result: Any) -> None:
        """Writes the result to its destinations."""
        pass
