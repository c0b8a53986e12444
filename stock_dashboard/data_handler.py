import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Mapping, Optional
from urllib.parse import quote

import pandas as pd
import requests

from . import settings, utils
from .exceptions import PersistenceFailure
from .schemas import StoreConfig

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """
    External document store holding the current record set, one document per item key.
    """

    def __init__(self, config: StoreConfig):
        self.config = config

    @abstractmethod
    def fetch_all(self) -> dict[str, dict[str, Any]]:
        pass

    @abstractmethod
    def delete_all(self) -> None:
        pass

    @abstractmethod
    def write(self, key: str, record: Mapping[str, Any]) -> None:
        pass

    def replace_all(self, records: Mapping[str, Mapping[str, Any]]) -> int:
        """
        Deletes every stored record, then writes the new set one document at a time.
        Not transactional: a failure part-way leaves the store partially cleared.
        """
        self.delete_all()
        logger.info(f"Existing records in '{self.config.store_namespace}' deleted.")

        written = 0
        for key, record in records.items():
            self.write(key, record)
            written += 1
        return written


class InMemoryRecordStore(RecordStore):
    def __init__(self, config: Optional[StoreConfig] = None):
        super().__init__(config or StoreConfig())
        self.documents: dict[str, dict[str, Any]] = {}

    def fetch_all(self) -> dict[str, dict[str, Any]]:
        return {key: dict(record) for key, record in self.documents.items()}

    def delete_all(self) -> None:
        self.documents.clear()

    def write(self, key: str, record: Mapping[str, Any]) -> None:
        self.documents[key] = dict(record)


class HttpRecordStore(RecordStore):
    """
    Record store behind a REST document endpoint at {base_url}/{store_namespace}.
    GET lists documents as a key -> record object, DELETE clears the collection,
    PUT /{key} writes one document.
    """

    def __init__(
        self,
        base_url: str,
        config: StoreConfig,
        timeout: int = settings.STORE_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(config)
        self.collection_url = (
            f"{base_url.rstrip('/')}/{config.store_namespace.strip('/')}"
        )
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise PersistenceFailure(f"{method} {url} failed: {e}") from e
        return response

    def fetch_all(self) -> dict[str, dict[str, Any]]:
        response = self._request("GET", self.collection_url)
        return response.json() or {}

    def delete_all(self) -> None:
        self._request("DELETE", self.collection_url)

    def write(self, key: str, record: Mapping[str, Any]) -> None:
        self._request(
            "PUT", f"{self.collection_url}/{quote(key, safe='')}", json=dict(record)
        )


def fetch_snapshot(store: RecordStore) -> tuple[list[dict[str, Any]], list[str]]:
    """Current record set and its canonical header list, as read from the store."""
    records = list(store.fetch_all().values())
    return records, utils.canonical_headers(records)


def save_outputs(
    records: list[dict[str, Any]],
    headers: list[str],
    output_dir: Optional[Path] = None,
    save_json: Optional[bool] = None,
) -> list[Path]:
    """Saves the record set to CSV (canonical column order) and conditionally to JSON, with dated filenames."""
    output_dir = output_dir or settings.OUTPUT_DIR
    save_json = settings.SAVE_JSON_OUTPUT if save_json is None else save_json
    output_dir.mkdir(parents=True, exist_ok=True)
    date_suffix = utils.get_date_suffix_for_filename()

    csv_path = output_dir / f"{settings.EXPORT_FILENAME_BASE}_{date_suffix}.csv"
    df = pd.DataFrame(records).reindex(columns=headers)
    df.to_csv(csv_path, index=False)
    logger.info(f"✅ Normalized report saved to: {csv_path}")
    saved = [csv_path]

    if save_json:
        json_path = output_dir / f"{settings.EXPORT_FILENAME_BASE}_{date_suffix}.json"
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, default=str, ensure_ascii=False)
        logger.info(f"✅ JSON output saved to: {json_path}")
        saved.append(json_path)
    else:
        logger.info("Skipping JSON file save as per configuration.")

    return saved
