from typing import Any, Iterable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from . import settings


class SparePartRecord(BaseModel):
    """
    Data contract for one normalized spare-parts row.
    Known fields are typed; any other CSV column is carried through as an extra.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    row_number: Optional[int] = Field(default=None, alias="No.")
    item_code: Optional[str] = Field(default=None, alias="Kode Barang")
    item_name: Optional[str] = Field(default=None, alias="Nama Barang")
    category: Optional[str] = Field(default=None, alias="Kategori")
    part_model: Optional[str] = Field(default=None, alias="Model")
    unit: Optional[str] = Field(default=None, alias="Satuan")
    previous_stock: Optional[float] = Field(default=None, alias="Stock Sebelumnya")
    current_stock: Optional[float] = Field(default=None, alias="Stock Sekarang")
    stock_out: Optional[float] = Field(default=None, ge=0, alias="Stock Keluar")
    unit_price: Optional[float] = Field(default=None, alias="Harga Satuan")
    total_stock_out_value: Optional[float] = Field(
        default=None, alias="Total Harga Stock Keluar"
    )
    total_stock_value: Optional[float] = Field(
        default=None, alias="Total Harga Stock Sekarang"
    )
    stock_age_days: Optional[float] = Field(
        default=None, alias="Umur Stock (Dalam Hari)"
    )
    min_stock_threshold: int = Field(..., ge=0, alias="MinStockThreshold")

    def to_record(self, fields: Iterable[str]) -> dict[str, Any]:
        # Only the columns the source row actually had, under their CSV names, in row order.
        dumped = self.model_dump(by_alias=True)
        return {field: dumped[field] for field in fields if field in dumped}


class StoreConfig(BaseModel):
    """Explicit configuration shared by the ingestion pipeline and the record store."""

    store_namespace: str = Field(default="artifacts/default-app-id/spareParts", min_length=1)
    identity_fallback: Literal["uuid", "row_number"] = "uuid"

    @classmethod
    def from_settings(cls) -> "StoreConfig":
        return cls(
            store_namespace=settings.STORE_NAMESPACE,
            identity_fallback=settings.IDENTITY_FALLBACK,
        )


class ParsedCsv(BaseModel):
    headers: list[str]
    rows: list[dict[str, str]]
    # 1-based line numbers of rows dropped for a field-count mismatch
    skipped_lines: list[int] = Field(default_factory=list)
    total_lines: int = 0


class IngestionResult(BaseModel):
    records: dict[str, dict[str, Any]]
    headers: list[str]
    total_rows: int = 0
    skipped_lines: list[int] = Field(default_factory=list)
    duplicate_keys: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def rows(self) -> list[dict[str, Any]]:
        return list(self.records.values())

    @property
    def skipped_count(self) -> int:
        return len(self.skipped_lines)


class TableViewConfig(BaseModel):
    search_term: str = ""
    category: str = ""
    sort_by: str = settings.ROW_NUMBER
    sort_order: Literal["asc", "desc"] = "asc"
    apply_filter: bool = True
    apply_sort: bool = True
    group_by_category: bool = False


class CategoryGroup(BaseModel):
    name: str
    rows: list[dict[str, Any]]
    is_open: bool = False

    @property
    def count(self) -> int:
        return len(self.rows)


class TableView(BaseModel):
    rows: list[dict[str, Any]]
    groups: Optional[list[CategoryGroup]] = None

    def flatten(self) -> list[dict[str, Any]]:
        if self.groups is None:
            return list(self.rows)
        return [row for group in self.groups for row in group.rows]
