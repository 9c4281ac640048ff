"""
QR asset record: the only entity stored on the ledger.

Field names follow the JSON the mobile QR scanner reads, so most of them are
snake_case; the key field and the discriminator keep their camelCase names.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

DOC_TYPE = "asset"
KEY_PREFIX = "QR"


def asset_key(product_id: str) -> str:
    """World-state key for a product id."""
    return f"{KEY_PREFIX}:{product_id}"


class QRAsset(BaseModel):
    model_config = ConfigDict(populate_by_name=True, strict=True, frozen=True)

    product_id: str = Field(..., alias="productId", min_length=1)
    product_name_en: str
    product_name_bn: str
    species_en: str
    species_bn: str
    date_of_harvesting: str
    date_of_packaging: str
    expired_date: str
    mrp: float
    has_blast_freezer: bool
    has_iqf: bool
    has_vacuum_package: bool
    has_food_grade_package_ldpe_4: bool
    storage_en: str
    storage_bn: str
    water_source_en: list[str] = Field(default_factory=list)
    water_source_bn: list[str] = Field(default_factory=list)
    has_freezer_van_transportation: bool
    batch_number: str
    secondary_batch: str = ""
    lot_number: str
    net_weight: float
    certification_en: list[str] = Field(default_factory=list)
    certification_bn: list[str] = Field(default_factory=list)
    certification_link: list[str] = Field(default_factory=list)
    production_latitude: float
    production_longitude: float
    producer_organization_en: str
    producer_organization_bn: str
    livestock_collection_center_latitude: float
    livestock_collection_center_longitude: float
    collector_organization_en: str
    collector_organization_bn: str
    livestock_processing_unit_latitude: float
    livestock_processing_unit_longitude: float
    processor_organization_en: str
    processor_organization_bn: str
    doc_type: str = Field(default="", alias="docType")

    @field_validator(
        "water_source_en", "water_source_bn", "certification_en", "certification_bn",
        "certification_link", mode="before",
    )
    @classmethod
    def null_list_is_empty(cls, value):
        # Records written by the Go chaincode store nil slices as null.
        return [] if value is None else value

    @field_validator("doc_type", mode="before")
    @classmethod
    def ignore_submitted_doc_type(cls, value):
        # Overwritten by stamped() on write; only a string is kept on read.
        return value if isinstance(value, str) else ""

    @property
    def key(self) -> str:
        return asset_key(self.product_id)

    def to_json(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")

    def stamped(self) -> "QRAsset":
        """Copy of this record carrying the server-side discriminator."""
        return self.model_copy(update={"doc_type": DOC_TYPE})


def sample_asset(product_id: str, **overrides) -> QRAsset:
    """The frozen Hilsa batch used to seed the ledger and by the demo client."""
    fields = {
        "productId": product_id,
        "product_name_en": "Frozen Hilsa Fish",
        "product_name_bn": "Frozen Hilsa Fish",
        "species_en": "Hilsa",
        "species_bn": "Hilsa",
        "date_of_harvesting": "2025-09-01",
        "date_of_packaging": "2025-09-03",
        "expired_date": "2026-03-01",
        "mrp": 1200.5,
        "has_blast_freezer": True,
        "has_iqf": False,
        "has_vacuum_package": True,
        "has_food_grade_package_ldpe_4": True,
        "storage_en": "Cold Storage Dhaka",
        "storage_bn": "Cold Storage Dhaka",
        "water_source_en": ["Filtered water", "Arsenic"],
        "water_source_bn": ["Filtered water", "Arsenic"],
        "has_freezer_van_transportation": True,
        "batch_number": "BATCH-001",
        "lot_number": "LOT-001",
        "net_weight": 2.5,
        "certification_en": ["ISO22000", "HACCP"],
        "certification_bn": ["ISO22000", "HACCP"],
        "production_latitude": 23.8103,
        "production_longitude": 90.4125,
        "producer_organization_en": "Padma Fisheries Ltd",
        "producer_organization_bn": "Padma Fisheries Ltd",
        "livestock_collection_center_latitude": 23.90,
        "livestock_collection_center_longitude": 90.44,
        "collector_organization_en": "Dhaka Fish Collectors",
        "collector_organization_bn": "Dhaka Fish Collectors",
        "livestock_processing_unit_latitude": 23.75,
        "livestock_processing_unit_longitude": 90.39,
        "processor_organization_en": "Bangladesh Fish Processing Ltd",
        "processor_organization_bn": "Bangladesh Fish Processing Ltd",
    }
    fields.update(overrides)
    return QRAsset.model_validate(fields)
