from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

AuctionType = Literal["invernada", "cria", "reproductores", "general", "especial"]
MainCategory = Literal["terneros", "novillos", "vaca_gorda", "vaquillonas", "toros", "mixto"]
AuctionStatus = Literal["completed", "live", "scheduled"]


class CamelModel(BaseModel):
    """Base for models persisted with camelCase keys; unknown keys are kept."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class AuctionRecord(CamelModel):
    """Canonical auction announcement shared by every source and the curated feed."""

    id: Optional[int] = Field(None, description="1-based position in the merged feed, recomputed every run.")
    title: str = Field(..., description="Source-provided or synthesized title.")
    consignataria_name: str = Field(..., description="Display name of the selling agency.")
    consignataria_slug: str = Field(..., description="Slug of the agency name, or a fixed per-source slug.")
    date: str = Field(..., description="Auction day as YYYY-MM-DD.")
    time: Optional[str] = Field(None, description="24h HH:MM start time, null when unknown or all-day.")
    location: str = Field("", description='Conventionally "<City>, <Province>".')
    province: str = Field("", description="Upper-case, accent-stripped province name.")
    type: AuctionType = "general"
    main_category: MainCategory = "mixto"
    estimated_heads: Optional[int] = Field(None, ge=0)
    description: str = ""
    youtube_url: Optional[str] = None
    catalog_url: Optional[str] = None
    source: str = Field("web", description="Provenance tag; every scraper emits 'web'.")
    source_url: Optional[str] = None
    live_link: Optional[str] = Field(None, description="Live-stream URL, only kept while merging.")
    status: Optional[AuctionStatus] = None

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> str:
        # Curated rows may carry a null or numeric date; the merge drops them as invalid.
        return "" if value is None else str(value)


class MarketSeries(CamelModel):
    """One tracked value with its previous reading and percent change."""

    current: Optional[float] = None
    prev: Optional[float] = None
    change: float = 0
    source: Optional[str] = None


class MarketSnapshot(CamelModel):
    """Market reference data; only the two USD series are owned by the scraper."""

    usd_blue: Optional[MarketSeries] = None
    usd_oficial: Optional[MarketSeries] = None
    last_update: Optional[str] = None


class CurrencyQuote(BaseModel):
    """Rate object returned by dolarapi.com."""

    model_config = ConfigDict(extra="ignore")

    venta: float
    compra: Optional[float] = None
    casa: Optional[str] = None
    nombre: Optional[str] = None
    moneda: Optional[str] = None
    fecha_actualizacion: Optional[str] = Field(None, alias="fechaActualizacion")


class CurrencySnapshot(BaseModel):
    """Whatever subset of the two USD rates could be fetched."""

    blue: Optional[CurrencyQuote] = None
    oficial: Optional[CurrencyQuote] = None


class RunSummary(BaseModel):
    """Outcome of a scraper run."""

    run_date: str
    scraped_records: int
    existing_records: int
    curated_records: int
    dropped_records: int
    written_records: int
    records_by_source: Dict[str, int] = Field(default_factory=dict)
    failed_sources: List[str] = Field(default_factory=list)
    provinces: List[str] = Field(default_factory=list)
    consignatarias: int = 0
    first_date: Optional[str] = None
    last_date: Optional[str] = None
    usd_updated: List[str] = Field(default_factory=list)
