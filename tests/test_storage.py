"""Tests for the JSON flat-file stores."""
import json

import pandas as pd
import pytest

from remates.models import MarketSnapshot
from remates.storage import JsonAuctionStore, JsonMarketStore, StorageError


def test_missing_auction_file_loads_empty(tmp_path):
    assert JsonAuctionStore(tmp_path / "remates.json").load() == []


def test_auction_roundtrip_uses_camel_case_and_drops_live_link(tmp_path, make_record):
    path = tmp_path / "remates.json"
    store = JsonAuctionStore(path)
    record = make_record(id=1, status="scheduled", estimated_heads=3000, live_link="https://live/1")

    assert store.save([record]) == 1

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw[0]["consignatariaSlug"] == "madelan"
    assert raw[0]["estimatedHeads"] == 3000
    assert "liveLink" not in raw[0]
    assert "live_link" not in raw[0]
    assert path.read_text(encoding="utf-8").endswith("\n")

    (loaded,) = store.load()
    assert loaded.consignataria_slug == "madelan"
    assert loaded.status == "scheduled"


def test_curated_extra_keys_survive(tmp_path):
    path = tmp_path / "remates.json"
    curated = {
        "id": 3,
        "title": "Expo Ñandubay",
        "consignatariaName": "IderCor",
        "consignatariaSlug": "idercor",
        "date": "2026-03-01",
        "time": None,
        "location": "Corrientes, Corrientes",
        "province": "CORRIENTES",
        "type": "especial",
        "mainCategory": "mixto",
        "estimatedHeads": None,
        "description": "Muestra anual",
        "youtubeUrl": None,
        "catalogUrl": None,
        "source": "manual",
        "sourceUrl": None,
        "status": "scheduled",
        "organizer": "Sociedad Rural",
    }
    path.write_text(json.dumps([curated]), encoding="utf-8")
    store = JsonAuctionStore(path)

    store.save(store.load())

    (raw,) = json.loads(path.read_text(encoding="utf-8"))
    assert raw == curated


@pytest.mark.parametrize("content", ["{not json", '{"id": 1}'])
def test_unreadable_auction_file_is_fatal(tmp_path, content):
    path = tmp_path / "remates.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(StorageError):
        JsonAuctionStore(path).load()


def test_null_date_is_loaded_for_the_merge_to_drop(tmp_path, make_record):
    path = tmp_path / "remates.json"
    valid = make_record(consignataria_slug="idercor", date="2026-03-01").model_dump(mode="json", by_alias=True)
    path.write_text(json.dumps([dict(valid, date=None), valid]), encoding="utf-8")

    records = JsonAuctionStore(path).load()

    assert [record.date for record in records] == ["", "2026-03-01"]


def test_malformed_records_are_skipped(tmp_path, make_record):
    path = tmp_path / "remates.json"
    valid = make_record().model_dump(mode="json", by_alias=True)
    path.write_text(json.dumps([{"title": "sin consignataria"}, "basura", valid]), encoding="utf-8")

    (record,) = JsonAuctionStore(path).load()

    assert record.consignataria_slug == "madelan"


def test_save_replaces_file_without_leftovers(tmp_path, make_record):
    path = tmp_path / "remates.json"
    store = JsonAuctionStore(path)
    store.save([make_record(), make_record(date="2026-03-03")])
    store.save([make_record()])

    assert len(json.loads(path.read_text(encoding="utf-8"))) == 1
    assert [p.name for p in tmp_path.iterdir()] == ["remates.json"]


def test_export_csv(tmp_path, make_record):
    store = JsonAuctionStore(tmp_path / "remates.json")
    store.save([make_record(id=1), make_record(id=2, date="2026-03-03")])

    destination = tmp_path / "export" / "remates.csv"
    assert store.export_csv(destination) == 2

    df = pd.read_csv(destination)
    assert list(df["date"]) == ["2026-03-02", "2026-03-03"]
    assert "consignatariaSlug" in df.columns


def test_export_csv_without_data(tmp_path):
    assert JsonAuctionStore(tmp_path / "remates.json").export_csv(tmp_path / "out.csv") == 0


def test_market_roundtrip_preserves_other_series(tmp_path):
    path = tmp_path / "market-prices.json"
    original = {
        "inmag": {"current": 2950.5, "prev": 2900, "change": 1.7, "source": "mag.gob.ar"},
        "categories": {"novillos": {"current": 3100, "prev": 3050}},
        "usdBlue": {"current": 1000.0, "prev": 990.0, "change": 1.0, "source": "dolarapi.com/v1/dolares/blue"},
        "lastUpdate": "2026-02-25",
    }
    path.write_text(json.dumps(original), encoding="utf-8")
    store = JsonMarketStore(path)

    store.save(store.load())

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw == original
    assert "usdOficial" not in raw


def test_missing_market_file_loads_empty(tmp_path):
    assert JsonMarketStore(tmp_path / "market-prices.json").load() == MarketSnapshot()


def test_corrupt_market_file_is_fatal(tmp_path):
    path = tmp_path / "market-prices.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(StorageError):
        JsonMarketStore(path).load()
