import pytest

from remates.models import AuctionRecord


@pytest.fixture
def make_record():
    """Factory for auction records with sensible defaults."""

    def _make(**overrides) -> AuctionRecord:
        fields = {
            "title": "Remate General",
            "consignataria_name": "Madelan SA",
            "consignataria_slug": "madelan",
            "date": "2026-03-02",
            "location": "Resistencia, Chaco",
            "province": "CHACO",
            "description": "Remate por internet y streaming",
            "source": "web",
            "source_url": "https://www.madelan.com.ar/proximos",
        }
        fields.update(overrides)
        return AuctionRecord(**fields)

    return _make
