"""Tests for field normalizers."""
import re

import pytest

from remates.normalize import (
    PROVINCE_BY_ID,
    PROVINCES,
    classify_auction_type,
    classify_main_category,
    context_text,
    is_valid_date,
    normalize_province,
    parse_day_month_year,
    slugify,
    status_for,
)

SLUG_SAMPLES = [
    "Colombo y Colombo SA",
    "  Ñandú Hacienda!! ",
    "Ivan L. O'Farrell Consignataria",
    "Cooperativa Guillermo Lehmann",
    "--Ya--slug--",
    "Remates & Cía. (Entre Ríos)",
    "",
    "ßtraße 123",
]


def test_slugify_examples():
    assert slugify("Colombo y Colombo SA") == "colombo-y-colombo-sa"
    assert slugify("  Ñandú Hacienda!! ") == "nandu-hacienda"
    assert slugify("Ivan L. O'Farrell Consignataria") == "ivan-l-o-farrell-consignataria"
    assert slugify(None) == ""


@pytest.mark.parametrize("text", SLUG_SAMPLES)
def test_slugify_charset_and_idempotence(text):
    slug = slugify(text)
    assert re.fullmatch(r"[a-z0-9-]*", slug)
    assert not slug.startswith("-") and not slug.endswith("-")
    assert "--" not in slug
    assert slugify(slug) == slug


def test_normalize_province_strips_accents_and_uppercases():
    assert normalize_province("Entre Ríos") == "ENTRE RIOS"
    assert normalize_province("neuquén") == "NEUQUEN"
    assert normalize_province(None) == ""


def test_normalize_province_passes_unknown_values_through():
    assert normalize_province("Gral. Güemes") == "GRAL. GUEMES"


def test_province_table_has_24_entries():
    assert len(PROVINCE_BY_ID) == 24
    assert len(set(PROVINCES)) == 24
    assert PROVINCE_BY_ID["3"] == "CHACO"
    assert all(normalize_province(name) == name for name in PROVINCES)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2026-02-26", True),
        ("2026-02-30", True),
        ("2024-01-01", True),
        ("2030-12-31", True),
        ("2026-13-01", False),
        ("2026-00-10", False),
        ("2026-02-32", False),
        ("2026-02-00", False),
        ("2023-12-31", False),
        ("2031-01-01", False),
        ("26-02-2026", False),
        ("2026-2-26", False),
        ("2026-02-26T10:00", False),
        ("", False),
        (None, False),
    ],
)
def test_is_valid_date(value, expected):
    assert is_valid_date(value) is expected


@pytest.mark.parametrize(
    "title,expected",
    [
        ("Remate de Invernada y Cría", "invernada"),
        ("Gran remate de cría", "cria"),
        ("Remate de cria", "cria"),
        ("Venta de Toros Braford", "reproductores"),
        ("Cabaña La Esperanza", "reproductores"),
        ("Expo Rural Especial", "especial"),
        ("Fiesta del Ternero", "especial"),
        ("Remate feria mensual", "general"),
        ("", "general"),
        (None, "general"),
    ],
)
def test_classify_auction_type(title, expected):
    assert classify_auction_type(title) == expected


@pytest.mark.parametrize(
    "title,expected",
    [
        ("Toros y terneros", "terneros"),
        ("Novillos y novillitos", "novillos"),
        ("Vaca gorda de consumo", "vaca_gorda"),
        ("Hacienda gorda", "mixto"),
        ("Gordo", "vaca_gorda"),
        ("Vaquillonas preñadas", "vaquillonas"),
        ("Toros PC", "toros"),
        ("Reproductores Angus", "toros"),
        ("Remate general", "mixto"),
        (None, "mixto"),
    ],
)
def test_classify_main_category(title, expected):
    assert classify_main_category(title) == expected


def test_classification_priority_is_first_match():
    title = "Invernada especial de toros"
    assert classify_auction_type(title) == "invernada"
    assert classify_main_category(title) == "toros"


def test_status_for():
    today = "2026-02-26"
    assert status_for("2026-02-25", today) == "completed"
    assert status_for("2026-02-26", today) == "live"
    assert status_for("2026-02-27", today) == "scheduled"


def test_parse_day_month_year_pads():
    assert parse_day_month_year("5", "3", "2026") == "2026-03-05"
    assert parse_day_month_year("12", "11", "2026") == "2026-11-12"


def test_context_text_strips_markup_and_whitespace():
    fragment = "<p>Remate <b>televisado</b></p>\n\n   <span>Machagai</span>"
    assert context_text(fragment) == "Remate televisado Machagai"
