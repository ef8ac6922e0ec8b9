import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from saju import settings, solar_terms
from saju.errors import SolarTermDataError
from saju.solar_terms import (
    LI_CHUN,
    TERM_DEFINITIONS,
    angle_difference,
    build_dataset,
    compare_with_ephemeris,
    delta_t_seconds,
    delta_t_seconds_from_jd,
    dump_dataset,
    find_solar_term_jd,
    find_term,
    format_iso,
    generate_year,
    julian_day_from_datetime,
    julian_day_to_datetime,
    load_dataset,
    parse_iso,
    resolve_solar_term_table,
    solar_longitude,
    solar_term_year_range,
)


def test_j2000_julian_day():
    noon = datetime(2000, 1, 1, 12, tzinfo=timezone.utc)
    assert julian_day_from_datetime(noon) == pytest.approx(2451545.0)
    assert julian_day_to_datetime(2451545.0) == noon


@pytest.mark.parametrize("moment", [
    datetime(1899, 1, 5, 3, 4, 5, 678000, tzinfo=timezone.utc),
    datetime(1990, 2, 4, 4, 14, 12, 345000, tzinfo=timezone.utc),
    datetime(2024, 2, 4, 8, 26, 53, 123000, tzinfo=timezone.utc),
    datetime(2100, 12, 7, 23, 59, 59, 999000, tzinfo=timezone.utc),
])
def test_julian_day_round_trip(moment):
    assert julian_day_to_datetime(julian_day_from_datetime(moment)) == moment


def test_iso_format_uses_milliseconds():
    moment = datetime(1990, 2, 4, 4, 14, 12, 345000, tzinfo=timezone.utc)
    assert format_iso(moment) == "1990-02-04T04:14:12.345Z"
    assert parse_iso("1990-02-04T04:14:12.345Z") == moment


def test_delta_t_is_plausible():
    assert delta_t_seconds(2000.0) == pytest.approx(63.9, abs=1.0)
    assert 0 < delta_t_seconds(2024.0) < 80
    assert -5 < delta_t_seconds(1900.0) < 5


@pytest.mark.parametrize("target, current, expected", [
    (0, 359, 1),
    (359, 0, -1),
    (285, 280, 5),
    (15, 30, -15),
])
def test_angle_difference(target, current, expected):
    assert angle_difference(target, current) == pytest.approx(expected)


@pytest.mark.parametrize("year", [1899, 1950, 2024, 2100])
def test_each_term_converges_within_tolerance(year, caplog):
    caplog.set_level(logging.WARNING, logger="saju.solar_terms")
    for definition in TERM_DEFINITIONS:
        jd_ut = find_solar_term_jd(year, definition)
        jde = jd_ut + delta_t_seconds_from_jd(jd_ut) / 86400
        error = angle_difference(definition.longitude, solar_longitude(jde))
        assert abs(error) <= settings.CONVERGENCE_TOLERANCE_DEG + 1e-6
    assert not caplog.records


@pytest.mark.parametrize("year", [1899, 1984, 2024, 2100])
def test_year_has_twelve_ordered_terms(year):
    entries = generate_year(year)
    assert [e.term for e in entries] == [d.term for d in TERM_DEFINITIONS]
    assert all(a.instant < b.instant for a, b in zip(entries, entries[1:]))
    assert all(e.instant.year == year for e in entries)
    for entry, definition in zip(entries, TERM_DEFINITIONS):
        assert entry.instant.month == definition.approx_month


def test_li_chun_2024():
    # 2024-02-04 16:27 KST
    instant = find_term(2024, LI_CHUN).instant
    expected = datetime(2024, 2, 4, 8, 27, tzinfo=timezone.utc)
    assert abs(instant - expected) < timedelta(minutes=30)


def test_default_range_and_out_of_range():
    assert solar_term_year_range() == (1899, 2100)
    with pytest.raises(SolarTermDataError):
        resolve_solar_term_table(1898)
    with pytest.raises(SolarTermDataError):
        resolve_solar_term_table(2101)


def test_runtime_table_is_cached():
    assert resolve_solar_term_table(2000) is resolve_solar_term_table(2000)


def test_dump_and_load_dataset(tmp_path):
    dataset = build_dataset(2023, 2025)
    path = tmp_path / "solar_terms.json"
    dump_dataset(dataset, path)

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert sorted(raw) == ["2023", "2024", "2025"]
    assert raw["2024"][1]["term"] == LI_CHUN
    assert raw["2024"][1]["iso"].endswith("Z")

    assert load_dataset(path) == dataset


def test_configured_file_replaces_generated_table(tmp_path, monkeypatch):
    path = tmp_path / "solar_terms.json"
    dump_dataset(build_dataset(2023, 2025), path)
    monkeypatch.setattr(settings, "SOLAR_TERMS_PATH", path)
    solar_terms.clear_cache()

    assert solar_term_year_range() == (2023, 2025)
    assert resolve_solar_term_table(2024) == generate_year(2024)
    with pytest.raises(SolarTermDataError):
        resolve_solar_term_table(2026)


def test_load_rejects_missing_file(tmp_path):
    with pytest.raises(SolarTermDataError):
        load_dataset(tmp_path / "missing.json")


def test_load_rejects_bad_order(tmp_path):
    entries = [entry.to_dict() for entry in generate_year(2024)]
    entries[0], entries[1] = entries[1], entries[0]
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"2024": entries}), encoding="utf-8")
    with pytest.raises(SolarTermDataError):
        load_dataset(path)


def test_load_rejects_missing_term(tmp_path):
    entries = [entry.to_dict() for entry in generate_year(2024)][:-1]
    path = tmp_path / "short.json"
    path.write_text(json.dumps({"2024": entries}), encoding="utf-8")
    with pytest.raises(SolarTermDataError):
        load_dataset(path)


def test_load_rejects_year_gap(tmp_path):
    dataset = build_dataset(2023, 2025)
    del dataset[2024]
    path = tmp_path / "gap.json"
    dump_dataset(dataset, path)
    with pytest.raises(SolarTermDataError):
        load_dataset(path)


def test_configured_file_with_gap_raises_data_error(tmp_path, monkeypatch):
    dataset = build_dataset(2023, 2025)
    del dataset[2024]
    path = tmp_path / "gap.json"
    dump_dataset(dataset, path)
    monkeypatch.setattr(settings, "SOLAR_TERMS_PATH", path)
    solar_terms.clear_cache()

    with pytest.raises(SolarTermDataError):
        resolve_solar_term_table(2024)


@pytest.mark.parametrize("mangle", [
    lambda item: item.pop("iso"),
    lambda item: item.pop("term"),
    lambda item: item.update(iso="not-a-date"),
])
def test_load_rejects_malformed_entry(tmp_path, mangle):
    entries = [entry.to_dict() for entry in generate_year(2024)]
    mangle(entries[3])
    path = tmp_path / "malformed.json"
    path.write_text(json.dumps({"2024": entries}), encoding="utf-8")
    with pytest.raises(SolarTermDataError):
        load_dataset(path)


@pytest.mark.parametrize("content", ["{not json", "{}", "[]", '{"year": []}'])
def test_load_rejects_unusable_file(tmp_path, content):
    path = tmp_path / "broken.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(SolarTermDataError):
        load_dataset(path)


@pytest.mark.parametrize("year", [1900, 1990, 2024, 2100])
def test_agrees_with_swiss_ephemeris(year):
    assert compare_with_ephemeris(year) < 3600
