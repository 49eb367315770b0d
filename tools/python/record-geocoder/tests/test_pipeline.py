"""
Tests — Pipeline
================
Unit tests for :class:`~record_geocoder.pipeline.GeocodePipeline` with a
mocked geocode client, plus end-to-end runs of
:class:`~record_geocoder.pipeline.RecordGeocoder` with HTTP mocked via
``responses``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import responses as rsps_lib
from responses import matchers

from record_geocoder.client import GeocodeClient
from record_geocoder.decoding import (
    AddressComponent,
    Malformed,
    Resolved,
    ZeroResults,
    decode_response,
)
from record_geocoder.interpreter import ERROR_STATUS
from record_geocoder.pipeline import GeocodePipeline, RecordGeocoder, RunSummary
from record_geocoder.store import ID_FIELD, RecordStore
from record_geocoder.throttle import ThrottlePolicy
from shared.python.exceptions import (
    GeocodeError,
    InputValidationError,
    RecordImportError,
    StoreWriteError,
)

GEOCODE_URL = "http://geo.test:9000/maps/api/geocode/json"


# ---------------------------------------------------------------------------
# Fixtures / helpers
# ---------------------------------------------------------------------------


def _resolved(country: str = "France") -> Resolved:
    return Resolved(
        status="APPROXIMATE",
        lat=48.8566,
        lng=2.3522,
        components=(
            AddressComponent("Paris", frozenset({"locality", "political"})),
            AddressComponent("Île-de-France", frozenset({"administrative_area_level_1"})),
            AddressComponent(country, frozenset({"country", "political"})),
        ),
        raw={},
    )


def _make_store(tmp_path: Path, cities: list[str]) -> RecordStore:
    store = RecordStore(tmp_path / "cities.db.jsonl")
    store.import_all([{"city": c} for c in cities])
    return store


def _make_client(answers: dict[str, Any]) -> MagicMock:
    """Mock client returning (or raising) ``answers[address]``."""

    def _geocode(address: str) -> Any:
        answer = answers[address]
        if isinstance(answer, Exception):
            raise answer
        return answer

    client = MagicMock(spec=GeocodeClient)
    client.geocode.side_effect = _geocode
    return client


def _paris_payload() -> dict[str, Any]:
    return {
        "status": "OK",
        "results": [
            {
                "address_components": [
                    {"long_name": "Paris", "types": ["locality", "political"]},
                    {"long_name": "Île-de-France", "types": ["administrative_area_level_1", "political"]},
                    {"long_name": "France", "types": ["country", "political"]},
                ],
                "geometry": {"location": {"lat": 48.8566, "lng": 2.3522}, "location_type": "APPROXIMATE"},
            }
        ],
    }


def _mock_geocoder() -> None:
    rsps_lib.add(
        rsps_lib.GET,
        GEOCODE_URL,
        json=_paris_payload(),
        match=[matchers.query_param_matcher({"address": "Paris", "sensor": "false"})],
    )
    rsps_lib.add(
        rsps_lib.GET,
        GEOCODE_URL,
        json={"status": "ZERO_RESULTS", "results": []},
        match=[matchers.query_param_matcher({"address": "NoSuchPlace12345", "sensor": "false"})],
    )


@pytest.fixture()
def cities_json(tmp_path: Path) -> Path:
    path = tmp_path / "cities.json"
    path.write_text(json.dumps([{"city": "Paris"}, {"city": "NoSuchPlace12345"}]), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# RunSummary
# ---------------------------------------------------------------------------


class TestRunSummary:
    def test_counts_statuses(self) -> None:
        summary = RunSummary(total=3)
        for status in ["ROOFTOP", "ZERO_RESULTS", "ROOFTOP"]:
            summary.record(status)
        assert summary.processed == 3
        assert summary.as_dict() == {"ROOFTOP": 2, "ZERO_RESULTS": 1}
        assert json.loads(summary.format_table()) == {"ROOFTOP": 2, "ZERO_RESULTS": 1}


# ---------------------------------------------------------------------------
# GeocodePipeline
# ---------------------------------------------------------------------------


class TestGeocodePipeline:
    def test_persists_outcomes(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path, ["Paris", "NoSuchPlace12345"])
        client = _make_client({"Paris": _resolved(), "NoSuchPlace12345": ZeroResults(raw={})})

        summary = GeocodePipeline(store, client, ["city"]).run()

        assert summary.as_dict() == {"APPROXIMATE": 1, "ZERO_RESULTS": 1}
        paris, nowhere = store.find_all()
        assert paris["GeocodeCountry"] == "France"
        assert paris["GeocodeLocality"] == "Paris"
        assert paris["FullAddress"] == "Paris"
        assert nowhere["GeocodeStatus"] == "ZERO_RESULTS"
        assert "GeocodeLat" not in nowhere

    def test_geocode_error_isolated_to_one_record(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path, ["Paris", "Broken", "Lyon"])
        client = _make_client(
            {
                "Paris": _resolved(),
                "Broken": GeocodeError("Geocoder returned HTTP 500", raw="oops"),
                "Lyon": _resolved(),
            }
        )

        summary = GeocodePipeline(store, client, ["city"]).run()

        assert summary.processed == 3
        assert summary.as_dict() == {"APPROXIMATE": 2, ERROR_STATUS: 1}
        statuses = [r["GeocodeStatus"] for r in store.find_all()]
        assert statuses == ["APPROXIMATE", ERROR_STATUS, "APPROXIMATE"]
        assert store.find_all()[1]["GeocodeErrorMessage"] == "Geocoder returned HTTP 500"

    def test_malformed_response_marks_error(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path, ["Paris"])
        client = _make_client({"Paris": Malformed(raw={"status": "OK"}, reason="no results")})

        summary = GeocodePipeline(store, client, ["city"]).run()

        assert summary.as_dict() == {ERROR_STATUS: 1}
        assert store.find_all()[0]["GeocodeStatus"] == ERROR_STATUS

    def test_second_run_changes_nothing(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path, ["Paris", "NoSuchPlace12345"])
        client = _make_client({"Paris": _resolved(), "NoSuchPlace12345": ZeroResults(raw={})})
        GeocodePipeline(store, client, ["city"]).run()
        before = store.path.read_text(encoding="utf-8")

        summary = GeocodePipeline(store, client, ["city"]).run()

        assert summary.total == 0
        assert summary.as_dict() == {}
        assert client.geocode.call_count == 2
        assert store.path.read_text(encoding="utf-8") == before

    def test_error_records_are_not_retried(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path, ["Broken"])
        client = _make_client({"Broken": GeocodeError("down")})
        GeocodePipeline(store, client, ["city"]).run()
        GeocodePipeline(store, client, ["city"]).run()
        assert client.geocode.call_count == 1

    def test_store_write_failure_continues(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path, ["Paris", "Lyon"])
        client = _make_client({"Paris": _resolved(), "Lyon": _resolved()})
        first_id = store.find_unprocessed()[0][ID_FIELD]
        real_update = store.update

        def flaky_update(record_id: str, fields: dict) -> None:
            if record_id == first_id:
                raise StoreWriteError("disk full")
            real_update(record_id, fields)

        store.update = flaky_update  # type: ignore[method-assign]
        summary = GeocodePipeline(store, client, ["city"]).run()

        assert summary.as_dict() == {ERROR_STATUS: 1, "APPROXIMATE": 1}
        assert [r["city"] for r in store.find_unprocessed()] == ["Paris"]

    def test_throttle_after_each_record(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path, ["Paris", "Lyon", "Nice"])
        client = _make_client({c: _resolved() for c in ["Paris", "Lyon", "Nice"]})
        sleeps: list[float] = []

        GeocodePipeline(store, client, ["city"], throttle=ThrottlePolicy(0.5, sleep=sleeps.append)).run()

        assert sleeps == [0.5, 0.5, 0.5]

    def test_bad_component_types_do_not_abort_batch(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path, ["Paris", "NoSuchPlace12345"])
        bad = _paris_payload()
        bad["results"][0]["address_components"] = [{"long_name": "Paris", "types": [["locality"]]}]
        client = _make_client(
            {
                "Paris": decode_response(bad),
                "NoSuchPlace12345": decode_response({"status": "ZERO_RESULTS"}),
            }
        )

        summary = GeocodePipeline(store, client, ["city"]).run()

        assert summary.as_dict() == {ERROR_STATUS: 1, "ZERO_RESULTS": 1}
        assert [r["GeocodeStatus"] for r in store.find_all()] == [ERROR_STATUS, "ZERO_RESULTS"]

    def test_progress_callback(self, tmp_path: Path) -> None:
        store = _make_store(tmp_path, ["Paris", "Lyon"])
        client = _make_client({"Paris": _resolved(), "Lyon": _resolved()})
        calls: list[tuple[int, int]] = []

        GeocodePipeline(store, client, ["city"], progress=lambda d, t: calls.append((d, t))).run()

        assert calls == [(1, 2), (2, 2)]

    def test_address_built_from_field_order(self, tmp_path: Path) -> None:
        store = RecordStore(tmp_path / "s.jsonl")
        store.import_all([{"city": "Springfield", "state": "IL"}])
        client = _make_client({"Springfield, IL": ZeroResults(raw={})})

        GeocodePipeline(store, client, ["city", "state"]).run()

        client.geocode.assert_called_once_with("Springfield, IL")
        assert store.find_all()[0]["FullAddress"] == "Springfield, IL"


class TestThrottlePolicy:
    def test_zero_delay_does_not_sleep(self) -> None:
        sleeps: list[float] = []
        ThrottlePolicy(0, sleep=sleeps.append).wait()
        assert sleeps == []

    def test_negative_delay_rejected(self) -> None:
        with pytest.raises(InputValidationError):
            ThrottlePolicy(-1)

    def test_single_request_in_flight(self) -> None:
        assert ThrottlePolicy().max_in_flight == 1


# ---------------------------------------------------------------------------
# RecordGeocoder (end-to-end, mocked HTTP)
# ---------------------------------------------------------------------------


class TestRecordGeocoder:
    @rsps_lib.activate
    def test_end_to_end_json(self, cities_json: Path) -> None:
        _mock_geocoder()
        tool = RecordGeocoder(
            cities_json,
            ["city"],
            "json",
            client=GeocodeClient(host="geo.test", port=9000),
        )
        tool.run()

        output = cities_json.with_name("cities-output.json")
        records = json.loads(output.read_text(encoding="utf-8"))
        assert len(records) == 2
        paris, nowhere = records
        assert paris["GeocodeLat"] == 48.8566
        assert paris["GeocodeLng"] == 2.3522
        assert paris["GeocodeCountry"] == "France"
        assert nowhere["GeocodeStatus"] == "ZERO_RESULTS"
        assert nowhere.get("GeocodeLat") is None
        assert all("_id" not in r for r in records)
        assert tool.summary is not None
        assert tool.summary.as_dict() == {"APPROXIMATE": 1, "ZERO_RESULTS": 1}

    @rsps_lib.activate
    def test_success_report_counts_records(
        self, cities_json: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        _mock_geocoder()
        tool = RecordGeocoder(cities_json, ["city"], client=GeocodeClient(host="geo.test", port=9000))
        with caplog.at_level("INFO", logger="record_geocoder"):
            tool.run()
        assert "Geocoded 2 record(s), exported 2" in caplog.text

    @rsps_lib.activate
    def test_resume_from_database_skips_processed(self, cities_json: Path) -> None:
        _mock_geocoder()
        client = GeocodeClient(host="geo.test", port=9000)
        RecordGeocoder(cities_json, ["city"], "json", client=client).run()
        store_path = cities_json.with_name("cities.db.jsonl")
        assert store_path.exists()

        resumed = RecordGeocoder(None, ["city"], "json", database=store_path, client=client)
        resumed.run()

        assert resumed.summary is not None
        assert resumed.summary.as_dict() == {}
        assert len(rsps_lib.calls) == 2
        assert resumed.output_path == store_path.with_name("cities-output.json")

    def test_missing_input_file_raises(self, tmp_path: Path) -> None:
        tool = RecordGeocoder(tmp_path / "no_file.json", ["city"])
        with pytest.raises(InputValidationError):
            tool.run()

    def test_missing_database_raises(self, tmp_path: Path) -> None:
        tool = RecordGeocoder(None, ["city"], database=tmp_path / "gone.db.jsonl")
        with pytest.raises(InputValidationError):
            tool.run()

    def test_empty_field_list_raises(self, cities_json: Path) -> None:
        with pytest.raises(InputValidationError):
            RecordGeocoder(cities_json, []).run()

    def test_no_input_at_all_raises(self) -> None:
        with pytest.raises(InputValidationError):
            RecordGeocoder(None, ["city"])

    def test_import_failure_aborts(self, tmp_path: Path) -> None:
        path = tmp_path / "mixed.json"
        path.write_text(json.dumps([{"city": "Paris"}, 42]), encoding="utf-8")
        client = MagicMock(spec=GeocodeClient)
        with pytest.raises(RecordImportError):
            RecordGeocoder(path, ["city"], client=client).run()
        client.geocode.assert_not_called()
