"""
Test joining snapshots onto tracked keywords.
"""
import copy

from scsync.gsc_client import parse_search_console_item
from scsync.keyword_integrator import integrate_keyword_sc_data
from scsync.models import empty_sc_snapshot


def _snapshot_with(three=None, seven=None, thirty=None):
    data = empty_sc_snapshot()
    data["threeDays"] = three or []
    data["sevenDays"] = seven or []
    data["thirtyDays"] = thirty or []
    return data


SHOES_ROW = {"keyword": "shoes", "uid": "us:desktop:shoes", "clicks": 10, "impressions": 100,
             "ctr": 10, "position": 5, "country": "us", "device": "desktop", "page": ""}


def test_three_day_totals_and_average():
    keyword = {"keyword": "shoes", "country": "US", "device": "desktop"}
    result = integrate_keyword_sc_data(keyword, _snapshot_with(three=[SHOES_ROW]))

    sc_data = result["scData"]
    assert sc_data["impressions"]["threeDays"] == 100
    assert sc_data["impressions"]["avgThreeDays"] == 33
    assert sc_data["visits"]["threeDays"] == 10
    assert sc_data["visits"]["avgThreeDays"] == 3
    assert sc_data["ctr"]["threeDays"] == 10
    assert sc_data["ctr"]["avgThreeDays"] == 3.33
    assert sc_data["position"]["threeDays"] == 5
    assert sc_data["position"]["avgThreeDays"] == 2


def test_missing_windows_are_zero():
    keyword = {"keyword": "shoes", "country": "US", "device": "desktop"}
    result = integrate_keyword_sc_data(keyword, _snapshot_with(three=[SHOES_ROW]))

    for metric in ("impressions", "visits", "ctr", "position"):
        assert result["scData"][metric]["sevenDays"] == 0
        assert result["scData"][metric]["avgThirtyDays"] == 0
        assert result["scData"][metric]["yesterday"] == 0


def test_rounding():
    row = dict(SHOES_ROW, ctr=12.346, position=4.5, impressions=45, clicks=15)
    keyword = {"keyword": "shoes", "country": "US", "device": "desktop"}
    result = integrate_keyword_sc_data(keyword, _snapshot_with(thirty=[row]))

    sc_data = result["scData"]
    assert sc_data["ctr"]["thirtyDays"] == 12.35
    assert sc_data["position"]["thirtyDays"] == 5
    assert sc_data["impressions"]["avgThirtyDays"] == 2
    assert sc_data["visits"]["avgThirtyDays"] == 1


def test_join_uses_parser_uid():
    """A row parsed from the API joins onto the keyword with the same country/device/text."""
    raw = {"keys": ["blue running shoes", "MOBILE", "gbr", "https://example.com/"],
           "clicks": 7, "impressions": 70, "ctr": 0.1, "position": 3}
    item = parse_search_console_item(raw, "example.com")
    keyword = {"keyword": "blue running shoes", "country": "GB", "device": "mobile"}

    result = integrate_keyword_sc_data(keyword, _snapshot_with(seven=[item]))
    assert result["scData"]["impressions"]["sevenDays"] == 70
    assert result["scData"]["impressions"]["avgSevenDays"] == 10


def test_other_device_does_not_match():
    keyword = {"keyword": "shoes", "country": "US", "device": "mobile"}
    result = integrate_keyword_sc_data(keyword, _snapshot_with(three=[SHOES_ROW]))
    assert result["scData"]["impressions"]["threeDays"] == 0


def test_keyword_is_not_mutated():
    keyword = {"ID": 1, "keyword": "shoes", "country": "US", "device": "desktop", "position": 9}
    original = copy.deepcopy(keyword)

    result = integrate_keyword_sc_data(keyword, _snapshot_with(three=[SHOES_ROW]))

    assert keyword == original
    assert result is not keyword
    assert result["ID"] == 1
    assert result["position"] == 9


def test_missing_snapshot():
    keyword = {"keyword": "shoes", "country": "US", "device": "desktop"}
    result = integrate_keyword_sc_data(keyword, None)
    assert result["scData"]["visits"]["thirtyDays"] == 0
