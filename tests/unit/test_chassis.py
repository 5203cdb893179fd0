"""Unit tests for asm_provider.client.chassis and asm_provider.client.http."""

from __future__ import annotations

import json

import pytest
import requests
import responses as rsps_lib
from responses import matchers

from asm_provider.client.chassis import ChassisClient
from asm_provider.client.errors import (
    ApplyError,
    ASMParseError,
    ASMRequestError,
    ASMResponseError,
    ResourceConflictError,
    SwitchConfigurationError,
)
from asm_provider.client.http import ASMHTTP, _normalise_base_url
from asm_provider.model.uplink import ChassisIom

BASE_URL = "http://asm.example:9080/AsmManager/Chassis"
CHASSIS_URL = f"{BASE_URL}/"

INVENTORY = [
    {
        "serviceTag": "CHS0001",
        "ioms": [
            {"slot": 1, "model": "PowerEdge M I/O Aggregator", "managementIP": "172.17.9.170", "serviceTag": "IOM1"},
            {"slot": "2", "model": "PowerEdge M I/O Aggregator", "managementIP": "", "serviceTag": "IOM2"},
        ],
    }
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _client() -> ChassisClient:
    return ChassisClient(base_url=BASE_URL)


def _filter(tag: str) -> list[object]:
    return [matchers.query_param_matcher({"filter": f"eq,serviceTag,{tag}"})]


# ---------------------------------------------------------------------------
# errors.py
# ---------------------------------------------------------------------------

def test_conflict_error_message() -> None:
    err = ResourceConflictError("force10_vlan", "18", "dell_ftos-172.17.9.10")
    assert str(err) == "force10_vlan[18] is already being managed on dell_ftos-172.17.9.10"


def test_apply_error_wraps_cause() -> None:
    cause = RuntimeError("catalog failed")
    err = ApplyError("dell_iom-172.17.9.171", cause)
    assert err.cause is cause
    assert "dell_iom-172.17.9.171" in str(err)


def test_switch_configuration_error_lists_switches() -> None:
    err = SwitchConfigurationError({"b": RuntimeError(), "a": RuntimeError()})
    assert str(err) == "Switch configuration failed for a, b"


# ---------------------------------------------------------------------------
# http.py
# ---------------------------------------------------------------------------

def test_normalise_base_url_strips_slash() -> None:
    assert _normalise_base_url("http://asm.example/") == "http://asm.example"


def test_normalise_base_url_adds_scheme() -> None:
    assert _normalise_base_url("asm.example:9080") == "http://asm.example:9080"


@rsps_lib.activate
def test_http_sends_json_accept_and_user_agent() -> None:
    rsps_lib.add(rsps_lib.GET, f"{BASE_URL}/x", json={}, status=200)
    with ASMHTTP(BASE_URL) as http:
        http.get("/x")
    headers = rsps_lib.calls[0].request.headers
    assert headers["Accept"] == "application/json"
    assert headers["User-Agent"].startswith("asm-provider/")


@rsps_lib.activate
def test_http_non2xx_raises_response_error() -> None:
    rsps_lib.add(rsps_lib.GET, f"{BASE_URL}/x", status=404)
    with pytest.raises(ASMResponseError) as exc_info:
        ASMHTTP(BASE_URL).get("/x")
    assert exc_info.value.status_code == 404


@rsps_lib.activate
def test_http_connection_error_raises_request_error() -> None:
    rsps_lib.add(rsps_lib.GET, f"{BASE_URL}/x", body=requests.exceptions.ConnectionError("refused"))
    with pytest.raises(ASMRequestError):
        ASMHTTP(BASE_URL).get("/x")


@rsps_lib.activate
def test_http_get_json_decodes_body() -> None:
    rsps_lib.add(rsps_lib.GET, f"{BASE_URL}/x", json=[{"serviceTag": "CHS0001"}], status=200)
    assert ASMHTTP(BASE_URL).get_json("/x") == [{"serviceTag": "CHS0001"}]


@rsps_lib.activate
def test_http_get_json_rejects_html() -> None:
    rsps_lib.add(rsps_lib.GET, f"{BASE_URL}/x", body="<html/>", status=200, content_type="text/html")
    with pytest.raises(ASMParseError, match="text/html"):
        ASMHTTP(BASE_URL).get_json("/x")


# ---------------------------------------------------------------------------
# chassis.py
# ---------------------------------------------------------------------------

@rsps_lib.activate
def test_chassis_ioms_parsed() -> None:
    rsps_lib.add(rsps_lib.GET, CHASSIS_URL, json=INVENTORY, status=200, match=_filter("CHS0001"))
    ioms = _client().chassis_ioms("CHS0001")
    assert ioms == [
        ChassisIom(1, "PowerEdge M I/O Aggregator", "172.17.9.170", "IOM1"),
        ChassisIom(2, "PowerEdge M I/O Aggregator", None, "IOM2"),
    ]


@rsps_lib.activate
def test_chassis_without_ioms() -> None:
    rsps_lib.add(rsps_lib.GET, CHASSIS_URL, json=[{"serviceTag": "CHS0002"}], status=200)
    assert _client().chassis_ioms("CHS0002") == []


@rsps_lib.activate
def test_unknown_chassis_raises_parse_error() -> None:
    rsps_lib.add(rsps_lib.GET, CHASSIS_URL, json=[], status=200)
    with pytest.raises(ASMParseError, match="CHS9999"):
        _client().cmc_inventory("CHS9999")


@rsps_lib.activate
def test_non_json_inventory_raises_parse_error() -> None:
    rsps_lib.add(rsps_lib.GET, CHASSIS_URL, body="<html/>", status=200)
    with pytest.raises(ASMParseError):
        _client().cmc_inventory("CHS0001")


@rsps_lib.activate
def test_inventory_server_error() -> None:
    rsps_lib.add(rsps_lib.GET, CHASSIS_URL, body=json.dumps({"error": "boom"}), status=500)
    with pytest.raises(ASMResponseError):
        _client().cmc_inventory("CHS0001")


def test_client_from_optional_args() -> None:
    client = ChassisClient.from_optional_args({"chassis_ra_url": "asm.example:9080/Chassis/", "timeout": 5})
    assert client.base_url == "http://asm.example:9080/Chassis"


def test_client_from_empty_optional_args() -> None:
    assert ChassisClient.from_optional_args(None).base_url == "http://localhost:9080/AsmManager/Chassis"
