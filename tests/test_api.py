"""
REST facade tests: /invoke and /query mapped onto submit and evaluate.
"""
import json
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

from qrledger.asset import sample_asset
from qrledger.chaincode import local
from qrledger.config import Config
from qrledger.gateway import api
from qrledger.gateway.fabric_client import FabricGateway

CHANNEL = {"channelid": "mychannel", "chaincodeid": "livestock"}


@pytest.fixture
def http():
    gateway = FabricGateway(None, None, None, Config(), connect=local.connect)
    api.app.dependency_overrides[api.get_gateway] = lambda: gateway
    yield TestClient(api.app)
    api.app.dependency_overrides.clear()
    gateway.close()


def _asset_json(product_id):
    return sample_asset(product_id).model_dump_json(by_alias=True, exclude={"doc_type"})


def test_health(http):
    assert http.get("/health").json() == {"status": "ok"}


def test_invoke_then_query(http):
    resp = http.post("/invoke", data={**CHANNEL, "function": "CreateAsset",
                                      "args": json.dumps([_asset_json("55")])})
    assert resp.status_code == 200, resp.text

    resp = http.get("/query", params={**CHANNEL, "function": "ReadAsset", "args": "55"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["function"] == "ReadAsset"
    assert body["result"]["productId"] == "55"
    assert body["result"]["docType"] == "asset"


def test_invoke_without_args(http):
    resp = http.post("/invoke", data={**CHANNEL, "function": "InitLedger"})
    assert resp.status_code == 200
    assert resp.json()["result"] is None

    resp = http.get("/query", params={**CHANNEL, "function": "GetAllAssets"})
    assert [a["productId"] for a in resp.json()["result"]] == ["0"]


def test_chaincode_failure_is_bad_gateway(http):
    resp = http.get("/query", params={**CHANNEL, "function": "ReadAsset", "args": '["nope"]'})
    assert resp.status_code == 502
    detail = resp.json()["detail"]
    assert "does not exist" in detail["error"]
    assert detail["code"] == "UNKNOWN"


def test_bad_args_are_rejected(http):
    resp = http.get("/query", params={**CHANNEL, "function": "ReadAsset", "args": "[1, 2"})
    assert resp.status_code == 400
    resp = http.get("/query", params={**CHANNEL, "function": "ReadAsset", "args": "[1, 2]"})
    assert resp.status_code == 400


def test_missing_channel_is_unprocessable(http):
    resp = http.get("/query", params={"chaincodeid": "livestock", "function": "GetAllAssets"})
    assert resp.status_code == 422


def test_parse_args():
    assert api.parse_args(None) == []
    assert api.parse_args("") == []
    assert api.parse_args("abc") == ["abc"]
    assert api.parse_args('["a", "b"]') == ["a", "b"]


def test_concurrent_requests_open_one_session(monkeypatch):
    opened = []
    release = threading.Event()

    def _slow_open(config):
        opened.append(config)
        release.wait(1)
        return FabricGateway(None, None, None, config, connect=local.connect)

    monkeypatch.setattr(api, "_gateway", None)
    monkeypatch.setattr(api, "open_gateway", _slow_open)
    monkeypatch.setattr(api, "configure_logging", lambda config: None)

    with ThreadPoolExecutor(max_workers=4) as pool:
        futures = [pool.submit(api.get_gateway) for _ in range(4)]
        release.set()
        sessions = {id(f.result(timeout=5)) for f in futures}

    assert len(opened) == 1
    assert len(sessions) == 1
    api.shutdown()
    assert api._gateway is None
