from unittest.mock import MagicMock

import pytest
import requests

from core.inventory_api import InventoryAPI, InventoryAPIError

BASE_URL = "https://example.test/api"


def make_response(body=None, status=200, text=""):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.text = text
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def api(session):
    return InventoryAPI(BASE_URL + "/", token="secret", timeout_s=3, session=session)


def test_get_linen_by_epc(api, session):
    session.request.return_value = make_response({
        "success": True,
        "message": "ok",
        "data": [{
            "epc": "E200AAAA",
            "linenId": "L1",
            "linenName": "Bed Sheet",
            "customerId": "C1",
            "customerName": "General Hospital",
            "roomId": "R1",
            "roomName": "ICU",
            "statusId": 2,
            "status": "Clean",
        }],
    })

    records = api.get_linen_by_epc("E200AAAA")

    assert len(records) == 1
    record = records[0]
    assert record.linen_name == "Bed Sheet"
    assert record.customer_name == "General Hospital"
    assert record.status_id == 2

    session.request.assert_called_once_with(
        "GET",
        BASE_URL + "/Process/linen_rfid",
        params={"epc": "E200AAAA"},
        json=None,
        headers={"Authorization": "Bearer secret", "Content-Type": "application/json"},
        timeout=3,
    )


def test_get_linen_by_epc_unsuccessful_is_empty(api, session):
    session.request.return_value = make_response(
        {"success": False, "message": "not found", "data": None}
    )
    assert api.get_linen_by_epc("E200AAAA") == []


def test_http_error_raises(api, session):
    session.request.return_value = make_response(status=500, text="boom")

    with pytest.raises(InventoryAPIError) as excinfo:
        api.get_linen_by_epc("E200AAAA")

    assert excinfo.value.status_code == 500
    assert "500 - boom" in str(excinfo.value)


def test_network_error_raises(api, session):
    session.request.side_effect = requests.ConnectionError("refused")

    with pytest.raises(InventoryAPIError):
        api.get_customers()


def test_invalid_json_raises(api, session):
    session.request.return_value = make_response(ValueError("no json"))

    with pytest.raises(InventoryAPIError):
        api.get_customers()


def test_get_linens_by_customer(api, session):
    session.request.return_value = make_response({
        "success": True,
        "message": "ok",
        "data": [
            {"epc": "E200AAAA", "linenName": "Bed Sheet", "customerId": "C1"},
            {"epc": "E200BBBB", "linenName": "Towel", "customerId": "C1"},
        ],
    })

    records = api.get_linens_by_customer("C1")

    assert [r.epc for r in records] == ["E200AAAA", "E200BBBB"]
    _, kwargs = session.request.call_args
    assert kwargs["params"] == {"customerId": "C1"}


def test_get_customers_search(api, session):
    session.request.return_value = make_response({
        "success": True,
        "data": [
            {"customerId": "C1", "customerName": "General Hospital"},
            {"customerId": "C2", "customerName": "Sunrise Clinic"},
        ],
    })

    assert [c.customer_id for c in api.get_customers()] == ["C1", "C2"]
    assert [c.customer_id for c in api.get_customers("clinic")] == ["C2"]
    assert [c.customer_id for c in api.get_customers("c1")] == ["C1"]


def test_get_rooms_requires_customer(api, session):
    assert api.get_rooms("") == []
    session.request.assert_not_called()


def test_get_rooms(api, session):
    session.request.return_value = make_response({
        "success": True,
        "data": [
            {"roomId": "R1", "roomName": "ICU", "customerId": "C1"},
            {"roomId": "R2", "roomName": "Ward A", "customerId": "C1"},
        ],
    })

    rooms = api.get_rooms("C1", search="ward")

    assert [r.room_id for r in rooms] == ["R2"]
    _, kwargs = session.request.call_args
    assert kwargs["params"] == {"customerId": "C1"}


def test_get_unregistered_linens(api, session):
    session.request.return_value = make_response({
        "success": True,
        "data": [{"linenId": "L9", "linenName": "Blanket"}],
    })

    linens = api.get_unregistered_linens()

    assert linens[0].linen_id == "L9"
    args, _ = session.request.call_args
    assert args == ("GET", BASE_URL + "/Master/linen-unregistered")


@pytest.mark.parametrize("method_name, path", [
    ("submit_delivery", "/Process/Delivery"),
    ("register_rfid", "/Process/register_rfid"),
    ("submit_linen_clean", "/Process/linen_clean"),
])
def test_submits_post_payload(api, session, method_name, path):
    session.request.return_value = make_response({"success": True, "message": "Saved"})
    payload = {"customerId": "C1", "linens": [{"epc": "E200AAAA"}]}

    result = getattr(api, method_name)(payload)

    assert result["message"] == "Saved"
    args, kwargs = session.request.call_args
    assert args == ("POST", BASE_URL + path)
    assert kwargs["json"] == payload


def test_from_settings_prefers_env_token(monkeypatch):
    from config.settings import ApiSettings, TOKEN_ENV_VAR

    monkeypatch.setenv(TOKEN_ENV_VAR, "from-env")
    api = InventoryAPI.from_settings(ApiSettings(base_url=BASE_URL, token="from-file"))

    assert api.token == "from-env"
    assert api.base_url == BASE_URL
