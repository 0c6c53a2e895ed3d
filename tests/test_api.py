from jose import jwt

from buylock.core.client_context import get_guest_cart
from buylock.core.client_storage import InMemoryStorage
from buylock.core.config import get_settings
from buylock.main import app
from buylock.services.guest_cart_service import GuestCartStore
from buylock.utils.currency import FALLBACK_RATES

API = "/api/v1"
GUEST = {"X-Guest-Id": "guest-abc"}


def _add(client, headers=GUEST, **payload):
    return client.post(f"{API}/guest-cart", json=payload, headers=headers)


# -------- Health --------


def test_root(client):
    assert client.get("/").json() == {"status": "ok", "service": "buylock-backend"}


# -------- Currency --------


def test_exchange_rates(client, rate_service):
    response = client.get(f"{API}/exchange-rates")

    assert response.status_code == 200
    assert response.json() == rate_service.rates
    assert rate_service.calls == 1


def test_exchange_rates_fall_back_when_upstream_is_down(client, rate_service):
    rate_service.fail = True
    assert client.get(f"{API}/exchange-rates").json() == FALLBACK_RATES


def test_list_currencies(client):
    codes = [c["code"] for c in client.get(f"{API}/currencies").json()]
    assert codes == ["KES", "USD", "EUR", "GBP", "ZAR"]


def test_currency_requires_guest_id(client):
    assert client.get(f"{API}/currency").status_code == 400


def test_default_currency_state(client, rate_service):
    body = client.get(f"{API}/currency", headers=GUEST).json()

    assert body["current"]["code"] == "KES"
    assert body["rates"]["USD"] == rate_service.rates["USD"]
    assert body["is_loading"] is False


def test_rates_are_cached_per_client(client, rate_service):
    client.get(f"{API}/currency", headers=GUEST)
    client.get(f"{API}/currency", headers=GUEST)
    assert rate_service.calls == 1

    client.get(f"{API}/currency", headers={"X-Guest-Id": "someone-else"})
    assert rate_service.calls == 2


def test_upstream_outage_is_not_cached_per_client(client, rate_service):
    rate_service.fail = True
    body = client.get(f"{API}/currency", headers=GUEST).json()
    assert body["rates"] == FALLBACK_RATES

    rate_service.fail = False
    body = client.get(f"{API}/currency", headers=GUEST).json()
    assert body["rates"] == rate_service.rates
    assert rate_service.calls == 2


def test_select_currency_is_remembered(client):
    response = client.put(f"{API}/currency", json={"code": "usd"}, headers=GUEST)
    assert response.status_code == 200
    assert response.json()["current"]["symbol"] == "$"

    assert client.get(f"{API}/currency", headers=GUEST).json()["current"]["code"] == "USD"
    other = client.get(f"{API}/currency", headers={"X-Guest-Id": "guest-xyz"}).json()
    assert other["current"]["code"] == "KES"


def test_select_unknown_currency(client):
    response = client.put(f"{API}/currency", json={"code": "XYZ"}, headers=GUEST)
    assert response.status_code == 400


def test_convert(client):
    client.put(f"{API}/currency", json={"code": "USD"}, headers=GUEST)

    body = client.get(f"{API}/currency/convert", params={"amount": "1000"}, headers=GUEST).json()

    assert abs(body["converted"] - 7.7) < 1e-9
    assert body["formatted"] == "$ 7.70"
    assert body["currency"] == "USD"


def test_convert_non_numeric_amount(client):
    body = client.get(
        f"{API}/currency/convert", params={"amount": "abc"}, headers=GUEST
    ).json()

    assert body["converted"] is None
    assert body["formatted"] == "KES 0"


def test_convert_unknown_source_currency(client):
    response = client.get(
        f"{API}/currency/convert",
        params={"amount": "10", "from_currency": "BTC"},
        headers=GUEST,
    )
    assert response.status_code == 400


# -------- Guest cart --------


def test_empty_guest_cart(client):
    body = client.get(f"{API}/guest-cart", headers=GUEST).json()

    assert body["items"] == []
    assert body["total_quantity"] == 0
    assert body["formatted_total"] == "KES 0"
    assert body["has_only_services"] is False


def test_add_merges_same_product(client):
    _add(client, product_id="p1", quantity=2, product={"price": "100"})
    body = _add(client, product_id="p1", quantity=3, product={"price": "100"}).json()

    assert len(body["items"]) == 1
    assert body["items"][0]["quantity"] == 5
    assert body["total_price"] == 500


def test_add_rejects_non_positive_quantity(client):
    assert _add(client, product_id="p1", quantity=0).status_code == 422


def test_totals_in_selected_currency(client):
    _add(client, product_id="p1", quantity=2, product={"price": "100"})
    _add(client, product_id="p2", quantity=3, product={"price": "200"})
    client.put(f"{API}/currency", json={"code": "USD"}, headers=GUEST)

    body = client.get(f"{API}/guest-cart", headers=GUEST).json()

    assert body["total_quantity"] == 5
    assert body["total_price"] == 800
    assert body["currency"] == "USD"
    assert body["formatted_total"] == "$ 6.16"


def test_update_and_remove_lines(client):
    first = _add(client, product_id="p1", quantity=2).json()["items"][0]["id"]
    second = _add(client, service_id="s1", quantity=1).json()["items"][1]["id"]

    body = client.patch(
        f"{API}/guest-cart/{first}", json={"quantity": -1}, headers=GUEST
    ).json()
    assert [i["id"] for i in body["items"]] == [second]
    assert body["has_only_services"] is True

    body = client.delete(f"{API}/guest-cart/{second}", headers=GUEST).json()
    assert body["items"] == []

    assert client.delete(f"{API}/guest-cart/unknown", headers=GUEST).status_code == 200


def test_clear_guest_cart(client):
    _add(client, product_id="p1", quantity=2)

    body = client.delete(f"{API}/guest-cart", headers=GUEST).json()

    assert body["items"] == []
    assert client.get(f"{API}/guest-cart", headers=GUEST).json()["total_quantity"] == 0


def test_guest_carts_are_isolated(client):
    _add(client, product_id="p1", quantity=2)
    other = client.get(f"{API}/guest-cart", headers={"X-Guest-Id": "guest-2"}).json()
    assert other["items"] == []


def test_guest_cart_rejects_logged_in_customers(client):
    token = jwt.encode({"sub": "user-1"}, get_settings().JWT_SECRET, algorithm="HS256")
    headers = {**GUEST, "Authorization": f"Bearer {token}"}

    assert client.get(f"{API}/guest-cart", headers=headers).status_code == 403


def test_guest_cart_rejects_invalid_token(client):
    headers = {**GUEST, "Authorization": "Bearer not-a-jwt"}
    assert client.get(f"{API}/guest-cart", headers=headers).status_code == 401


def test_base_currency_cart_requests_skip_rate_loading(client, rate_service):
    _add(client, product_id="p1", quantity=2, product={"price": "100"})
    client.get(f"{API}/guest-cart", headers=GUEST)
    client.delete(f"{API}/guest-cart", headers=GUEST)

    assert rate_service.calls == 0


def test_foreign_currency_cart_loads_rates_once_per_client(client, rate_service):
    client.put(f"{API}/currency", json={"code": "EUR"}, headers=GUEST)
    calls_after_select = rate_service.calls

    _add(client, product_id="p1", quantity=1, product={"price": "1000"})
    client.get(f"{API}/guest-cart", headers=GUEST)

    assert calls_after_select == 1
    assert rate_service.calls == 1


class ReadOnlyStorage(InMemoryStorage):
    def set_item(self, key, value):
        raise OSError("disk full")

    def remove_item(self, key):
        raise OSError("disk full")


def test_failed_cart_write_returns_503(client):
    storage = ReadOnlyStorage()
    app.dependency_overrides[get_guest_cart] = lambda: GuestCartStore(storage)

    response = _add(client, product_id="p1", quantity=1)
    assert response.status_code == 503

    assert client.delete(f"{API}/guest-cart", headers=GUEST).status_code == 503
    assert storage.get_item("buylock_guest_cart") is None


def test_convert_without_symbol(client):
    body = client.get(
        f"{API}/currency/convert",
        params={"amount": "1234567", "show_symbol": "false"},
        headers=GUEST,
    ).json()

    assert body["formatted"] == "1,234,567"


def test_snapshot_names_use_kes_labels(client):
    body = _add(
        client, product_id="p1", quantity=1, product={"name": "Mandazi (KSh 50)", "price": "50"}
    ).json()

    assert body["items"][0]["product"]["name"] == "Mandazi (KES 50)"
