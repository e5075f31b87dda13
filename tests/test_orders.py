from conftest import auth_header, expect_valid_jwt

from pizza_service.services.factory import FulfillmentResult, get_factory_service


def order_payload(franchise_setup, count=1):
    menu_item = franchise_setup["menu_item"]
    return {
        "franchiseId": franchise_setup["franchise"]["id"],
        "storeId": franchise_setup["store"]["id"],
        "items": [{"menuId": menu_item["id"], "description": menu_item["title"], "price": menu_item["price"]}] * count,
    }


# =============================================================================
# MENU
# =============================================================================

def test_get_menu_is_public(client, franchise_setup):
    response = client.get("/api/order/menu")

    assert response.status_code == 200
    assert franchise_setup["menu_item"] in response.json()


def test_add_menu_item(client, admin_token):
    item = {"title": "Student", "description": "No topping, no sauce, just carbs",
            "image": "pizza9.png", "price": 0.0001}

    response = client.put("/api/order/menu", json=item, headers=auth_header(admin_token))

    assert response.status_code == 200
    added = response.json()[-1]
    assert {k: added[k] for k in item} == item
    assert isinstance(added["id"], int)


def test_add_menu_item_anonymous(client):
    response = client.put("/api/order/menu", json={"title": "Free", "price": 0})

    assert response.status_code == 401


def test_add_menu_item_as_diner(client, register):
    _, token, _ = register()

    response = client.put("/api/order/menu", json={"title": "Free", "price": 0}, headers=auth_header(token))

    assert response.status_code == 403
    assert response.json() == {"message": "unable to add menu item"}


# =============================================================================
# ORDERS
# =============================================================================

def test_create_order(client, app, franchise_setup, register):
    diner, token, _ = register()
    payload = order_payload(franchise_setup, count=2)

    response = client.post("/api/order", json=payload, headers=auth_header(token))

    assert response.status_code == 200
    body = response.json()
    order = body["order"]
    assert order["franchiseId"] == payload["franchiseId"]
    assert order["storeId"] == payload["storeId"]
    assert [{k: i[k] for k in ("menuId", "description", "price")} for i in order["items"]] == payload["items"]

    expect_valid_jwt(body["jwt"])
    assert body["jwt"] != token
    claims = app.state.factory_service.verify(body["jwt"])
    assert claims["diner"] == {"id": diner["id"], "name": diner["name"], "email": diner["email"]}
    assert claims["order"]["id"] == order["id"]


def test_create_order_anonymous(client, franchise_setup):
    response = client.post("/api/order", json=order_payload(franchise_setup))

    assert response.status_code == 401


def test_create_order_unknown_menu_item(client, franchise_setup, register):
    _, token, _ = register()
    payload = order_payload(franchise_setup)
    payload["items"][0] = {"menuId": 987654, "description": "ghost", "price": 1}

    response = client.post("/api/order", json=payload, headers=auth_header(token))

    assert response.status_code == 404
    assert response.json() == {"message": "unknown menu item"}


def test_create_order_store_of_other_franchise(client, franchise_setup, register):
    _, token, _ = register()
    payload = {**order_payload(franchise_setup), "storeId": 987654}

    response = client.post("/api/order", json=payload, headers=auth_header(token))

    assert response.status_code == 404


def test_create_order_without_items(client, franchise_setup, register):
    _, token, _ = register()
    payload = {**order_payload(franchise_setup), "items": []}

    response = client.post("/api/order", json=payload, headers=auth_header(token))

    assert response.status_code == 400


def test_list_orders(client, franchise_setup, register):
    diner, token, _ = register()
    _, other_token, _ = register()
    first = client.post("/api/order", json=order_payload(franchise_setup), headers=auth_header(token)).json()
    second = client.post("/api/order", json=order_payload(franchise_setup, 3), headers=auth_header(token)).json()
    client.post("/api/order", json=order_payload(franchise_setup), headers=auth_header(other_token))

    response = client.get("/api/order", headers=auth_header(token))

    assert response.status_code == 200
    body = response.json()
    assert body["dinerId"] == diner["id"]
    assert body["page"] == 1
    assert [o["id"] for o in body["orders"]] == [second["order"]["id"], first["order"]["id"]]
    assert len(body["orders"][0]["items"]) == 3


def test_list_orders_empty(client, register):
    _, token, _ = register()

    response = client.get("/api/order", params={"page": 2}, headers=auth_header(token))

    assert response.json()["orders"] == []
    assert response.json()["page"] == 2


def test_list_orders_anonymous(client):
    assert client.get("/api/order").status_code == 401


class RefusingFactory:
    provider_name = "refusing"

    async def fulfill_order(self, diner, order):
        return FulfillmentResult(success=False, report_url="https://factory.test/report/1",
                                 error_message="oven on fire")

    async def health_check(self):
        return False


def test_factory_failure(client, app, franchise_setup, register):
    _, token, _ = register()
    app.dependency_overrides[get_factory_service] = RefusingFactory
    try:
        response = client.post("/api/order", json=order_payload(franchise_setup), headers=auth_header(token))
    finally:
        app.dependency_overrides.pop(get_factory_service, None)

    assert response.status_code == 500
    assert response.json() == {
        "message": "Failed to fulfill order at factory",
        "reportUrl": "https://factory.test/report/1",
    }
    # the order is kept even though the factory refused it
    assert len(client.get("/api/order", headers=auth_header(token)).json()["orders"]) == 1
