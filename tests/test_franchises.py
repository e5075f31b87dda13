from conftest import auth_header, random_name


def create_franchise(client, token, admin_emails=()):
    return client.post(
        "/api/franchise",
        json={"name": f"franchise {random_name()}", "admins": [{"email": e} for e in admin_emails]},
        headers=auth_header(token),
    )


def test_create_franchise_requires_admin(client, register):
    _, token, _ = register()

    response = create_franchise(client, token)

    assert response.status_code == 403
    assert response.json() == {"message": "unable to create a franchise"}


def test_create_franchise(client, register, admin_token):
    franchisee, _, _ = register()

    response = create_franchise(client, admin_token, [franchisee["email"]])

    assert response.status_code == 200
    body = response.json()
    assert body["name"].startswith("franchise ")
    assert [a["email"] for a in body["admins"]] == [franchisee["email"]]
    assert body["admins"][0]["id"] == franchisee["id"]


def test_create_franchise_grants_franchisee_role(client, register, admin_token):
    franchisee, _, password = register()
    franchise = create_franchise(client, admin_token, [franchisee["email"]]).json()

    login = client.put("/api/auth", json={"email": franchisee["email"], "password": password}).json()

    assert {"role": "franchisee", "objectId": franchise["id"]} in login["user"]["roles"]


def test_create_franchise_unknown_admin(client, admin_token):
    response = create_franchise(client, admin_token, ["nobody@nowhere.test"])

    assert response.status_code == 404
    assert response.json() == {"message": "unknown user for franchisee email"}


def test_create_franchise_duplicate_name(client, admin_token):
    name = f"dupe {random_name()}"
    client.post("/api/franchise", json={"name": name, "admins": []}, headers=auth_header(admin_token))

    response = client.post("/api/franchise", json={"name": name, "admins": []}, headers=auth_header(admin_token))

    assert response.status_code == 400


# =============================================================================
# LISTING
# =============================================================================

def test_list_franchises_anonymous(client, franchise_setup):
    name = franchise_setup["franchise"]["name"]

    response = client.get("/api/franchise", params={"name": name})

    assert response.status_code == 200
    body = response.json()
    assert body["more"] is False
    [listed] = body["franchises"]
    assert listed["name"] == name
    assert "admins" not in listed
    assert listed["stores"] == [{"id": franchise_setup["store"]["id"], "name": "SLC"}]


def test_list_franchises_as_admin(client, franchise_setup, admin_token):
    name = franchise_setup["franchise"]["name"]

    response = client.get("/api/franchise", params={"name": name}, headers=auth_header(admin_token))

    [listed] = response.json()["franchises"]
    assert [a["email"] for a in listed["admins"]] == [franchise_setup["franchisee"]["email"]]
    assert listed["stores"][0]["totalRevenue"] == 0


def test_list_franchises_wildcard_and_paging(client, admin_token):
    tag = random_name()
    for i in range(3):
        client.post("/api/franchise", json={"name": f"chain {tag} {i}", "admins": []},
                    headers=auth_header(admin_token))

    first = client.get("/api/franchise", params={"name": f"chain {tag}*", "limit": 2, "page": 1}).json()
    second = client.get("/api/franchise", params={"name": f"chain {tag}*", "limit": 2, "page": 2}).json()

    assert [f["name"] for f in first["franchises"]] == [f"chain {tag} 0", f"chain {tag} 1"]
    assert first["more"] is True
    assert [f["name"] for f in second["franchises"]] == [f"chain {tag} 2"]
    assert second["more"] is False


def test_user_franchises(client, franchise_setup, register, admin_token):
    franchisee = franchise_setup["franchisee"]
    path = f"/api/franchise/{franchisee['id']}"

    own = client.get(path, headers=auth_header(franchise_setup["franchisee_token"]))
    assert own.status_code == 200
    assert [f["id"] for f in own.json()] == [franchise_setup["franchise"]["id"]]
    assert own.json()[0]["admins"][0]["email"] == franchisee["email"]

    _, stranger_token, _ = register()
    assert client.get(path, headers=auth_header(stranger_token)).json() == []

    as_admin = client.get(path, headers=auth_header(admin_token))
    assert [f["id"] for f in as_admin.json()] == [franchise_setup["franchise"]["id"]]


def test_user_franchises_anonymous(client, franchise_setup):
    response = client.get(f"/api/franchise/{franchise_setup['franchisee']['id']}")

    assert response.status_code == 401


# =============================================================================
# STORES
# =============================================================================

def test_create_store(client, franchise_setup):
    store = franchise_setup["store"]

    assert store["name"] == "SLC"
    assert store["franchiseId"] == franchise_setup["franchise"]["id"]
    assert store["address"] == "1 Main St"
    assert store["phone"] == "555-0100"


def test_create_store_as_admin(client, franchise_setup, admin_token):
    franchise_id = franchise_setup["franchise"]["id"]

    response = client.post(f"/api/franchise/{franchise_id}/store", json={"name": "Provo"},
                           headers=auth_header(admin_token))

    assert response.status_code == 200
    assert response.json()["name"] == "Provo"
    assert response.json()["address"] is None


def test_create_store_by_other_diner(client, franchise_setup, register):
    _, token, _ = register()
    franchise_id = franchise_setup["franchise"]["id"]

    response = client.post(f"/api/franchise/{franchise_id}/store", json={"name": "Nope"},
                           headers=auth_header(token))

    assert response.status_code == 403
    assert response.json() == {"message": "unable to create a store"}


def test_create_store_anonymous(client, franchise_setup):
    franchise_id = franchise_setup["franchise"]["id"]

    response = client.post(f"/api/franchise/{franchise_id}/store", json={"name": "Nope"})

    assert response.status_code == 401


def test_create_store_unknown_franchise(client, admin_token):
    response = client.post("/api/franchise/987654/store", json={"name": "Ghost"}, headers=auth_header(admin_token))

    assert response.status_code == 403


def test_delete_unknown_store(client, franchise_setup):
    franchise_id = franchise_setup["franchise"]["id"]

    response = client.delete(f"/api/franchise/{franchise_id}/store/987654",
                             headers=auth_header(franchise_setup["franchisee_token"]))

    assert response.status_code == 403
    assert response.json() == {"message": "unable to delete a store"}


def test_delete_store_by_other_diner(client, franchise_setup, register):
    _, token, _ = register()
    franchise_id = franchise_setup["franchise"]["id"]
    store_id = franchise_setup["store"]["id"]

    response = client.delete(f"/api/franchise/{franchise_id}/store/{store_id}", headers=auth_header(token))

    assert response.status_code == 403


def test_delete_store(client, franchise_setup):
    franchise = franchise_setup["franchise"]
    store_id = franchise_setup["store"]["id"]

    response = client.delete(f"/api/franchise/{franchise['id']}/store/{store_id}",
                             headers=auth_header(franchise_setup["franchisee_token"]))

    assert response.status_code == 200
    assert response.json() == {"message": "store deleted"}
    listed = client.get("/api/franchise", params={"name": franchise["name"]}).json()["franchises"]
    assert listed[0]["stores"] == []


# =============================================================================
# DELETE FRANCHISE
# =============================================================================

def test_delete_franchise_requires_admin(client, franchise_setup):
    franchise_id = franchise_setup["franchise"]["id"]

    response = client.delete(f"/api/franchise/{franchise_id}",
                             headers=auth_header(franchise_setup["franchisee_token"]))

    assert response.status_code == 403
    assert response.json() == {"message": "unable to delete a franchise"}


def test_delete_franchise(client, franchise_setup, admin_token):
    franchise = franchise_setup["franchise"]

    response = client.delete(f"/api/franchise/{franchise['id']}", headers=auth_header(admin_token))

    assert response.status_code == 200
    assert response.json() == {"message": "franchise deleted"}
    assert client.get("/api/franchise", params={"name": franchise["name"]}).json()["franchises"] == []
    assert client.get(f"/api/franchise/{franchise_setup['franchisee']['id']}",
                      headers=auth_header(admin_token)).json() == []


def test_store_revenue_after_order(client, franchise_setup, register, admin_token):
    _, diner_token, _ = register()
    menu_item = franchise_setup["menu_item"]
    order = {
        "franchiseId": franchise_setup["franchise"]["id"],
        "storeId": franchise_setup["store"]["id"],
        "items": [{"menuId": menu_item["id"], "description": menu_item["title"], "price": 0.05}] * 2,
    }
    assert client.post("/api/order", json=order, headers=auth_header(diner_token)).status_code == 200

    response = client.get("/api/franchise", params={"name": franchise_setup["franchise"]["name"]},
                          headers=auth_header(admin_token))

    [store] = response.json()["franchises"][0]["stores"]
    assert abs(store["totalRevenue"] - 0.1) < 1e-9


def test_delete_franchise_and_store_anonymous(client, franchise_setup):
    franchise_id = franchise_setup["franchise"]["id"]
    store_id = franchise_setup["store"]["id"]

    assert client.delete(f"/api/franchise/{franchise_id}/store/{store_id}").status_code == 401
    assert client.delete(f"/api/franchise/{franchise_id}").status_code == 401
    assert client.post("/api/franchise", json={"name": "anonymous", "admins": []}).status_code == 401


def test_franchisee_token_carries_scoped_role(client, register, admin_token):
    franchisee, _, password = register()
    franchise = create_franchise(client, admin_token, [franchisee["email"]]).json()
    token = client.put("/api/auth", json={"email": franchisee["email"], "password": password}).json()["token"]

    me = client.get("/api/user/me", headers=auth_header(token)).json()

    assert {"role": "diner", "objectId": None} in me["roles"]
    assert {"role": "franchisee", "objectId": franchise["id"]} in me["roles"]
