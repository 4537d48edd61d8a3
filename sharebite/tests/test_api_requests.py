"""
Request API tests
"""

import pytest

ITEMS = "/api/v1/food-items"
REQUESTS = "/api/v1/requests"


@pytest.fixture
def item_id(client, restaurant_headers):
    body = {"title": "Pizza Slices", "description": "Lunch leftovers", "quantity": "12", "expiryHours": 4}
    return client.post(ITEMS, json=body, headers=restaurant_headers).json()["data"]["id"]


@pytest.fixture
def request_ids(client, item_id, shelter_headers):
    """Requests from shelters B and C"""
    b = client.post(f"{ITEMS}/{item_id}/requests", headers=shelter_headers("shelter_b", "Shelter B"))
    c = client.post(f"{ITEMS}/{item_id}/requests", headers=shelter_headers("shelter_c", "Shelter C"))
    return b.json()["data"]["id"], c.json()["data"]["id"]


def review(client, request_id, decision, headers):
    return client.post(f"{REQUESTS}/{request_id}/review", json={"decision": decision}, headers=headers)


def statuses(client, item_id, headers):
    return {r["id"]: r["status"] for r in client.get(f"{ITEMS}/{item_id}/requests", headers=headers).json()}


class TestReview:
    """POST /requests/{id}/review"""

    def test_approve_declines_competitors(self, client, item_id, request_ids, restaurant_headers):
        b, c = request_ids

        response = review(client, b, "approved", restaurant_headers)

        assert response.status_code == 200
        assert response.json()["data"] == {"id": b, "status": "approved"}
        assert statuses(client, item_id, restaurant_headers) == {b: "approved", c: "declined"}
        item = client.get(f"{ITEMS}/{item_id}", headers=restaurant_headers).json()
        assert item["isAvailable"] is False

    def test_second_approval_conflicts(self, client, request_ids, restaurant_headers):
        b, c = request_ids
        review(client, b, "approved", restaurant_headers)

        response = review(client, c, "approved", restaurant_headers)

        assert response.status_code == 409
        assert response.json()["error_code"] == "ALREADY_ALLOCATED"

    def test_request_after_allocation(self, client, item_id, request_ids, restaurant_headers, shelter_headers):
        review(client, request_ids[0], "approved", restaurant_headers)

        response = client.post(f"{ITEMS}/{item_id}/requests", headers=shelter_headers("shelter_d", "Shelter D"))

        assert response.status_code == 409
        assert response.json()["error_code"] == "FOOD_ITEM_UNAVAILABLE"

    def test_decline_is_idempotent(self, client, item_id, request_ids, restaurant_headers):
        b, c = request_ids

        assert review(client, c, "declined", restaurant_headers).status_code == 200
        assert review(client, c, "declined", restaurant_headers).status_code == 200
        assert statuses(client, item_id, restaurant_headers) == {b: "requested", c: "declined"}

    def test_decline_approved_is_rejected(self, client, request_ids, restaurant_headers):
        review(client, request_ids[0], "approved", restaurant_headers)

        response = review(client, request_ids[0], "declined", restaurant_headers)

        assert response.status_code == 409
        body = response.json()
        assert body["error_code"] == "INVALID_TRANSITION"
        assert body["details"] == {"current_status": "approved", "target_status": "declined"}

    def test_invalid_decision(self, client, request_ids, restaurant_headers):
        response = review(client, request_ids[0], "maybe", restaurant_headers)

        assert response.status_code == 422

    def test_other_restaurant_cannot_review(self, client, request_ids, other_restaurant_headers):
        response = review(client, request_ids[0], "approved", other_restaurant_headers)

        assert response.status_code == 403

    def test_unknown_request(self, client, restaurant_headers):
        response = review(client, "missing", "approved", restaurant_headers)

        assert response.status_code == 404

    def test_shelter_cannot_review(self, client, request_ids, shelter_headers):
        response = review(client, request_ids[0], "approved", shelter_headers())

        assert response.status_code == 403


class TestPickup:
    """POST /requests/{id}/pickup"""

    def test_pickup_requires_approval(self, client, request_ids, restaurant_headers):
        response = client.post(f"{REQUESTS}/{request_ids[0]}/pickup", headers=restaurant_headers)

        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_TRANSITION"

    def test_pickup(self, client, item_id, request_ids, restaurant_headers):
        b, c = request_ids
        review(client, b, "approved", restaurant_headers)

        response = client.post(f"{REQUESTS}/{b}/pickup", headers=restaurant_headers)

        assert response.status_code == 200
        assert statuses(client, item_id, restaurant_headers) == {b: "picked_up", c: "declined"}
        mine = client.get(f"{ITEMS}/mine", headers=restaurant_headers).json()
        assert mine[0]["status"] == "picked_up"
        assert mine[0]["approvedRequest"]["id"] == b

    def test_pickup_twice(self, client, request_ids, restaurant_headers):
        review(client, request_ids[0], "approved", restaurant_headers)
        client.post(f"{REQUESTS}/{request_ids[0]}/pickup", headers=restaurant_headers)

        response = client.post(f"{REQUESTS}/{request_ids[0]}/pickup", headers=restaurant_headers)

        assert response.status_code == 409


class TestShelterRequests:
    """GET /requests/mine"""

    def test_joined_with_food_item(self, client, item_id, request_ids, shelter_headers):
        mine = client.get(f"{REQUESTS}/mine", headers=shelter_headers("shelter_b", "Shelter B")).json()

        assert len(mine) == 1
        assert mine[0]["id"] == request_ids[0]
        assert mine[0]["status"] == "requested"
        assert mine[0]["shelterName"] == "Shelter B"
        assert mine[0]["foodItem"]["id"] == item_id
        assert mine[0]["foodItem"]["restaurantName"] == "Luigi's Trattoria"

    def test_restaurant_forbidden(self, client, restaurant_headers):
        response = client.get(f"{REQUESTS}/mine", headers=restaurant_headers)

        assert response.status_code == 403


class TestApp:
    """Service endpoints"""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["name"] == "ShareBite API"
