"""API tests for restaurants, menus, menu items and favorites."""

import pytest
from decimal import Decimal

API = "/api/v1"


class TestBrowse:
    def test_list_active_restaurants(self, client, restaurant, other_restaurant, db_session):
        other_restaurant.is_active = False
        db_session.commit()
        res = client.get(f"{API}/restaurants")
        assert res.status_code == 200
        data = res.json()
        assert data["total"] == 1
        assert data["items"][0]["name"] == "Pizza Palace"
        assert data["has_more"] is False

    def test_filter_by_cuisine(self, client, restaurant, other_restaurant):
        res = client.get(f"{API}/restaurants", params={"cuisine": "Japanese"})
        assert [r["name"] for r in res.json()["items"]] == ["Sushi Corner"]

    def test_search(self, client, restaurant, other_restaurant):
        res = client.get(f"{API}/restaurants", params={"search": "pizza"})
        assert [r["name"] for r in res.json()["items"]] == ["Pizza Palace"]

    def test_paging(self, client, restaurant, other_restaurant):
        res = client.get(f"{API}/restaurants", params={"limit": 1, "sort_by": "name"})
        data = res.json()
        assert data["total"] == 2
        assert len(data["items"]) == 1
        assert data["has_more"] is True
        assert data["items"][0]["name"] == "Pizza Palace"

    def test_bad_limit(self, client):
        assert client.get(f"{API}/restaurants", params={"limit": 0}).status_code == 400

    def test_featured(self, client, restaurant, other_restaurant):
        res = client.get(f"{API}/restaurants/featured")
        assert [r["id"] for r in res.json()] == [restaurant.id]

    def test_detail_and_missing(self, client, restaurant):
        assert client.get(f"{API}/restaurants/{restaurant.id}").json()["name"] == "Pizza Palace"
        assert client.get(f"{API}/restaurants/999").status_code == 404

    def test_menu_grouped_and_available_only(self, client, restaurant, menu):
        res = client.get(f"{API}/restaurants/{restaurant.id}/menu")
        assert res.status_code == 200
        categories = res.json()["categories"]
        assert set(categories) == {"pizza", "salads"}
        pizza = categories["pizza"][0]
        assert [v["name"] for v in pizza["variants"]] == ["Regular", "Large"]
        assert Decimal(pizza["price"]) == Decimal("16.99")


class TestManageMenu:
    def test_admin_creates_restaurant(self, client, admin_headers):
        res = client.post(f"{API}/restaurants", json={
            "name": "Taco Town", "cuisines": ["Mexican"], "delivery_fee": "1.99",
        }, headers=admin_headers)
        assert res.status_code == 201
        assert Decimal(res.json()["delivery_fee"]) == Decimal("1.99")
        assert res.json()["is_active"] is True

    def test_staff_adds_menu_item(self, client, restaurant, staff_headers):
        res = client.post(f"{API}/restaurants/{restaurant.id}/menu", json={
            "name": "Garlic Bread",
            "category": "sides",
            "price": "4.50",
            "customizations": [{
                "name": "Dip", "type": "single", "required": False,
                "options": [{"name": "Marinara", "price": "0.75"}],
            }],
        }, headers=staff_headers)
        assert res.status_code == 201, res.text
        assert res.json()["customizations"][0]["options"][0]["name"] == "Marinara"

    def test_staff_cannot_touch_other_restaurant(self, client, other_restaurant, staff_headers):
        res = client.post(f"{API}/restaurants/{other_restaurant.id}/menu", json={
            "name": "Intruder Roll", "price": "5.00",
        }, headers=staff_headers)
        assert res.status_code == 403

    def test_customer_cannot_add_menu_item(self, client, restaurant, customer_headers):
        res = client.post(f"{API}/restaurants/{restaurant.id}/menu", json={
            "name": "Sneaky", "price": "1.00",
        }, headers=customer_headers)
        assert res.status_code == 403

    def test_update_price_and_availability(self, client, menu, staff_headers):
        res = client.patch(f"{API}/menu-items/{menu['salad'].id}",
                           json={"price": "9.25", "is_available": False}, headers=staff_headers)
        assert res.status_code == 200
        assert Decimal(res.json()["price"]) == Decimal("9.25")
        assert res.json()["is_available"] is False

    def test_update_negative_price_rejected(self, client, menu, staff_headers):
        res = client.patch(f"{API}/menu-items/{menu['salad'].id}", json={"price": "-1"}, headers=staff_headers)
        assert res.status_code == 400

    def test_update_other_restaurant_item(self, client, menu, staff_headers):
        res = client.patch(f"{API}/menu-items/{menu['sushi'].id}", json={"price": "1.00"}, headers=staff_headers)
        assert res.status_code == 403


class TestFavorites:
    def test_add_and_remove(self, client, restaurant, customer_headers):
        res = client.post(f"{API}/restaurants/{restaurant.id}/favorite", headers=customer_headers)
        assert res.status_code == 200
        assert res.json()["favorite_restaurants"] == [restaurant.id]

        again = client.post(f"{API}/restaurants/{restaurant.id}/favorite", headers=customer_headers)
        assert again.json()["favorite_restaurants"] == [restaurant.id]

        res = client.delete(f"{API}/restaurants/{restaurant.id}/favorite", headers=customer_headers)
        assert res.json()["favorite_restaurants"] == []

    def test_favorite_requires_auth(self, client, restaurant):
        assert client.post(f"{API}/restaurants/{restaurant.id}/favorite").status_code == 401
