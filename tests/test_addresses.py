"""
Tests for the customer address book
"""

from herbstore.models.address import Address

HOME = {
    "full_name": "Asha Rao",
    "contact": "9876543210",
    "address_line1": "12 MG Road",
    "city": "Pune",
    "state": "Maharashtra",
    "pincode": "411001",
}

OFFICE = {
    "full_name": "Asha Rao",
    "address_line1": "4th Floor, Tech Park",
    "city": "Bengaluru",
    "state": "Karnataka",
    "pincode": "560001",
}


def _create(client, customer_id, headers, payload):
    response = client.post(f"/api/customer/{customer_id}/addresses", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()["data"]


def _default_count(session_factory, customer_id):
    db = session_factory()
    try:
        return db.query(Address).filter(
            Address.customer_id == customer_id,
            Address.is_default.is_(True)
        ).count()
    finally:
        db.close()

class TestAddressBook:
    """Test cases for address CRUD"""

    def test_create_address(self, client, customer_id, customer_headers):
        data = _create(client, customer_id, customer_headers, HOME)

        assert data["customer_id"] == customer_id
        assert data["city"] == "Pune"
        assert data["country"] == "India"
        assert data["is_default"] is False

    def test_create_requires_fields(self, client, customer_id, customer_headers):
        payload = dict(HOME, pincode="")
        response = client.post(f"/api/customer/{customer_id}/addresses", json=payload, headers=customer_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Address line 1, city, state, and pincode are required"

    def test_invalid_contact_rejected(self, client, customer_id, customer_headers):
        payload = dict(HOME, contact="12345")
        response = client.post(f"/api/customer/{customer_id}/addresses", json=payload, headers=customer_headers)
        assert response.status_code == 400

    def test_list_default_first(self, client, customer_id, customer_headers):
        _create(client, customer_id, customer_headers, dict(HOME, is_default=True))
        office = _create(client, customer_id, customer_headers, OFFICE)

        response = client.get(f"/api/customer/{customer_id}/addresses", headers=customer_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data) == 2
        assert data[0]["is_default"] is True
        assert data[1]["id"] == office["id"]

    def test_get_address(self, client, customer_id, customer_headers):
        home = _create(client, customer_id, customer_headers, HOME)

        response = client.get(f"/api/customer/{customer_id}/addresses/{home['id']}", headers=customer_headers)
        assert response.status_code == 200
        assert response.json()["data"]["address_line1"] == "12 MG Road"

    def test_get_missing_address(self, client, customer_id, customer_headers):
        response = client.get(f"/api/customer/{customer_id}/addresses/999", headers=customer_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Address not found"

    def test_update_address(self, client, customer_id, customer_headers):
        home = _create(client, customer_id, customer_headers, HOME)

        response = client.put(
            f"/api/customer/{customer_id}/addresses/{home['id']}",
            json={"address_line2": "Near City Mall"},
            headers=customer_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["address_line2"] == "Near City Mall"
        assert data["city"] == "Pune"

    def test_delete_address(self, client, customer_id, customer_headers):
        home = _create(client, customer_id, customer_headers, HOME)

        response = client.delete(f"/api/customer/{customer_id}/addresses/{home['id']}", headers=customer_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Address deleted successfully"

        response = client.get(f"/api/customer/{customer_id}/addresses/{home['id']}", headers=customer_headers)
        assert response.status_code == 404

class TestDefaultAddress:
    """At most one default address per customer"""

    def test_second_default_replaces_first(self, client, customer_id, customer_headers, session_factory):
        home = _create(client, customer_id, customer_headers, dict(HOME, is_default=True))
        office = _create(client, customer_id, customer_headers, dict(OFFICE, is_default=True))

        assert _default_count(session_factory, customer_id) == 1

        listing = client.get(f"/api/customer/{customer_id}/addresses", headers=customer_headers).json()["data"]
        defaults = [a["id"] for a in listing if a["is_default"]]
        assert defaults == [office["id"]]
        assert home["id"] != office["id"]

    def test_update_to_default(self, client, customer_id, customer_headers, session_factory):
        _create(client, customer_id, customer_headers, dict(HOME, is_default=True))
        office = _create(client, customer_id, customer_headers, OFFICE)

        response = client.put(
            f"/api/customer/{customer_id}/addresses/{office['id']}",
            json={"is_default": True},
            headers=customer_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["is_default"] is True
        assert _default_count(session_factory, customer_id) == 1

    def test_set_default(self, client, customer_id, customer_headers, session_factory):
        home = _create(client, customer_id, customer_headers, dict(HOME, is_default=True))
        office = _create(client, customer_id, customer_headers, OFFICE)

        response = client.post(
            f"/api/customer/{customer_id}/addresses/{office['id']}/set-default",
            headers=customer_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["is_default"] is True
        assert _default_count(session_factory, customer_id) == 1

        home_now = client.get(f"/api/customer/{customer_id}/addresses/{home['id']}", headers=customer_headers)
        assert home_now.json()["data"]["is_default"] is False

    def test_defaults_are_per_customer(self, client, customer_id, customer_headers, make_customer, admin_headers, session_factory):
        other_id = make_customer(mobile="9123456789")
        _create(client, customer_id, customer_headers, dict(HOME, is_default=True))
        _create(client, other_id, admin_headers, dict(OFFICE, is_default=True))

        assert _default_count(session_factory, customer_id) == 1
        assert _default_count(session_factory, other_id) == 1

class TestAddressAccess:
    """Test cases for who may touch an address book"""

    def test_customer_cannot_read_other_customer(self, client, customer_headers, make_customer):
        other_id = make_customer(mobile="9123456789")

        response = client.get(f"/api/customer/{other_id}/addresses", headers=customer_headers)
        assert response.status_code == 403
        assert response.json()["message"] == "Forbidden: cannot access addresses for another customer"

    def test_admin_reads_any_customer(self, client, customer_id, customer_headers, admin_headers):
        _create(client, customer_id, customer_headers, HOME)

        response = client.get(f"/api/customer/{customer_id}/addresses", headers=admin_headers)
        assert response.status_code == 200
        assert len(response.json()["data"]) == 1

    def test_requires_authentication(self, client, customer_id):
        response = client.get(f"/api/customer/{customer_id}/addresses")
        assert response.status_code == 401
