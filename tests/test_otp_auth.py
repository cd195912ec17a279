"""
Tests for OTP login, customer sessions and the customer profile
"""

from datetime import timedelta

from herbstore.database import utcnow
from herbstore.models.activity_log import ActivityLog
from herbstore.models.auth_session import AuthSession
from herbstore.models.customer import Customer
from herbstore.models.otp_code import OtpCode
from herbstore.services.session_service import SessionService

MOBILE = "9876501234"


def _send(client, mobile=MOBILE):
    response = client.post("/api/auth/send-otp", json={"mobile": mobile})
    assert response.status_code == 200
    return response.json()["data"]["otp"]


def _login(client, mobile=MOBILE):
    otp = _send(client, mobile)
    response = client.post("/api/auth/verify-otp", json={"mobile": mobile, "otp": otp})
    assert response.status_code == 200
    return response.json()["data"]

class TestSendOtp:
    """Test cases for requesting an OTP"""

    def test_send_otp_returns_code_in_development(self, client):
        response = client.post("/api/auth/send-otp", json={"mobile": MOBILE})
        assert response.status_code == 200

        body = response.json()
        assert body["success"] is True
        assert body["message"] == "OTP sent successfully"
        assert len(body["data"]["otp"]) == 6
        assert body["data"]["otp"].isdigit()

    def test_send_otp_stores_only_a_hash(self, client, session_factory):
        otp = _send(client)

        db = session_factory()
        try:
            record = db.query(OtpCode).filter(OtpCode.mobile == MOBILE).one()
            assert record.code_hash is not None
            assert record.code_hash != otp
            assert record.attempts == 0
            assert record.expires_at > utcnow()
        finally:
            db.close()

    def test_invalid_mobile_rejected(self, client):
        for mobile in ["12345", "5876543210", "98765432100", "abcdefghij"]:
            response = client.post("/api/auth/send-otp", json={"mobile": mobile})
            assert response.status_code == 400
            body = response.json()
            assert body["success"] is False
            assert body["message"].startswith("Validation failed")

    def test_daily_limit(self, client):
        for _ in range(5):
            _send(client)

        response = client.post("/api/auth/send-otp", json={"mobile": MOBILE})
        assert response.status_code == 429
        assert response.json()["message"] == "Daily OTP limit reached. Try again tomorrow."

class TestVerifyOtp:
    """Test cases for verifying an OTP"""

    def test_new_mobile_creates_customer(self, client, session_factory):
        data = _login(client)

        assert data["isNewUser"] is True
        assert data["user"]["name"] == "User"
        assert data["user"]["mobile"] == MOBILE
        assert len(data["token"]) == 64
        assert "expiresAt" in data

        db = session_factory()
        try:
            assert db.query(Customer).filter(Customer.mobile == MOBILE).count() == 1
        finally:
            db.close()

    def test_returning_customer_is_not_new(self, client, make_customer, session_factory):
        customer_id = make_customer(mobile=MOBILE, name="Asha")
        data = _login(client)

        assert data["isNewUser"] is False
        assert data["user"]["id"] == customer_id
        assert data["user"]["name"] == "Asha"

        db = session_factory()
        try:
            customer = db.query(Customer).filter(Customer.id == customer_id).one()
            assert customer.last_login is not None
        finally:
            db.close()

    def test_otp_is_single_use(self, client):
        otp = _send(client)
        first = client.post("/api/auth/verify-otp", json={"mobile": MOBILE, "otp": otp})
        assert first.status_code == 200

        second = client.post("/api/auth/verify-otp", json={"mobile": MOBILE, "otp": otp})
        assert second.status_code == 400
        assert second.json()["message"] == "OTP not found or expired"

    def test_no_pending_otp(self, client):
        response = client.post("/api/auth/verify-otp", json={"mobile": MOBILE, "otp": "123456"})
        assert response.status_code == 400
        assert response.json()["message"] == "OTP not found or expired"

    def test_wrong_otp(self, client):
        otp = _send(client)
        wrong = "111111" if otp != "111111" else "222222"

        response = client.post("/api/auth/verify-otp", json={"mobile": MOBILE, "otp": wrong})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid OTP"

        # The right code still works afterwards
        response = client.post("/api/auth/verify-otp", json={"mobile": MOBILE, "otp": otp})
        assert response.status_code == 200

    def test_too_many_attempts_clears_code(self, client):
        otp = _send(client)
        wrong = "111111" if otp != "111111" else "222222"

        for _ in range(4):
            response = client.post("/api/auth/verify-otp", json={"mobile": MOBILE, "otp": wrong})
            assert response.json()["message"] == "Invalid OTP"

        response = client.post("/api/auth/verify-otp", json={"mobile": MOBILE, "otp": wrong})
        assert response.status_code == 400
        assert response.json()["message"] == "Too many attempts. Please request a new OTP."

        response = client.post("/api/auth/verify-otp", json={"mobile": MOBILE, "otp": otp})
        assert response.json()["message"] == "OTP not found or expired"

    def test_expired_otp(self, client, session_factory):
        otp = _send(client)

        db = session_factory()
        try:
            record = db.query(OtpCode).filter(OtpCode.mobile == MOBILE).one()
            record.expires_at = utcnow() - timedelta(seconds=1)
            db.commit()
        finally:
            db.close()

        response = client.post("/api/auth/verify-otp", json={"mobile": MOBILE, "otp": otp})
        assert response.status_code == 400
        assert response.json()["message"] == "OTP has expired"

    def test_malformed_otp_rejected(self, client):
        response = client.post("/api/auth/verify-otp", json={"mobile": MOBILE, "otp": "12ab"})
        assert response.status_code == 400
        assert "otp" in response.json()["message"]

    def test_deactivated_customer_cannot_login(self, client, make_customer):
        make_customer(mobile=MOBILE, is_active=False)
        otp = _send(client)

        response = client.post("/api/auth/verify-otp", json={"mobile": MOBILE, "otp": otp})
        assert response.status_code == 403

    def test_new_login_replaces_previous_session(self, client):
        first = _login(client)
        second = _login(client)

        old = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {first['token']}"})
        assert old.status_code == 401

        new = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {second['token']}"})
        assert new.status_code == 200

class TestCustomerSession:
    """Test cases for session-protected customer endpoints"""

    def test_profile_requires_token(self, client):
        response = client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.json()["message"] == "Authentication token required"

    def test_unknown_token(self, client):
        response = client.get("/api/auth/profile", headers={"Authorization": "Bearer " + "0" * 64})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    def test_expired_session_rejected(self, client, customer_headers, session_factory):
        db = session_factory()
        try:
            db.query(AuthSession).update({AuthSession.expires_at: utcnow() - timedelta(minutes=1)})
            db.commit()
        finally:
            db.close()

        response = client.get("/api/auth/profile", headers=customer_headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    def test_admin_token_is_not_a_customer(self, client, admin_headers):
        response = client.get("/api/auth/profile", headers=admin_headers)
        assert response.status_code == 403

    def test_get_profile(self, client, customer_id, customer_headers):
        response = client.get("/api/auth/profile", headers=customer_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == customer_id
        assert data["mobile"] == "9876543210"

    def test_update_profile(self, client, customer_headers):
        response = client.put(
            "/api/auth/profile",
            json={"name": "Asha Rao", "email": "Asha@Example.com"},
            headers=customer_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Asha Rao"
        assert data["email"] == "asha@example.com"

    def test_update_profile_without_fields(self, client, customer_headers):
        response = client.put("/api/auth/profile", json={}, headers=customer_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "No fields to update"

    def test_logout_revokes_session(self, client, customer_headers):
        response = client.post("/api/auth/logout", headers=customer_headers)
        assert response.status_code == 200

        response = client.get("/api/auth/profile", headers=customer_headers)
        assert response.status_code == 401

    def test_deactivated_customer_session_is_refused(self, client, customer_id, customer_headers, session_factory):
        db = session_factory()
        try:
            db.query(Customer).filter(Customer.id == customer_id).update({Customer.is_active: False})
            db.commit()
        finally:
            db.close()

        response = client.get("/api/auth/profile", headers=customer_headers)
        assert response.status_code == 403
        assert response.json()["message"] == "Account is deactivated"

    def test_purge_expired_keeps_live_sessions(self, customer_id, make_customer, make_customer_token, session_factory):
        other_id = make_customer(mobile="9876500000")
        live_token = make_customer_token(customer_id)
        stale_token = make_customer_token(other_id)

        db = session_factory()
        try:
            db.query(AuthSession).filter(AuthSession.session_token == stale_token).update(
                {AuthSession.expires_at: utcnow() - timedelta(minutes=1)}
            )
            db.commit()

            assert SessionService(db).purge_expired() == 1
            tokens = [s.session_token for s in db.query(AuthSession).all()]
            assert tokens == [live_token]
        finally:
            db.close()

class TestCustomerAudit:
    """Test cases for the audit entries of customer logins"""

    def test_verify_otp_records_customer(self, client, session_factory):
        data = _login(client)

        db = session_factory()
        try:
            entry = (
                db.query(ActivityLog)
                .filter(ActivityLog.endpoint == "/api/auth/verify-otp", ActivityLog.status_code == 200)
                .one()
            )
            assert entry.principal_type == "customer"
            assert entry.principal_id == data["user"]["id"]

            sent = db.query(ActivityLog).filter(ActivityLog.endpoint == "/api/auth/send-otp").one()
            assert sent.principal_type is None
        finally:
            db.close()

    def test_failed_verify_is_anonymous(self, client, session_factory):
        otp = _send(client)
        wrong = "111111" if otp != "111111" else "222222"
        client.post("/api/auth/verify-otp", json={"mobile": MOBILE, "otp": wrong})

        db = session_factory()
        try:
            entry = db.query(ActivityLog).filter(ActivityLog.status_code == 400).one()
            assert entry.principal_id is None
            assert MOBILE in entry.error_message
        finally:
            db.close()

    def test_logout_records_customer(self, client, customer_id, customer_headers, session_factory):
        client.post("/api/auth/logout", headers=customer_headers)

        db = session_factory()
        try:
            entry = db.query(ActivityLog).filter(ActivityLog.endpoint == "/api/auth/logout").one()
            assert (entry.principal_type, entry.principal_id) == ("customer", customer_id)
        finally:
            db.close()
