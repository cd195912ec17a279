"""
OTP login service

Codes live in the otp_code table rather than process memory, so a pending
OTP survives restarts and is visible to every API instance. Only a salted
hash of the code is stored.
"""

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from herbstore.config import settings
from herbstore.database import utcnow
from herbstore.models.customer import Customer
from herbstore.models.otp_code import OtpCode
from herbstore.services.session_service import SessionService
from herbstore.services.sms_service import SmsService
from herbstore.utils.error_handler import ApiError, DatabaseError

logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_NAME = "User"

@dataclass
class OtpLoginResult:
    customer: Customer
    token: str
    expires_at: datetime
    is_new_user: bool

def generate_otp() -> str:
    """Six digits, never starting with zero"""
    return str(100000 + secrets.randbelow(900000))

def hash_otp(mobile: str, otp: str) -> str:
    payload = f"{mobile}|{otp}|{settings.otp_secret}".encode("utf-8")
    return hashlib.sha256(payload).hexdigest()

class OtpService:
    """Issues and verifies one-time passwords for customer login"""

    def __init__(self, db: Session, sms_service: Optional[SmsService] = None):
        self.db = db
        self.sms_service = sms_service or SmsService()

    def _clear_code(self, record: OtpCode) -> None:
        record.code_hash = None
        record.expires_at = None
        record.attempts = 0

    async def send_otp(self, mobile: str) -> str:
        """Generate, store and dispatch a code; returns the plain code"""
        today = utcnow().date().isoformat()
        try:
            record = self.db.query(OtpCode).filter(OtpCode.mobile == mobile).first()
            if record is None:
                record = OtpCode(mobile=mobile, send_count=0, attempts=0)
                self.db.add(record)

            if record.send_date != today:
                record.send_date = today
                record.send_count = 0

            if record.send_count >= settings.otp_daily_limit:
                logger.warning(f"Daily OTP limit reached for {mobile}")
                raise ApiError.too_many_requests("Daily OTP limit reached. Try again tomorrow.")

            otp = generate_otp()
            record.code_hash = hash_otp(mobile, otp)
            record.expires_at = utcnow() + timedelta(seconds=settings.otp_ttl_seconds)
            record.attempts = 0
            record.send_count += 1
            self.db.commit()

        except ApiError:
            self.db.rollback()
            raise
        except IntegrityError:
            # Concurrent first request for the same mobile
            self.db.rollback()
            raise ApiError.conflict("OTP request already in progress, please retry")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to store OTP for {mobile}: {e}")
            raise DatabaseError(f"Failed to store OTP: {str(e)}", e)

        await self.sms_service.send_otp(mobile, otp)
        return otp

    async def verify_otp(
        self,
        mobile: str,
        otp: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> OtpLoginResult:
        """Check the code and log the customer in.

        Consuming the code, creating or updating the customer and replacing
        their sessions commit as one transaction.
        """
        try:
            record = self.db.query(OtpCode).filter(OtpCode.mobile == mobile).first()
            if record is None or record.code_hash is None:
                raise ApiError.bad_request("OTP not found or expired")

            if record.expires_at is None or utcnow() > record.expires_at:
                self._clear_code(record)
                self.db.commit()
                raise ApiError.bad_request("OTP has expired")

            if not hmac.compare_digest(record.code_hash, hash_otp(mobile, otp)):
                record.attempts += 1
                if record.attempts >= settings.otp_max_attempts:
                    self._clear_code(record)
                    self.db.commit()
                    logger.warning(f"Too many OTP attempts for {mobile}")
                    raise ApiError.bad_request("Too many attempts. Please request a new OTP.")
                self.db.commit()
                raise ApiError.bad_request("Invalid OTP")

            # Single use
            self._clear_code(record)

            customer = self.db.query(Customer).filter(Customer.mobile == mobile).first()
            is_new_user = customer is None
            now = utcnow()

            if is_new_user:
                customer = Customer(
                    name=DEFAULT_CUSTOMER_NAME,
                    mobile=mobile,
                    is_active=True,
                    last_login=now,
                )
                self.db.add(customer)
                self.db.flush()
                logger.info(f"Created new customer {customer.id} for {mobile}")
            else:
                if not customer.is_active:
                    self.db.commit()
                    raise ApiError.forbidden("Your account has been deactivated. Please contact support.")
                customer.last_login = now

            session = SessionService(self.db).issue_customer_session(
                customer, ip_address=ip_address, user_agent=user_agent
            )
            self.db.commit()
            self.db.refresh(customer)

            logger.info(f"Customer {customer.id} logged in via OTP")
            return OtpLoginResult(
                customer=customer,
                token=session.session_token,
                expires_at=session.expires_at,
                is_new_user=is_new_user,
            )

        except ApiError:
            raise
        except IntegrityError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"OTP verification failed for {mobile}: {e}")
            raise DatabaseError(f"OTP verification failed: {str(e)}", e)
