"""
SMS delivery through the 2Factor gateway
"""

import logging

import httpx

from herbstore.config import settings

logger = logging.getLogger(__name__)

class SmsService:
    """Sends OTP messages; outside production the code is only logged"""

    def __init__(self, api_key: str = None, base_url: str = None, timeout: float = 10.0, transport=None):
        self.api_key = api_key if api_key is not None else settings.two_factor_api_key
        self.base_url = (base_url or settings.two_factor_base_url).rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key) and settings.is_production

    async def send_otp(self, mobile: str, otp: str) -> bool:
        """Dispatch an OTP. Delivery failures are logged, never raised."""
        if not self.enabled:
            logger.info(f"OTP for {mobile}: {otp} (SMS gateway disabled)")
            return False

        url = f"{self.base_url}/{self.api_key}/SMS/{mobile}/{otp}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url)
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"SMS API error for {mobile}: {e}")
            return False

        if not isinstance(payload, dict) or payload.get("Status") != "Success":
            logger.error(f"SMS sending failed for {mobile}: {payload}")
            return False

        logger.info(f"SMS sent successfully to {mobile}")
        return True
