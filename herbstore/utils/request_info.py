"""
Helpers for reading client details off a request
"""

from typing import Optional

from fastapi import Request


def client_ip(request: Request) -> Optional[str]:
    """Extract client IP, honouring proxy headers"""
    if "x-forwarded-for" in request.headers:
        return request.headers["x-forwarded-for"].split(",")[0].strip()
    if "x-real-ip" in request.headers:
        return request.headers["x-real-ip"]
    if request.client:
        return request.client.host
    return None


def user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or "Unknown"
