"""
Success envelopes for JSON responses
"""

import math
from typing import Any


def success_response(data: Any = None, message: str = "Success") -> dict:
    """{success, message, data} wrapper used by the auth, address and catalog routes"""
    return {"success": True, "message": message, "data": data}


def paginated_response(data: Any, page: int, limit: int, total: int, message: str = "Success") -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    body = success_response(data, message)
    body["pagination"] = {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }
    return body
