# printshop/api/errors.py
from fastapi import HTTPException

from printshop.services.orders_client import ApiError


def api_error_to_http(e: ApiError) -> HTTPException:
    """Upstream failure as seen by the console: same status, 502 when the API was unreachable."""
    status = e.status if 400 <= e.status < 600 else 502
    return HTTPException(status_code=status, detail=e.message)
