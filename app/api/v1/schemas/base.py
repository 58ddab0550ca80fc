from typing import Generic, TypeVar

from app.shared.api.utils import ApiSuccess

T = TypeVar("T")


class ApiOut(ApiSuccess, Generic[T]):
    """Standard API envelope used by public routers."""

    data: T  # type: ignore[valid-type]


class ApiListOut(ApiSuccess, Generic[T]):
    """List envelope carrying the number of items returned."""

    count: int
    data: list[T]  # type: ignore[valid-type]
