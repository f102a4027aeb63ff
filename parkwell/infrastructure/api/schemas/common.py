from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class MessageResponse(BaseModel):
    message: str


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalItems: int
    itemsPerPage: int


class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    pagination: Pagination


def paginated(page, schema) -> dict:
    """Turn a domain Page into the {data, pagination} envelope."""
    return {
        "data": [schema.model_validate(item) for item in page.items],
        "pagination": page.pagination(),
    }
