from typing import Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")

class Pagination(BaseModel):
    current_page: int
    last_page: int
    per_page: int
    total: int

class ApiResponse(BaseModel, Generic[T]):
    """Standard success envelope: ``{status, data, message}``."""
    status: bool = True
    data: T
    message: str = ""

class ErrorResponse(BaseModel):
    status: bool = False
    message: str
    data: Optional[dict] = None
