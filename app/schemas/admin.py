from typing import Any

from pydantic import BaseModel


class GenerateRequest(BaseModel):
    # Left untyped so the range/type check yields one consistent message.
    count: Any = None


class DeleteQRRequest(BaseModel):
    id: str | None = None
