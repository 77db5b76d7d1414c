from pydantic import BaseModel


class ErrorDetail(BaseModel):
    error: str
    details: str
    error_code: str | None = None


class ErrorResponse(BaseModel):
    detail: ErrorDetail
