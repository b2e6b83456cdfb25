from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


class SystemHealth(BaseModel):
    status: str
    database: str
