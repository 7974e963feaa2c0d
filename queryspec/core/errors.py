from fastapi import HTTPException


class InvalidRequestError(HTTPException):
    """Client-side input error, rendered by FastAPI as a 400 response."""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)
