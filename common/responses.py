from typing import Dict

from fastapi.responses import JSONResponse


class JSONUTF8Response(JSONResponse):
    """
    JSON response that states its charset explicitly.
    """

    media_type = "application/json; charset=utf-8"


def error_response(message: str) -> Dict[str, str]:
    """
    Error envelope shared by every non-2xx gateway response.
    """
    return {"message": message}
