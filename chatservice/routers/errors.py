import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from chatservice.core.exceptions import ChatServiceError


logger = structlog.get_logger("chatservice.http")


STATUS_BY_ERROR_CODE = {
    "INVALID_ARGUMENT": status.HTTP_400_BAD_REQUEST,
    "INVALID_CURSOR": status.HTTP_400_BAD_REQUEST,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "SERVICE_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def chat_service_error_handler(request: Request, exc: ChatServiceError) -> JSONResponse:
    status_code = STATUS_BY_ERROR_CODE.get(exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error("request.failed", path=request.url.path, error_code=exc.error_code, error=exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"message": exc.message, "error_code": exc.error_code, "details": exc.details},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ChatServiceError, chat_service_error_handler)
