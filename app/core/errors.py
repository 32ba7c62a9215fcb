"""
Central error handling for the attendance backend.

Attendance failures are HTTPException subclasses carrying a stable ``code`` so the
client can tell, for example, "couldn't get location" apart from "you are too far away".
Messages are localized (Vietnamese) and safe to show to the employee as-is.
"""
import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException

logger = logging.getLogger(__name__)

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "*",
    "Access-Control-Allow-Headers": "*",
}


class AttendanceError(HTTPException):
    """Base class for attendance decision failures. Each attempt that raises one persists nothing."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "ATTENDANCE_ERROR"
    message: str = "Đã xảy ra lỗi chấm công."

    def __init__(self, detail: Optional[str] = None, **context: Any):
        super().__init__(status_code=type(self).status_code, detail=detail or self.message)
        self.context = context


class InvalidQrPayload(AttendanceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_QR_PAYLOAD"
    message = "Mã QR không hợp lệ (sai định dạng)."


class InvalidLocationToken(AttendanceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "INVALID_LOCATION_TOKEN"
    message = "Địa điểm làm việc không hợp lệ hoặc đã bị xóa."


class WrongLocation(AttendanceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "WRONG_LOCATION"
    message = "Mã QR không hợp lệ cho địa điểm làm việc của bạn."


class LocationUnavailable(AttendanceError):
    """Geolocation acquisition failed on the device; subdivided by cause for messaging."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "LOCATION_UNAVAILABLE"
    message = "Không thể lấy vị trí của bạn. Vui lòng thử lại."

    MESSAGES = {
        "PERMISSION_DENIED": "Bạn đã từ chối quyền truy cập vị trí. Vui lòng cấp quyền trong cài đặt trình duyệt.",
        "POSITION_UNAVAILABLE": "Không thể xác định vị trí hiện tại. Vui lòng kiểm tra kết nối mạng và GPS.",
        "TIMEOUT": "Yêu cầu vị trí đã hết hạn. Vui lòng thử lại.",
    }

    def __init__(self, cause: Optional[str] = None):
        self.cause = cause if cause in self.MESSAGES else "UNKNOWN"
        super().__init__(self.MESSAGES.get(self.cause), cause=self.cause)


class SelfieRequired(AttendanceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "SELFIE_REQUIRED"
    message = "Địa điểm này yêu cầu chụp ảnh selfie để chấm công."


class OutOfRange(AttendanceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "OUT_OF_RANGE"
    message = "Bạn đang ở quá xa địa điểm làm việc. Vui lòng di chuyển lại gần và thử lại."


class NoFaceDetected(AttendanceError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "NO_FACE_DETECTED"
    message = "Không tìm thấy khuôn mặt. Vui lòng chụp lại."


class FaceMismatch(AttendanceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FACE_MISMATCH"
    message = "Khuôn mặt không khớp với dữ liệu đã đăng ký."


class FaceModelUnavailable(AttendanceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "FACE_MODEL_UNAVAILABLE"
    message = "Không thể tải dữ liệu nhận diện khuôn mặt."


class AttendanceStateConflict(AttendanceError):
    status_code = status.HTTP_409_CONFLICT
    code = "ATTENDANCE_STATE_CONFLICT"
    message = "Trạng thái chấm công đã thay đổi. Vui lòng thử lại."


class InvalidRequestState(AttendanceError):
    status_code = status.HTTP_409_CONFLICT
    code = "INVALID_REQUEST_STATE"
    message = "Yêu cầu này đã được xử lý."


class PersistenceFailure(AttendanceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "PERSISTENCE_FAILURE"
    message = "Không thể lưu dữ liệu."


def _error_body(request: Request, status_code: int, detail: Any) -> Dict[str, Any]:
    return {
        "error": True,
        "status_code": status_code,
        "detail": detail,
        "path": str(request.url.path)
    }


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle HTTPException with consistent JSON response format

    AttendanceError subclasses additionally expose ``code`` (and ``cause`` for location errors).

    Args:
        request: FastAPI request object
        exc: HTTPException instance

    Returns:
        JSONResponse with error details
    """
    content = _error_body(request, exc.status_code, exc.detail)
    if isinstance(exc, AttendanceError):
        content["code"] = exc.code
        if exc.context:
            content.update(exc.context)
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers={**_CORS_HEADERS, **(getattr(exc, "headers", None) or {})},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle RequestValidationError with consistent JSON response format

    Does not leak internal validation details in production.
    """
    from app.core.config import settings

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(request, 422, "Validation error: Invalid request data"),
        )

    # Sanitize for JSON: e.g. ctx.error ValueError -> str
    errors = []
    for e in exc.errors():
        err = dict(e)
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {
                k: (str(v) if not isinstance(v, (str, int, float, bool, type(None))) else v)
                for k, v in err["ctx"].items()
            }
        errors.append(err)
    content = _error_body(request, 422, "Validation error")
    content["errors"] = errors
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=content)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with consistent JSON response format

    Does not leak internal error details in production.
    """
    from app.core.config import settings

    logger.error("Unhandled exception: %s", exc, exc_info=True)

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(request, 500, "Internal server error"),
            headers=_CORS_HEADERS,
        )

    content = _error_body(request, 500, str(exc))
    content["traceback"] = traceback.format_exc() if settings.APP_ENV == "local" else None
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        headers=_CORS_HEADERS,
    )
