from __future__ import annotations

import logging
import uuid

from rest_framework import exceptions, status, views
from rest_framework.response import Response

from accounts.permissions import CanPriceCase
from quotes.models import QuoteCase

from .serializers import PriceServiceLinesRequestSerializer, PricingResultSerializer
from .services.exceptions import CaseAccessDenied, InvalidPricingRequest, PricingError
from .services.pricing_service import price_service_lines

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-Id"

# code -> (HTTP status, retryable)
ERROR_CONFIG = {
    "AUTH_MISSING": (status.HTTP_401_UNAUTHORIZED, False),
    "AUTH_INVALID": (status.HTTP_401_UNAUTHORIZED, False),
    "VALIDATION_FAILED": (status.HTTP_400_BAD_REQUEST, False),
    "FORBIDDEN_OWNER": (status.HTTP_403_FORBIDDEN, False),
    "UPSTREAM_DB_ERROR": (status.HTTP_500_INTERNAL_SERVER_ERROR, True),
    "UNKNOWN": (status.HTTP_500_INTERNAL_SERVER_ERROR, False),
}


def correlation_id_from(request) -> str:
    """Reuse the caller's correlation id when it is a UUID, otherwise mint one."""
    raw = (request.headers.get(CORRELATION_HEADER) or "").strip()
    if raw:
        try:
            return str(uuid.UUID(raw))
        except ValueError:
            pass
    return str(uuid.uuid4())


def error_response(code: str, message: str, correlation_id: str, details=None) -> Response:
    http_status, retryable = ERROR_CONFIG.get(code, ERROR_CONFIG["UNKNOWN"])
    error = {"code": code, "message": message, "retryable": retryable}
    if details is not None:
        error["details"] = details
    return Response(
        {"ok": False, "error": error, "correlation_id": correlation_id},
        status=http_status,
        headers={CORRELATION_HEADER: correlation_id},
    )


class PriceServiceLinesView(views.APIView):
    """
    Resolve unit rates for the requested service lines of a quote case.

    Any rate sent by the client is ignored; lines that cannot be priced come
    back with ``rate: null`` and a ``source`` tag, and are listed in
    ``missing``.
    """
    permission_classes = [CanPriceCase]

    def initial(self, request, *args, **kwargs):
        self.correlation_id = correlation_id_from(request)
        super().initial(request, *args, **kwargs)

    def post(self, request):
        ser = PriceServiceLinesRequestSerializer(data=request.data)
        if not ser.is_valid():
            raise InvalidPricingRequest(ser.errors)
        data = ser.validated_data

        case = QuoteCase.objects.filter(pk=data["case_id"]).first()
        if case is None:
            raise CaseAccessDenied("Case not found or access denied")
        self.check_object_permissions(request, case)

        result = price_service_lines(
            case,
            data["service_lines"],
            correlation_id=self.correlation_id,
            user=request.user,
        )
        return Response(
            {"ok": True, "data": PricingResultSerializer(result).data, "correlation_id": self.correlation_id},
            status=status.HTTP_200_OK,
            headers={CORRELATION_HEADER: self.correlation_id},
        )

    def permission_denied(self, request, message=None, code=None):
        if request.authenticators and not request.successful_authenticator:
            raise exceptions.NotAuthenticated()
        raise CaseAccessDenied(message or "Case not found or access denied")

    def handle_exception(self, exc):
        correlation_id = getattr(self, "correlation_id", None) or correlation_id_from(self.request)

        if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
            code = "AUTH_MISSING" if isinstance(exc, exceptions.NotAuthenticated) else "AUTH_INVALID"
            return error_response(code, str(exc.detail), correlation_id)

        if isinstance(exc, InvalidPricingRequest):
            details = exc.args[0] if exc.args and isinstance(exc.args[0], dict) else None
            return error_response(exc.error_code, "Invalid pricing request", correlation_id, details)

        if isinstance(exc, exceptions.ParseError):
            return error_response("VALIDATION_FAILED", str(exc.detail), correlation_id)

        if isinstance(exc, PricingError):
            logger.warning(
                "Pricing request failed: %s", exc,
                extra={"correlation_id": correlation_id, "error_code": exc.error_code},
            )
            return error_response(exc.error_code, str(exc), correlation_id)

        if isinstance(exc, exceptions.APIException):
            return super().handle_exception(exc)

        logger.exception("Unhandled error in pricing request", extra={"correlation_id": correlation_id})
        return error_response("UNKNOWN", "Internal error", correlation_id)
