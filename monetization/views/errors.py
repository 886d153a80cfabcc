import logging

from rest_framework import status
from rest_framework.response import Response

from monetization.exceptions import NotFound, TransientConflict, ValidationRejected

logger = logging.getLogger(__name__)


def error_response(exc):
    """Map an engine error to the API's error body and status code."""
    if isinstance(exc, NotFound):
        return Response({"error": exc.reason}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, TransientConflict):
        logger.warning("Request failed on a write conflict: %s", exc.reason)
        return Response({"error": exc.reason}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    if isinstance(exc, ValidationRejected):
        return Response(
            {"accepted": False, "reason": exc.reason},
            status=status.HTTP_400_BAD_REQUEST,
        )
    return Response({"error": exc.reason}, status=status.HTTP_400_BAD_REQUEST)
