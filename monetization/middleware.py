import logging

logger = logging.getLogger(__name__)

LOGGED_CONTENT_TYPES = ("application/json", "text/")


class RequestResponseLoggingMiddleware:
    """
    Logs each API request with its body and the response status and content.

    Bodies are truncated so a large payload cannot flood the log.
    """

    max_body_length = 2000

    def __init__(self, get_response):
        self.get_response = get_response

    def _truncate(self, text):
        if len(text) > self.max_body_length:
            return f"{text[: self.max_body_length]}...<truncated>"
        return text

    def __call__(self, request):
        request_body = ""
        content_type = request.META.get("CONTENT_TYPE", "")

        if "multipart/form-data" in content_type:
            request_body = "<multipart body not logged>"
        elif request.method in ("POST", "PUT", "PATCH") and request.body:
            try:
                request_body = self._truncate(request.body.decode("utf-8"))
            except UnicodeDecodeError:
                request_body = "<binary body>"

        logger.info("API request: %s %s body=%s", request.method, request.get_full_path(), request_body)

        response = self.get_response(request)

        response_type = response.get("Content-Type", "")
        if getattr(response, "streaming", False):
            response_content = "<streaming content>"
        elif response_type.startswith(LOGGED_CONTENT_TYPES):
            try:
                response_content = self._truncate(response.content.decode("utf-8"))
            except UnicodeDecodeError:
                response_content = "<binary content>"
        else:
            response_content = f"<Content-Type: {response_type}>"

        logger.info(
            "API response: %s %s status=%s content=%s",
            request.method,
            request.get_full_path(),
            response.status_code,
            response_content,
        )
        return response
