"""Request handler serving files through a StaticFileResolver."""

import logging

from mime_types import content_type_header
from request import HTTPRequest
from resolver import Found, StaticFileResolver
from response import HTTPResponse

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "HEAD")
NOT_FOUND_BODY = "404 page not found\n"


class StaticFileHandler:
    """Answer GET and HEAD from the resolver's root; reject other methods with 405."""

    def __init__(self, resolver: StaticFileResolver) -> None:
        self.resolver = resolver

    def __call__(self, request: HTTPRequest) -> HTTPResponse:
        if request.method not in ALLOWED_METHODS:
            return HTTPResponse(
                status_code=405,
                headers={"Allow": ", ".join(ALLOWED_METHODS)},
                body="Method Not Allowed",
            )

        response = self.serve(request.path)
        if request.method == "HEAD":
            return response.as_head()
        return response

    def serve(self, path: str) -> HTTPResponse:
        """Build a 200 response for a decoded path, or 404 on any miss."""
        result = self.resolver.resolve(path)
        if not isinstance(result, Found):
            logger.debug("Not found %s: %s", path, result.reason)
            return HTTPResponse(status_code=404, body=NOT_FOUND_BODY)

        return HTTPResponse(
            status_code=200,
            headers={"Content-Type": content_type_header(result.mime_type)},
            body=result.content,
        )
