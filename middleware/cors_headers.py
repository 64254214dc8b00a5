from starlette.middleware.base import BaseHTTPMiddleware

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """
    Stamps the fixed CORS headers on every response, preflight or not.
    """

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        for header, value in CORS_HEADERS.items():
            response.headers[header] = value
        return response
