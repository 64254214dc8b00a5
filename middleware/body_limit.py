from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, max_size=1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request, call_next):
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_size:
            return JSONResponse({"error": "Request too large"}, 413)

        body = await request.body()
        if len(body) > self.max_size:
            return JSONResponse({"error": "Request too large"}, 413)
        return await call_next(request)
