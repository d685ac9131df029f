from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime
import logging

from config import Config
from error_handler import ErrorCode, create_error, to_error_payload
from recommendation_endpoint import add_recommendation_routes_to_app

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=Config.APP_TITLE, version=Config.ENGINE_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_recommendation_routes_to_app(app)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies use the same error payload as engine errors."""
    logger.warning(f"⚠️ Invalid request to {request.url.path}: {len(exc.errors())} errors")
    error = create_error(ErrorCode.VALIDATION_ERROR, {"errors": jsonable_encoder(exc.errors())})
    return JSONResponse(status_code=422, content={"detail": to_error_payload(error)})


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "service": Config.APP_TITLE,
        "version": Config.ENGINE_VERSION,
        "timestamp": datetime.now().isoformat(),
    }


if __name__ == "__main__":
    import uvicorn

    print("\n" + "=" * 70)
    print(f"🏥 {Config.APP_TITLE}")
    print("=" * 70)
    print(f"📍 Server: http://localhost:{Config.PORT}")
    print(f"📚 Docs:   http://localhost:{Config.PORT}/docs")
    print("=" * 70 + "\n")

    uvicorn.run(app, host=Config.HOST, port=Config.PORT)
