from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import Base, engine
from .errors import LessonHubError
from .logging_config import configure_logging
from .responses import error
from .settings import settings
from .storage import upload_root
from .routers import health, overview
from .routers import auth
from .routers import grade, lesson
from .routers import category, test, test_detail
from .routers import vocabulary
from .routers import test_result
from .routers import topic_test
from .routers import mock_test
from .routers import notification
from .routers import admin

logger = configure_logging()

app = FastAPI(title="LessonHub API")

app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(grade.router)
app.include_router(lesson.router)
app.include_router(category.router)
app.include_router(test.router)
app.include_router(test_detail.router)
app.include_router(vocabulary.router)
app.include_router(test_result.router)
app.include_router(topic_test.router)
app.include_router(mock_test.router)
app.include_router(notification.router)
app.include_router(admin.router)
# Catch-all "/api" last so it never shadows a resource prefix
app.include_router(overview.router)

# Uploaded lesson audio is also served directly
app.mount("/uploads/audio", StaticFiles(directory=upload_root()), name="audio")


def _validation_errors(exc: RequestValidationError):
	return [
		{"field": ".".join(str(part) for part in e.get("loc", ())), "message": e.get("msg", "")}
		for e in exc.errors()
	]


@app.exception_handler(LessonHubError)
async def lessonhub_error_handler(request: Request, exc: LessonHubError):
	if exc.status_code >= 500:
		logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
	return JSONResponse(status_code=exc.status_code, content=error(exc.message, errors=exc.errors))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
	return JSONResponse(status_code=exc.status_code, content=error(str(exc.detail)), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
	return JSONResponse(status_code=400, content=error("Validation error", errors=_validation_errors(exc)))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
	logger.exception("Unhandled error on %s %s", request.method, request.url.path)
	return JSONResponse(status_code=500, content=error("Internal server error"))


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	logger.info("LessonHub API ready (ai_evaluation=%s)", bool(settings.gemini_api_key))
