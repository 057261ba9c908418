from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import logging
import time
from typing import Optional

from opentelemetry.trace import get_current_span

from app.core.config import Settings, settings as default_settings
from app.core.db import create_all, dispose_engine, init_engine_and_session
from app.api.routes.auth import router as auth_router
from app.api.routes.users import router as users_router
from app.api.routes.projects import router as projects_router
from app.api.routes.generations import router as generations_router
from app.api.routes.paypal import router as paypal_router
from app.api.routes.subscriptions import router as subscriptions_router
from app.api.routes.health import router as health_router
from app.database.memory_storage import MemoryStorage
from app.database.sql_storage import SqlStorage
from app.database.storage import Storage
from app.services.auth_service import AuthService
from app.services.generation_client import AppGenerator, GeminiGenerationClient
from app.services.generation_service import GenerationService
from app.services.paypal_service import PayPalService
from app.services.project_service import ProjectService
from app.services.subscription_service import SubscriptionService
from app.utils.envelopes import api_error
from app.utils.exceptions import AppError
from app.utils.locks import KeyedLock


_logger = logging.getLogger("appforge.api")


def _trace_id() -> Optional[str]:
	_current_span = get_current_span()
	trace_id_int = _current_span.get_span_context().trace_id if _current_span else 0
	return f"{trace_id_int:032x}" if trace_id_int else None


def _configure_telemetry(app: FastAPI, config: Settings) -> None:
	# Telemetry / Azure Monitor (optional)
	try:
		if config.ENABLE_APP_INSIGHTS and config.AZURE_MONITOR_CONN_STR:
			from azure.monitor.opentelemetry import configure_azure_monitor
			from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
			from opentelemetry.instrumentation.logging import LoggingInstrumentor

			configure_azure_monitor(
				connection_string=config.AZURE_MONITOR_CONN_STR,
				sampling_ratio=config.SAMPLING_RATIO,
			)
			# Include trace/span ids in stdlib logging records
			LoggingInstrumentor().instrument(set_logging_format=True)
			FastAPIInstrumentor.instrument_app(app)
			_logger.info("Azure Monitor telemetry is enabled")
	except Exception as telemetry_exc:
		# Do not block app startup if telemetry fails
		_logger.warning("Failed to initialize Azure Monitor telemetry: %s", telemetry_exc)


def _build_storage(config: Settings) -> Storage:
	if config.STORAGE_BACKEND == "database":
		return SqlStorage(init_engine_and_session(config.DATABASE_URL))
	if config.STORAGE_BACKEND != "memory":
		raise RuntimeError(f"Unknown STORAGE_BACKEND: {config.STORAGE_BACKEND}")
	return MemoryStorage()


def create_app(
	storage: Optional[Storage] = None,
	generation_client: Optional[AppGenerator] = None,
	payments: Optional[PayPalService] = None,
	config: Settings = default_settings,
) -> FastAPI:
	"""Build the API. Collaborators not passed in are constructed from settings."""
	app = FastAPI(title=config.APP_NAME, debug=config.DEBUG)

	owns_storage = storage is None
	storage = storage or _build_storage(config)
	payments = payments or PayPalService()
	# Generation and plan activation both move a user's credits
	user_locks = KeyedLock()

	app.state.storage = storage
	app.state.payments = payments
	app.state.auth_service = AuthService(storage, starting_credits=config.DEFAULT_USER_CREDITS)
	app.state.project_service = ProjectService(storage)
	app.state.generation_service = GenerationService(
		storage,
		generation_client or GeminiGenerationClient(),
		credit_cost=config.GENERATION_CREDIT_COST,
		user_locks=user_locks,
	)
	app.state.subscription_service = SubscriptionService(storage, payments, user_locks=user_locks)

	_configure_telemetry(app, config)

	app.add_middleware(
		CORSMiddleware,
		allow_origins=config.CORS_ORIGINS,
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)

	# Normalize API prefix (must not end with '/')
	_api_prefix = config.API_PREFIX.rstrip("/")

	app.include_router(auth_router, prefix=_api_prefix)
	app.include_router(users_router, prefix=_api_prefix)
	app.include_router(projects_router, prefix=_api_prefix)
	app.include_router(generations_router, prefix=_api_prefix)
	app.include_router(paypal_router, prefix=_api_prefix)
	app.include_router(subscriptions_router, prefix=_api_prefix)
	app.include_router(health_router)

	# Structured request logging (includes trace correlation where available)
	@app.middleware("http")
	async def request_logging_middleware(request: Request, call_next):
		start_time = time.perf_counter()
		client_ip: Optional[str] = request.headers.get("x-forwarded-for") or (request.client.host if request.client else None)
		user_agent: Optional[str] = request.headers.get("user-agent")
		status_code: Optional[int] = None
		try:
			response = await call_next(request)
			status_code = response.status_code
			return response
		finally:
			elapsed_ms = (time.perf_counter() - start_time) * 1000.0
			_logger.info(
				"HTTP request",
				extra={
					"http.method": request.method,
					"http.route": request.url.path,
					"http.status_code": status_code,
					"http.duration_ms": round(elapsed_ms, 2),
					"net.peer.ip": client_ip,
					"http.user_agent": user_agent,
					"trace_id": _trace_id(),
				},
			)

	@app.on_event("startup")
	async def on_startup() -> None:
		if owns_storage and config.STORAGE_BACKEND == "database" and config.DATABASE_CREATE_ALL:
			await create_all()

	@app.on_event("shutdown")
	async def on_shutdown() -> None:
		await storage.close()
		if owns_storage and config.STORAGE_BACKEND == "database":
			await dispose_engine()

	@app.exception_handler(AppError)
	async def app_error_handler(request: Request, exc: AppError):
		if exc.status_code >= 500:
			_logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
		return JSONResponse(status_code=exc.status_code, content=api_error(exc.code, exc.message, exc.details))

	@app.exception_handler(RequestValidationError)
	async def request_validation_handler(request: Request, exc: RequestValidationError):
		details = []
		for error in exc.errors():
			loc = list(error.get("loc", ()))
			# Drop the request part ("body", "query", ...) from the location
			if loc and loc[0] in ("body", "query", "path", "header"):
				loc = loc[1:]
			details.append({"field": ".".join(str(part) for part in loc), "message": error.get("msg", "Invalid value")})
		return JSONResponse(
			status_code=400,
			content=api_error(code="VALIDATION_ERROR", message="Invalid request data", details=details),
		)

	@app.exception_handler(Exception)
	async def unhandled_exception_handler(request: Request, exc: Exception):
		_logger.exception(
			"Unhandled exception",
			extra={
				"http.method": request.method,
				"http.route": request.url.path,
				"trace_id": _trace_id(),
			},
		)
		return JSONResponse(status_code=500, content=api_error(code="INTERNAL_SERVER_ERROR", message="An unexpected error occurred"))

	@app.get("/")
	async def root():
		return {"service": config.APP_NAME, "status": "ok"}

	return app


app = create_app()
