"""FastAPI application for the CPS Connect alumni directory."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cpsconnect.alumni import configure_postgres as configure_alumni
from cpsconnect.alumni import router as alumni_router
from cpsconnect.alumni.infra.postgres_repo import ensure_schema
from cpsconnect.api import ops
from cpsconnect.api.errors import install_error_handlers
from cpsconnect.api.middleware_request_id import RequestIdMiddleware
from cpsconnect.infra import postgres
from cpsconnect.obs import init as obs_init
from cpsconnect.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
	pool = await postgres.init_pool()
	await ensure_schema(pool)
	configure_alumni(pool)
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="CPS Connect Alumni", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["http://localhost:5173"] if settings.is_dev() else [settings.public_app_url]

# Starlette disallows wildcard '*' with allow_credentials=True.
if "*" in allow_origins:
	allow_origins = ["http://localhost:5173", "http://127.0.0.1:5173"] if settings.is_dev() else [settings.public_app_url]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

obs_init(app)
app.add_middleware(RequestIdMiddleware)

app.include_router(alumni_router)
app.include_router(ops.router, tags=["ops"])
