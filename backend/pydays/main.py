import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .db import Database
from .routers import auth, challenges, lessons, progress
from .seed import SeedError, seed_database
from .settings import settings

logger = logging.getLogger(__name__)


def create_app(database: Optional[Database] = None) -> FastAPI:
	@asynccontextmanager
	async def lifespan(app: FastAPI):
		db_handle = (database or Database()).open()
		app.state.database = db_handle
		if settings.seed_on_startup:
			session = db_handle.session()
			try:
				seed_database(session)
			except SeedError:
				logger.exception("Startup seed failed; serving existing content")
			finally:
				session.close()
		try:
			yield
		finally:
			db_handle.close()

	app = FastAPI(title="30 Days of Python API", lifespan=lifespan)
	app.include_router(auth.router)
	app.include_router(lessons.router)
	app.include_router(challenges.router)
	app.include_router(progress.router)

	@app.get("/info")
	def info():
		return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}

	return app


logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
app = create_app()
