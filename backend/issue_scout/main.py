from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from issue_scout.config import settings
from issue_scout.db.connection import close_db, init_db
from issue_scout.routers import issues, repos


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings.require("database_url")
    await init_db()
    yield
    await close_db()


app = FastAPI(title="Issue Scout", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(repos.router, prefix="/api")
app.include_router(issues.router, prefix="/api")
