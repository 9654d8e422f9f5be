"""
Question Maker API — Main Application
FastAPI application for the question bank generator.
Serves the exam/course/slot/part selection, topic allocation, and the
sequential LLM question generation pipeline.
"""

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from database.database import engine, Base
from database import models  # noqa: F401  (registers tables on Base.metadata)
from routers import selection, generation

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create tables."""
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title="Question Maker API",
    description="Topic-weighted question bank generation with an LLM",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─── Routers ───────────────────────────────────────────────────────────────────

app.include_router(selection.router)          # /exams, /courses/*
app.include_router(generation.router)         # /generation/*


@app.get("/")
def root():
    return {"service": "Question Maker API", "status": "ok"}
