"""
HubSpoke Server - Main FastAPI Application

This module contains the main FastAPI application for the HubSpoke Manager
server. It serves the REST API for managing the SharePoint hub/spoke site
hierarchy through changesets.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from datetime import datetime
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

# Configure logging to write to both console and file
# Create logs directory if it doesn't exist
logs_dir = Path("logs")
logs_dir.mkdir(exist_ok=True)

# Create log filename with timestamp
log_filename = logs_dir / f"hubspoke-server-{datetime.now().strftime('%Y-%m-%d')}.log"

# Configure logging with both console and file handlers
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        # Console handler
        logging.StreamHandler(),
        # File handler with rotation (max 10MB per file, keep 10 backup files)
        RotatingFileHandler(
            log_filename,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=10,
            encoding='utf-8'
        )
    ]
)
logger = logging.getLogger(__name__)

# Import database module for shared instances
import database

DEFAULT_DB_PATH = "database/hubspoke.db"


# ==================== Lifespan Events ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan event handler for startup and shutdown
    Manages database initialization and registry loading
    """
    # Startup
    logger.info("HubSpoke Server starting up...")

    db_path = os.environ.get("HUBSPOKE_DB_PATH", DEFAULT_DB_PATH)
    database.Initialize(db_path)
    logger.info(f"Database initialized successfully ({db_path})")
    logger.info(f"Site registry loaded with {len(database.site_registry)} sites")

    logger.info("Server startup complete")

    yield

    # Shutdown
    logger.info("HubSpoke Server shutting down...")
    database.db_manager.engine.dispose()
    logger.info("Shutdown complete")


# ==================== FastAPI Application ====================

app = FastAPI(
    title="HubSpoke Manager Server",
    description="Hub and spoke hierarchy management for SharePoint sites",
    version="1.0.0",
    lifespan=lifespan
)

# ==================== CORS Middleware ====================

# FRONTEND_ORIGINS is a comma separated list; all origins are allowed when unset
frontend_origins = [origin.strip() for origin in os.environ.get("FRONTEND_ORIGINS", "*").split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=frontend_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== Import Routers ====================

from routes import status, sites, changesets, csv_files, settings


# ==================== Include Routers ====================

app.include_router(status.router)
app.include_router(sites.router)
app.include_router(changesets.router)
app.include_router(csv_files.router)
app.include_router(settings.router)


# ==================== Main Entry Point ====================

if __name__ == "__main__":
    """
    Run the server using uvicorn
    """
    logger.info("Starting HubSpoke Server...")

    # host="0.0.0.0" allows connections from other machines on the network
    uvicorn.run(
        "server:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8000)),
        reload=False,
        log_level="info"
    )
