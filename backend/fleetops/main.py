"""
Main FastAPI application entry point.
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fleetops.api import trips, diesel, norms
from fleetops.db.database import engine, Base

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Fleet Ops",
    description="Trip cost tracking and diesel efficiency monitoring",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # React dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(trips.router, prefix="/api/trips", tags=["trips"])
app.include_router(norms.router, prefix="/api/diesel/norms", tags=["diesel-norms"])
app.include_router(diesel.router, prefix="/api/diesel", tags=["diesel"])


@app.get("/")
async def root():
    return {"message": "Fleet Ops API"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
