import logging

from fastapi import FastAPI

from calgrid.config import LOG_LEVEL, TIMEZONE_NAME, HOST, PORT
from calgrid.routes import layout, slots, recurrence, interactions

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI app
app = FastAPI(
    title="calgrid API",
    description="Day-view layout, drag/resize/create interactions and recurrence rules for a task and calendar grid",
    version="1.0.0"
)

# Include routers
app.include_router(layout.router, prefix="/layout", tags=["layout"])
app.include_router(slots.router, prefix="/slots", tags=["slots"])
app.include_router(recurrence.router, prefix="/recurrence", tags=["recurrence"])
app.include_router(interactions.router, prefix="/interactions", tags=["interactions"])

@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": "Welcome to calgrid API",
        "version": "1.0.0",
        "timezone": TIMEZONE_NAME,
        "endpoints": {
            "layout": "POST /layout/ - Side-by-side layout for a day's items",
            "project": "POST /layout/project - Project task and event records onto a day and lay them out",
            "slots": "GET /slots/{slot_id} - Decode a slot id",
            "recurrence": "POST /recurrence/* - Decode, encode and expand RRULE strings",
            "interactions": "/interactions/{view_id}/* - Hover, create, move and resize interactions"
        },
        "swagger_ui": "/docs - Interactive API documentation",
        "redoc": "/redoc - Alternative API documentation"
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

# This allows running the app directly with: python -m calgrid.main
if __name__ == "__main__":
    import uvicorn
    print(f"🚀 Starting calgrid API on {HOST}:{PORT}...")
    uvicorn.run("calgrid.main:app", host=HOST, port=PORT, reload=True)
