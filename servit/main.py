import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from servit import models  # noqa: F401  registers every table on Base.metadata
from servit.config import settings
from servit.database import Base, engine
from servit.api.v1 import (
    auth,
    locations,
    ingredients,
    recipes,
    menu_items,
    sales,
    insights,
    integrity,
    preferences
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
    yield


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Restaurant operations: effective-dated pricing, recipe costing and allergens",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_headers=["*"],
    allow_origins=settings.allowed_origins_list,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
)


# Health check
@app.get("/")
def read_root():
    return {
        "app": settings.APP_NAME,
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}


# Include routers
app.include_router(auth.router, prefix=f"{settings.API_V1_PREFIX}/auth", tags=["Authentication"])
app.include_router(locations.router, prefix=f"{settings.API_V1_PREFIX}/locations", tags=["Locations"])
app.include_router(ingredients.router, prefix=f"{settings.API_V1_PREFIX}/ingredients", tags=["Ingredients"])
app.include_router(recipes.router, prefix=f"{settings.API_V1_PREFIX}/recipes", tags=["Recipes"])
app.include_router(menu_items.router, prefix=f"{settings.API_V1_PREFIX}/menu-items", tags=["Menu Items"])
app.include_router(sales.router, prefix=f"{settings.API_V1_PREFIX}/sales", tags=["Server Sales"])
app.include_router(insights.router, prefix=f"{settings.API_V1_PREFIX}/insights", tags=["Insights"])
app.include_router(integrity.router, prefix=f"{settings.API_V1_PREFIX}/integrity", tags=["Data Integrity"])
app.include_router(preferences.router, prefix=f"{settings.API_V1_PREFIX}/preferences", tags=["Preferences"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("servit.main:app", host="0.0.0.0", port=8000, reload=True)
