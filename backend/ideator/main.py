import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routes.ideator import router as ideator_router
from .schemas.config_schema import IdeatorConfig

# Load environment variables from .env file
load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = IdeatorConfig.from_env()
    print("Starting Business Ideator")
    print(f"   OpenAI Key:  {'Configured' if os.getenv('OPENAI_API_KEY') else 'Not set'}")
    print(f"   Model:       {config.llm_config.model}")
    print(f"   Ideas/run:   {config.ideation_config.required_count}")
    print(f"   Min quality: {config.validation_config.min_quality_score:.0f}")

    yield

    print("Shutting down Business Ideator")


app = FastAPI(
    title="Business Ideator",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ideator_router)


@app.get("/", summary="API Root", tags=["General"])
async def root():
    return {
        "name": "Business Ideator",
        "version": "0.1.0",
        "docs": "/docs",
        "endpoints": {
            "generate": "POST /ideator - Generate ranked business ideas from research",
            "validate": "POST /ideator/validate - Validate a business idea",
            "refine": "POST /ideator/refine - Refine a business idea from feedback",
            "health": "GET /ideator/health - Ideator health check",
        },
    }


@app.get("/health", summary="Global Health Check", tags=["General"])
async def health():
    return {
        "status": "healthy",
        "service": "business-ideator",
        "version": "0.1.0",
    }


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "detail": str(exc) if os.getenv("DEBUG", "false").lower() == "true" else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ideator.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("DEBUG", "true").lower() == "true",
    )
