import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.constants import APP_VERSION
from api.routes.movie import router as movie_router
from api.routes.version import router as version_router


def create_app() -> FastAPI:
    app = FastAPI(title="avmeta API", version=APP_VERSION)

    # CORS configuration for internal network use
    allowed_origins = os.environ.get("CORS_ORIGINS", "*").split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(movie_router, tags=["movie"])
    app.include_router(version_router, tags=["version"])

    @app.get("/")
    async def root():
        return {"message": "avmeta API is running"}

    return app


app = create_app()
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
