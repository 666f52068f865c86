from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from leadchat.api.routes import router
from leadchat.api.admin_routes import router as admin_router
from leadchat.observability.logging import log
from leadchat.settings import settings

app = FastAPI(title="Lead Intake Chat API")

# The chat widget is served from the marketing site, so CORS is configurable via env.
origins = [x.strip() for x in settings.CORS_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(admin_router)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.exception_handler(Exception)
async def universal_exception_handler(request: Request, exc: Exception):
    # Nothing in the intake flow is fatal; answer with a stable JSON error body.
    log(event="unhandled_exception", path=request.url.path, errorType=type(exc).__name__, error=str(exc)[:300])
    return JSONResponse(
        status_code=500,
        content={"status": "error", "detail": "Ocorreu um erro inesperado. Tente novamente em instantes."},
    )
