from fastapi import FastAPI, Depends, Request, WebSocket
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from .models import BuildRequest, BuildResult
from .settings import Settings, settings
from .builder import build_project
from .lsp_proxy import LanguageServerProxy
from .buildlog import log
import os, secrets, traceback

app = FastAPI(title="C/C++ to WebAssembly Build API")

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

def get_settings() -> Settings:
    return settings

@app.exception_handler(RequestValidationError)
async def bad_request(request: Request, exc: RequestValidationError):
    log("http", f"rejected {request.url.path}: {len(exc.errors())} validation error(s)")
    return PlainTextResponse("400 Bad Request", status_code=400)

# Liveness
@app.get("/", include_in_schema=False)
async def root():
    return PlainTextResponse("ok")

# ---- BUILD ENDPOINT ----
# Plain `def`: the toolchain calls block, so FastAPI runs this on its thread pool.
@app.post("/api/build", response_model=BuildResult, response_model_exclude_none=True)
def build(req: BuildRequest, cfg: Settings = Depends(get_settings)):
    base_name = os.path.join(cfg.TEMP_DIR, "build_" + secrets.token_hex(8))
    try:
        return build_project(req, base_name, cfg)
    except Exception:
        log("http", "build crashed:\n" + traceback.format_exc(), cfg.LOG_PATH)
        return PlainTextResponse("500 Internal server error", status_code=500)

# ---- LANGUAGE SERVER ----
@app.websocket("/language-server/c")
async def language_server(websocket: WebSocket, cfg: Settings = Depends(get_settings)):
    await LanguageServerProxy(websocket, cfg).run()

