from wasm_api.server import app  # re-use the FastAPI instance
from wasm_api.settings import settings

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
