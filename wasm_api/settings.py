import os, sys
from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = os.path.join(os.path.dirname(__file__), ".env")

def _default_wasmception() -> str:
    return os.path.join(os.getcwd(), "clang", f"wasmception-{sys.platform.lower()}-bin")

class Settings(BaseSettings):
    WASMCEPTION: str = Field(default_factory=_default_wasmception)
    TEMP_DIR: str = "/tmp"
    INCLUDE_DIR: str = "/app/clang/includes"
    HOST: str = "::"
    PORT: int = 9000
    CLANGD_PATH: str = "clangd"
    CLANGD_ARGS: List[str] = []
    CLANGD_KILL_TIMEOUT: float = 5.0
    LOG_PATH: str = "/tmp/wasm-api.log"

    model_config = SettingsConfigDict(env_file=ENV_PATH, frozen=True)  # <- always read wasm_api/.env

    @property
    def llvm_dir(self) -> str:
        return os.path.join(self.WASMCEPTION, "dist")

    @property
    def sysroot(self) -> str:
        return os.path.join(self.WASMCEPTION, "sysroot")

settings = Settings()
