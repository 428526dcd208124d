from pydantic import BaseModel, field_validator
from typing import List, Literal, Optional
from .security import validate_filename

class FileSpec(BaseModel):
    type: str  # "c" and "cpp" are compiled, anything else is only written
    name: str
    options: Optional[str] = None
    src: str

    @field_validator("name")
    @classmethod
    def _safe_name(cls, v: str) -> str:
        validate_filename(v)
        return v

class BuildRequest(BaseModel):
    output: Literal["wasm"]
    files: List[FileSpec]
    link_options: Optional[str] = None
    compress: bool = False

class Task(BaseModel):
    name: str
    file: Optional[str] = None
    success: Optional[bool] = None
    console: Optional[str] = None
    output: Optional[str] = None

class BuildResult(BaseModel):
    success: bool = False
    message: str = ""
    output: str = ""
    tasks: List[Task] = []
