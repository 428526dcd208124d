import shutil
from pathlib import Path
from .models import BuildResult
from .security import validate_filename

class WorkspaceError(OSError):
    pass

class Workspace:
    """
    Scratch directory and final artifact path for a single build.

    ``base_name`` carries a per-request random token, so two workspaces never
    share a path. Both ``<base>.$`` and ``<base>.wasm`` are removed by
    complete(), and also when the ``with`` block is left through an exception.
    """

    def __init__(self, base_name: str):
        self.base_name = base_name
        self.dir = Path(base_name + ".$")
        self.result = Path(base_name + ".wasm")
        self.build_result = BuildResult()

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.cleanup()

    def begin(self) -> Path:
        self.dir.mkdir(parents=True, exist_ok=True)
        return self.dir

    def path_for(self, name: str) -> Path:
        return self.dir.joinpath(*validate_filename(name))

    def write(self, name: str, src: str) -> Path:
        p = self.path_for(name)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            # JSON may carry lone surrogates; keep them instead of failing the request
            p.write_bytes(src.encode("utf-8", errors="surrogatepass"))
        except (FileExistsError, NotADirectoryError, IsADirectoryError) as e:
            raise WorkspaceError(f"Cannot write {name}") from e
        return p

    def cleanup(self) -> None:
        shutil.rmtree(self.dir, ignore_errors=True)
        self.result.unlink(missing_ok=True)

    def complete(self, success: bool, message: str) -> BuildResult:
        self.cleanup()
        self.build_result.success = success
        self.build_result.message = message
        return self.build_result
