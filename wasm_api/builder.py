import os
from pathlib import Path
from typing import List
from .models import BuildRequest, BuildResult, Task
from .settings import Settings
from .flags import get_clang_options, get_lld_options
from .runner import shell_exec, sanitize_shell_output
from .artifact import serialize_file_data
from .workspace import Workspace, WorkspaceError
from .security import InvalidFilename
from .buildlog import log

COMPILERS = {"c": "clang", "cpp": "clang++"}

def _tool(settings: Settings, name: str) -> str:
    return os.path.join(settings.llvm_dir, "bin", name)

def build_source_file(file_type: str, src: Path, options: str, output: Path, compress: bool,
                      ws: Workspace, settings: Settings, task: Task) -> bool:
    cmd = [_tool(settings, COMPILERS[file_type])] + get_clang_options(options, settings) + [str(src), "-o", str(output)]
    out = shell_exec(cmd, cwd=str(ws.dir), log_path=settings.LOG_PATH)
    task.console = sanitize_shell_output(out, ws)
    task.success = output.exists()
    if task.success:
        task.output = serialize_file_data(str(output), compress)
    return task.success

def link_obj_files(obj_files: List[Path], options: str, has_cpp: bool,
                   ws: Workspace, settings: Settings, task: Task) -> bool:
    clang = _tool(settings, "clang++" if has_cpp else "clang")
    cmd = [clang] + get_lld_options(options, settings) + [str(o) for o in obj_files] + ["-o", str(ws.result)]
    out = shell_exec(cmd, cwd=str(ws.dir), log_path=settings.LOG_PATH)
    task.console = sanitize_shell_output(out, ws)
    task.success = ws.result.exists()
    return task.success

def build_project(project: BuildRequest, base_name: str, settings: Settings) -> BuildResult:
    """
    Compile every C/C++ file of `project` to an object, link them to a wasm
    module and return the base64 artifact plus one Task per stage.

    Stops at the first failing stage. Whatever the outcome, the scratch
    directory and artifact derived from `base_name` are gone on return.
    """
    ws = Workspace(base_name)
    if project.output != "wasm":
        return ws.complete(False, f"Invalid output type {project.output}")

    # every name is checked before anything touches the disk
    for file in project.files:
        try:
            ws.path_for(file.name)
        except InvalidFilename:
            return ws.complete(False, f"Invalid filename {file.name}")

    with ws:
        ws.begin()
        log("build", f"Building in {base_name}", settings.LOG_PATH)
        for file in project.files:
            try:
                ws.write(file.name, file.src)
            except WorkspaceError:
                return ws.complete(False, f"Cannot write {file.name}")

        tasks = ws.build_result.tasks
        obj_files = []
        has_cpp = False
        for file in project.files:
            if file.type not in COMPILERS:
                continue  # headers and data files are written only
            has_cpp = has_cpp or file.type == "cpp"
            src = ws.path_for(file.name)
            obj = src.with_name(src.name + ".o")
            task = Task(name=f"building {file.name}", file=file.name)
            tasks.append(task)
            obj_files.append(obj)
            if not build_source_file(file.type, src, file.options or "", obj, project.compress, ws, settings, task):
                log("build", f"compile failed: {file.name}", settings.LOG_PATH)
                return ws.complete(False, f"Error during build of {file.name}")

        link_task = Task(name="linking wasm")
        tasks.append(link_task)
        if not link_obj_files(obj_files, project.link_options or "", has_cpp, ws, settings, link_task):
            log("build", "link failed", settings.LOG_PATH)
            return ws.complete(False, "Error during linking")

        ws.build_result.output = serialize_file_data(str(ws.result), project.compress)
        return ws.complete(True, "Success")
