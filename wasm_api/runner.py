import subprocess
from typing import List, Optional
from .buildlog import log
from .workspace import Workspace

def shell_exec(cmd: List[str], cwd: str, log_path: Optional[str] = None) -> str:
    """
    Run `cmd` to completion with stdout and stderr merged into one capture.

    A non-zero exit or a failed spawn never raises here: the captured text is
    returned, or the failure message when nothing was captured. Callers judge
    success by whether the expected output file exists.
    """
    log("build", "RUN: " + " ".join(cmd), log_path)
    out = b""
    error = ""
    try:
        proc = subprocess.run(cmd, cwd=cwd, stdin=subprocess.DEVNULL,
                              stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=True)
        out = proc.stdout
    except subprocess.CalledProcessError as e:
        out = e.output or b""
        error = str(e)
    except OSError as e:
        error = str(e)
    return out.decode("utf-8", errors="replace") or error

def sanitize_shell_output(out: str, workspace: Workspace) -> str:
    # hide server-side paths from the client
    return out.replace(str(workspace.dir) + "/", "").replace(str(workspace.base_name), "")
