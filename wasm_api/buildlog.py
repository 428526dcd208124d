import datetime
from typing import Optional

def log(tag: str, line: str, path: Optional[str] = None) -> None:
    ts = datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None).isoformat() + "Z"
    msg = f"[{tag}] {ts} {line}"
    print(msg, flush=True)
    if not path:
        return
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(msg + "\n")
    except OSError:
        # best-effort; a full disk must not fail the build
        pass
