"""Shared test fixtures: a stand-in toolchain and clangd written as scripts."""
from __future__ import annotations

import json
import stat
import sys
import textwrap
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from wasm_api.server import app, get_settings
from wasm_api.settings import Settings

WASM_MAGIC = b"\0asm\x01\0\0\0"

# Behaves like clang for the pipeline: `-c` turns one source into an object,
# otherwise all inputs are linked. Sources containing "#error" fail to build.
FAKE_CLANG = '''
import json, os, sys
args = sys.argv[1:]
with open(os.path.join(os.path.dirname(__file__), "..", "calls.jsonl"), "a") as log:
    log.write(json.dumps({"tool": os.path.basename(sys.argv[0]), "args": args, "cwd": os.getcwd()}) + "\\n")
out = args[args.index("-o") + 1]
inputs = []
skip = False
for a in args:
    if skip:
        skip = False
    elif a == "-o":
        skip = True
    elif not a.startswith("-"):
        inputs.append(a)
if "-c" in args:
    data = open(inputs[0], "rb").read()
    if b"#error" in data:
        sys.stderr.write(inputs[0] + ":1:2: error: syntax error\\n")
        sys.exit(1)
    open(out, "wb").write(b"OBJ:" + data)
else:
    if not inputs:
        sys.stderr.write("wasm-ld: error: no input files\\n")
        sys.exit(1)
    blob = b"".join(open(i, "rb").read() for i in inputs)
    if b"UNDEFINED" in blob:
        sys.stderr.write("wasm-ld: error: undefined symbol: main\\n")
        sys.exit(1)
    open(out, "wb").write(WASM_MAGIC + blob)
'''

# Minimal language server: records its pid, answers each request with an
# echo of the method, exits on the "exit" notification and answers
# "$/sendJunk" with a frame that has no Content-Length.
FAKE_CLANGD = '''
import json, os, sys
open(sys.argv[1], "w").write(str(os.getpid()))
stdin, stdout = sys.stdin.buffer, sys.stdout.buffer
while True:
    headers = {}
    while True:
        line = stdin.readline()
        if not line:
            sys.exit(0)
        line = line.strip()
        if not line:
            break
        k, _, v = line.decode().partition(":")
        headers[k.strip().lower()] = v.strip()
    msg = json.loads(stdin.read(int(headers["content-length"])))
    if msg.get("method") == "exit":
        sys.exit(0)
    if msg.get("method") == "$/sendJunk":
        stdout.write(b"X-Junk: 1\\r\\n\\r\\n{}")
        stdout.flush()
        continue
    reply = json.dumps({"jsonrpc": "2.0", "id": msg.get("id"), "result": {"echo": msg.get("method")}}).encode()
    stdout.write(b"Content-Length: %d\\r\\n\\r\\n" % len(reply) + reply)
    stdout.flush()
'''


def _write_script(path: Path, body: str, prelude: str = "") -> Path:
    path.write_text(f"#!{sys.executable}\n" + prelude + textwrap.dedent(body))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def toolchain(tmp_path: Path) -> Path:
    root = tmp_path / "wasmception"
    bin_dir = root / "dist" / "bin"
    bin_dir.mkdir(parents=True)
    (root / "sysroot").mkdir()
    prelude = f"WASM_MAGIC = {WASM_MAGIC!r}\n"
    for name in ("clang", "clang++"):
        _write_script(bin_dir / name, FAKE_CLANG, prelude)
    return root


@pytest.fixture
def clangd(tmp_path: Path) -> Path:
    return _write_script(tmp_path / "fake_clangd", FAKE_CLANGD)


@pytest.fixture
def scratch(tmp_path: Path) -> Path:
    d = tmp_path / "scratch"
    d.mkdir()
    return d


@pytest.fixture
def settings(toolchain: Path, clangd: Path, scratch: Path, tmp_path: Path) -> Settings:
    return Settings(
        WASMCEPTION=str(toolchain),
        TEMP_DIR=str(scratch),
        INCLUDE_DIR=str(tmp_path / "includes"),
        CLANGD_PATH=str(clangd),
        CLANGD_ARGS=[str(tmp_path / "clangd.pid")],
        CLANGD_KILL_TIMEOUT=2.0,
        LOG_PATH=str(tmp_path / "wasm-api.log"),
    )


@pytest.fixture
def client(settings: Settings):
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def calls(toolchain: Path):
    """Returns a function listing the toolchain invocations recorded so far."""

    def read() -> list:
        log = toolchain / "dist" / "calls.jsonl"
        if not log.exists():
            return []
        return [json.loads(line) for line in log.read_text().splitlines()]

    return read
