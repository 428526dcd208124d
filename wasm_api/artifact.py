import base64, zlib
from pathlib import Path

def serialize_file_data(filename: str, compress: bool = False) -> str:
    content = Path(filename).read_bytes()
    if compress:
        # zlib stream, the same format clients inflate from node's deflateSync
        content = zlib.compress(content)
    return base64.b64encode(content).decode("ascii")
