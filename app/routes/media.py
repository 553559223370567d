import mimetypes
import re
from typing import Optional, Tuple

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import StreamingResponse

from app.errors import NotFound
from app.services.media_storage import resolve_media_path

router = APIRouter()

CHUNK_SIZE = 1024 * 1024
RANGE_RE = re.compile(r"bytes=(\d*)-(\d*)$")

CORS_MEDIA_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Cross-Origin-Resource-Policy": "cross-origin",
}


def parse_range(header: str, file_size: int) -> Optional[Tuple[int, int]]:
    """Parse a single ``bytes=start-end`` range; None when unsatisfiable."""
    match = RANGE_RE.match(header.strip())
    if not match:
        return None

    raw_start, raw_end = match.groups()
    if raw_start == "" and raw_end == "":
        return None

    if raw_start == "":
        # suffix range: last N bytes
        length = int(raw_end)
        if length == 0:
            return None
        return max(0, file_size - length), file_size - 1

    start = int(raw_start)
    end = int(raw_end) if raw_end else file_size - 1
    end = min(end, file_size - 1)
    if start > end or start >= file_size:
        return None
    return start, end


def _iter_file(path, start: int, end: int):
    remaining = end - start + 1
    with open(path, "rb") as f:
        f.seek(start)
        while remaining > 0:
            chunk = f.read(min(CHUNK_SIZE, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk


@router.get("/uploads/{file_path:path}")
def serve_media(file_path: str, request: Request):
    path = resolve_media_path(file_path)
    if path is None or not path.is_file():
        raise NotFound("File not found")

    file_size = path.stat().st_size
    media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    headers = {"Accept-Ranges": "bytes", **CORS_MEDIA_HEADERS}

    range_header = request.headers.get("range")
    if range_header:
        byte_range = parse_range(range_header, file_size)
        if byte_range is None:
            return Response(
                status_code=status.HTTP_416_REQUESTED_RANGE_NOT_SATISFIABLE,
                headers={"Content-Range": f"bytes */{file_size}", **headers},
            )
        start, end = byte_range
        headers.update({
            "Content-Range": f"bytes {start}-{end}/{file_size}",
            "Content-Length": str(end - start + 1),
        })
        return StreamingResponse(
            _iter_file(path, start, end),
            status_code=status.HTTP_206_PARTIAL_CONTENT,
            media_type=media_type,
            headers=headers,
        )

    headers["Content-Length"] = str(file_size)
    return StreamingResponse(
        _iter_file(path, 0, file_size - 1),
        media_type=media_type,
        headers=headers,
    )
