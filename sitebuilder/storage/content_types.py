"""Extension -> MIME type lookup for objects written to the site bucket."""
import posixpath

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    # markup and text
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "txt": "text/plain",
    "md": "text/markdown",
    "csv": "text/csv",
    "xml": "application/xml",
    # scripts and data
    "js": "application/javascript",
    "mjs": "application/javascript",
    "json": "application/json",
    "map": "application/json",
    "wasm": "application/wasm",
    # images
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "webp": "image/webp",
    "avif": "image/avif",
    "bmp": "image/bmp",
    # fonts
    "woff": "font/woff",
    "woff2": "font/woff2",
    "ttf": "font/ttf",
    "otf": "font/otf",
    "eot": "application/vnd.ms-fontobject",
    # documents and media
    "pdf": "application/pdf",
    "zip": "application/zip",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mp3": "audio/mpeg",
}


def resolve_content_type(extension: str) -> str:
    """Map a filename extension (with or without the dot, any case) to a MIME type."""
    ext = (extension or "").lower().lstrip(".")
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


def content_type_for_path(path: str) -> str:
    _, ext = posixpath.splitext(posixpath.basename(path or ""))
    return resolve_content_type(ext)
