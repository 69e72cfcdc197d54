"""
MIME-type mapping and file helpers for object keys
"""
import os
import posixpath

MIMETYPES = {
    # Documents
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".rtf": "application/rtf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".odt": "application/vnd.oasis.opendocument.text",
    ".ods": "application/vnd.oasis.opendocument.spreadsheet",
    ".odp": "application/vnd.oasis.opendocument.presentation",
    ".csv": "text/csv",

    # Archives
    ".zip": "application/zip",
    ".tar": "application/x-tar",
    ".gz": "application/gzip",
    ".7z": "application/x-7z-compressed",
    ".rar": "application/x-rar-compressed",

    # Images
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".bmp": "image/bmp",
    ".ico": "image/x-icon",
    ".avif": "image/avif",

    # Audio
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".flac": "audio/flac",
    ".aac": "audio/aac",
    ".ogg": "audio/ogg",

    # Video
    ".mp4": "video/mp4",
    ".avi": "video/x-msvideo",
    ".mkv": "video/x-matroska",
    ".mov": "video/quicktime",
    ".wmv": "video/x-ms-wmv",
    ".flv": "video/x-flv",
    ".webm": "video/webm",

    # Code/Markup
    ".json": "application/json",
    ".xml": "application/xml",
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
}

DEFAULT_MIMETYPE = "application/octet-stream"

DOCUMENT_MIMETYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "text/csv",
    "application/rtf",
}

ARCHIVE_MIMETYPES = {
    "application/zip",
    "application/x-rar-compressed",
    "application/x-tar",
    "application/gzip",
    "application/x-7z-compressed",
}


def file_name(object_key: str) -> str:
    """Last path segment of an object key"""
    return posixpath.basename(object_key.rstrip("/"))


def mime_type(filename: str) -> str:
    """MIME type from the file extension, application/octet-stream when unknown"""
    ext = os.path.splitext(filename)[1].lower()
    return MIMETYPES.get(ext, DEFAULT_MIMETYPE)


def category(filename: str) -> str:
    """Coarse category: image, video, audio, document, archive or other"""
    mime = mime_type(filename)
    for prefix in ("image", "video", "audio"):
        if mime.startswith(prefix + "/"):
            return prefix
    if mime in DOCUMENT_MIMETYPES:
        return "document"
    if mime in ARCHIVE_MIMETYPES:
        return "archive"
    return "other"


def format_size(size_bytes: int, precision: int = 2) -> str:
    """Human readable byte count (1024 based)"""
    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    size = float(size_bytes)
    for unit in units:
        if abs(size) < 1024 or unit == units[-1]:
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.{precision}f} {unit}"
        size /= 1024
    return f"{size_bytes} B"


def directory_prefix(object_key: str) -> str:
    """Parent "folder" of a key: ``photos/2024/a.jpg`` -> ``photos/2024/``"""
    stripped = object_key.rstrip("/")
    idx = stripped.rfind("/")
    return "" if idx == -1 else stripped[: idx + 1]


def normalize_folder(path: str) -> str:
    """Folder path without leading slash and with exactly one trailing slash"""
    path = path.strip().strip("/")
    return f"{path}/" if path else ""
