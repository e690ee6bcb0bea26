import re
from urllib.parse import urlparse, parse_qs

DRIVE_FILE_PATH = re.compile(r"/file/d/([^/]+)")


def extract_drive_id(url: str) -> str | None:
    """File id of a Google Drive share link (``/file/d/<id>/view`` or ``?id=<id>``), else None."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.hostname or "drive.google.com" not in parsed.hostname:
        return None
    match = DRIVE_FILE_PATH.search(parsed.path)
    if match:
        return match.group(1)
    ids = parse_qs(parsed.query).get("id")
    return ids[0] if ids else None


def normalize_image_url(url: str | None) -> str | None:
    """Drive share links become the renderable thumbnail endpoint; other URLs pass through."""
    if not url:
        return url
    drive_id = extract_drive_id(url)
    if drive_id is None:
        return url
    return f"https://drive.google.com/thumbnail?id={drive_id}&sz=w2000"
