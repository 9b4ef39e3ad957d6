"""
Client page shell. The page itself is static; all room state comes from the polling API.
"""
from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from chatroom.core.config import settings

router = APIRouter()

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Chatroom</title>
</head>
<body>
  <main id="app" data-api="/api/room" data-poll-ms="{poll_ms}">
    <h1>Chatroom</h1>
    <p>Poll <code>GET /api/room/{room}/messages</code> or run <code>python -m scripts.chat_client</code>.</p>
  </main>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
@router.get("/index.html", response_class=HTMLResponse, include_in_schema=False)
async def index():
    return HTMLResponse(INDEX_HTML.replace("{poll_ms}", str(settings.POLL_RATE_MS)))
