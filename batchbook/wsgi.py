"""WSGI entrypoint for BatchBook."""

from __future__ import annotations

import os

from batchbook import create_app
from batchbook.extensions import socketio

app = create_app()

if __name__ == "__main__":
    host = os.environ.get("FLASK_RUN_HOST", "127.0.0.1")
    port = int(os.environ.get("FLASK_RUN_PORT", "5000"))
    # socketio.run serves both the HTTP API and the realtime channel.
    socketio.run(app, host=host, port=port, allow_unsafe_werkzeug=app.debug)
