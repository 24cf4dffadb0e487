"""WSGI entry point for the task tracker API."""

import os

from tracker_app import create_app

app = create_app(os.getenv("FLASK_ENV", "production"))


if __name__ == "__main__":
    app.run(port=app.config["PORT"])
