"""WSGI entry point for production deployment (e.g. ``gunicorn wsgi:app``)."""
import os
from dotenv import load_dotenv

load_dotenv()

from qr_attendance import create_app  # noqa: E402

app = create_app(os.getenv('FLASK_ENV', 'production'))
