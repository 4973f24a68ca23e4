# backend/wsgi.py
from vendtrack import create_app

app = create_app()
