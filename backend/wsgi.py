# backend/wsgi.py
from clowee import create_app

app = create_app()
