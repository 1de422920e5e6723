# Overview: WSGI entry point for the complaint backend (FLASK_APP=wsgi.py).

from seedcare import create_app

app = create_app()
