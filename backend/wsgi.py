# backend/wsgi.py
from motostock import create_app

app = create_app()
