# orcamento/wsgi.py
# Ponto de entrada para o Gunicorn: gunicorn orcamento.wsgi:wsgi_app
from orcamento.main import create_app

wsgi_app = create_app()
