# wsgi.py (at repo root)
from carecircle import create_app

app = create_app()
