"""
Gunicorn entry point.

The register (open cart, wholesale prompts, settlement latch) lives in the
worker's memory, so the app must run as a single worker:

    gunicorn --workers 1 --threads 4 wsgi:app
"""
import os
import sys

# config.py sits next to this file
sys.path.insert(0, os.path.dirname(__file__))

from minimart import create_app

app = create_app()

if __name__ == "__main__":
    app.run(threaded=True)
