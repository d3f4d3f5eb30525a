"""ASGI entry point for the Vider marketplace API.

Serves the same HTTP API as the WSGI entry point under an ASGI server
(uvicorn, daphne). Settings default to ``config.settings.prod``.
"""

import os

from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.prod')

application = get_asgi_application()
