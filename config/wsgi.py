"""WSGI entry point for the Vider marketplace API.

Production servers (gunicorn, uWSGI) load ``application`` from here.
Settings default to ``config.settings.prod``; set DJANGO_SETTINGS_MODULE
to run another environment.
"""

import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.prod')

application = get_wsgi_application()
