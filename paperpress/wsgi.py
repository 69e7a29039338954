"""WSGI config for the paperpress project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "paperpress.settings")

application = get_wsgi_application()
