"""
WSGI config for the ordering portal.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'portal.config.settings')

application = get_wsgi_application()
