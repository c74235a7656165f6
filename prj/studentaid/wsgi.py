"""
WSGI config for the studentaid project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'studentaid.settings')

application = get_wsgi_application()
