"""
Settings package.
manage.py and config.asgi pick the concrete module from the DJANGO_ENV
environment variable (development, production or test).
"""
