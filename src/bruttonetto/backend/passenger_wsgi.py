"""WSGI entrypoint for deploying the salary calculator backend."""

from bruttonetto.backend.app import create_app

# Passenger expects a module-level variable named ``application``.
application = create_app()
