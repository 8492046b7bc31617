# Passlock API - local REST surface over the vault session

from .main import create_app

__all__ = ["create_app"]
