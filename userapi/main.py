"""
Name: ASGI Entrypoint (userapi.main)

Responsibilities:
  - Re-export the FastAPI app for ASGI servers and tooling
  - Keep this module side-effect free beyond importing userapi.api.main

Collaborators:
  - userapi.api.main: module that constructs and exposes the FastAPI app
  - ASGI servers (uvicorn) configured to import userapi.main:app

Notes/Constraints:
  - No configuration or IO should live here; keep it thin and predictable
  - Changing this path is a deployment-breaking change for infra scripts
"""

from userapi.api.main import app

__all__ = ["app"]
