"""Infrastructure layer — form documents on disk and the editing store.

This layer depends on stdlib and the domain layer. It must never import
from services, commands, or output. The service layer bridges between
commands and the store.
"""
