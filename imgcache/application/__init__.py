"""Application layer: use cases, services, DTOs and collaborator interfaces."""
