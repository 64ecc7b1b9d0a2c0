"""Services package."""

from app.services import dependency_service, edge_store, task_service

__all__ = ["dependency_service", "edge_store", "task_service"]
