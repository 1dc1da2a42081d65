from .lifecycle import ProjectLifecycleService

__all__ = ["ProjectLifecycleService"]
