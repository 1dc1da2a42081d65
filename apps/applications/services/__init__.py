from .workflow import ApplicationWorkflowService

__all__ = ("ApplicationWorkflowService",)
