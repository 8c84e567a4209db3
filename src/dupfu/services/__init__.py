from .action_service import ActionService, ActionExecutor
from .verify_service import VerifyService

__all__ = ["ActionService", "ActionExecutor", "VerifyService"]
