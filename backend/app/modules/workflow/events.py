"""
Post-commit hooks for workflow side effects.

A primary transition (student approval, group selection) commits first and
then publishes an event here. Subscribed handlers run afterwards against the
same session; whatever they return, or the error they raised, is handed back
to the publisher as a HookResult so the caller can report "done, but the side
effect failed" and retry the side effect on its own later.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime
from collections import defaultdict

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging_config import logger
from app.core.types import utcnow


class WorkflowEventType(str, Enum):
    STUDENT_GROUP_SET = "student_group_set"
    STUDENT_APPROVED = "student_approved"
    RECONCILE_REQUESTED = "reconcile_requested"


@dataclass
class WorkflowEvent:
    """A committed workflow change"""
    type: WorkflowEventType
    entity_id: str
    actor_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)


@dataclass
class HookResult:
    """What one handler produced for one event"""
    handler: str
    ok: bool
    value: Any = None
    error: Optional[str] = None


HookHandler = Callable[[WorkflowEvent, AsyncSession], Awaitable[Any]]


class PostCommitHooks:
    """Registry of async handlers keyed by event type"""

    def __init__(self):
        self._handlers: Dict[WorkflowEventType, List[HookHandler]] = defaultdict(list)

    def subscribe(self, event_type: WorkflowEventType, handler: HookHandler) -> None:
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)
            logger.debug(f"[Hooks] Registered {handler.__name__} for {event_type.value}")

    def unsubscribe(self, event_type: WorkflowEventType, handler: HookHandler) -> None:
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

    def on(self, *event_types: WorkflowEventType):
        """Decorator form of subscribe"""
        def decorator(handler: HookHandler) -> HookHandler:
            for event_type in event_types:
                self.subscribe(event_type, handler)
            return handler
        return decorator

    def handlers_for(self, event_type: WorkflowEventType) -> List[HookHandler]:
        return list(self._handlers[event_type])

    async def publish(self, event: WorkflowEvent, db: AsyncSession) -> List[HookResult]:
        """
        Run every handler for the event in registration order.

        The primary change is already committed, so a failing handler is
        rolled back, logged and reported in its HookResult; the remaining
        handlers still run.
        """
        results: List[HookResult] = []
        for handler in self.handlers_for(event.type):
            name = handler.__name__
            try:
                value = await handler(event, db)
                results.append(HookResult(handler=name, ok=True, value=value))
            except Exception as e:
                await db.rollback()
                logger.log_error_with_context(
                    e,
                    context=f"post-commit hook {name} for {event.type.value}",
                    entity_id=event.entity_id,
                )
                results.append(HookResult(handler=name, ok=False, error=str(e) or type(e).__name__))
        return results


# Shared registry used by the services
workflow_events = PostCommitHooks()


__all__ = [
    "WorkflowEventType",
    "WorkflowEvent",
    "HookResult",
    "PostCommitHooks",
    "workflow_events",
]
