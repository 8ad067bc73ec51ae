from typing import Type, Callable, List, Dict, Any, Optional
from vproc.domain.events import Event

class EventBus:
    """Synchronous pub/sub between the batch orchestrator and the console layers.

    Callbacks run in the publisher's thread, in subscription order. Subscriptions
    are exact-type: a subscriber to ProgressEvent does not see EncodeEnded.
    """

    def __init__(self):
        self._subscribers: Dict[Type[Event], List[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: Type[Event], callback: Optional[Callable[[Any], None]] = None):
        """Registers a callback for an event type. Can be used as a decorator."""
        if callback is None:
            def decorator(func: Callable[[Any], None]):
                self.subscribe(event_type, func)
                return func
            return decorator

        self._subscribers.setdefault(event_type, []).append(callback)
        return callback

    def publish(self, event: Event):
        for callback in list(self._subscribers.get(type(event), [])):
            callback(event)
