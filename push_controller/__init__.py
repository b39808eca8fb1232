"""Controller layer: editor state, background tasks and the command-line front end."""
from .controller import PushMakerController
from .state import PushMakerState, StateStore
from .task_scope import TaskScope

__all__ = ["PushMakerController", "PushMakerState", "StateStore", "TaskScope"]
