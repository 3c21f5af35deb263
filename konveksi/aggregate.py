"""Base aggregate class and @handles decorator.

Business logic lives as methods on the aggregate class. The @handles decorator
registers a method as the handler for one command type and records the events
it returns.

Example usage:
    from konveksi.aggregate import Aggregate, handles

    class Order(Aggregate[OrderState]):
        name = "order"

        @handles(AddNote)
        def add_note(self, cmd: AddNote) -> NoteAdded:
            if not self.exists:
                raise InvalidInput("Order does not exist")
            return NoteAdded(...)

        def _create_empty_state(self) -> OrderState:
            return OrderState()

        def _apply_event(self, state: OrderState, event) -> None:
            ...
"""

from __future__ import annotations

import inspect
import typing
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

import structlog

from .errors import ConcurrencyConflict, OrderRejectedError, errmsg

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_command_handler(
    func: Callable,
    command_type: type,
    cmd_param_index: int,
    decorator_name: str,
) -> str:
    """Validate a command handler's signature.

    Returns:
        The name of the cmd parameter.

    Raises:
        TypeError: If validation fails.
    """
    hints = typing.get_type_hints(func)
    params = list(inspect.signature(func).parameters.keys())

    if len(params) < cmd_param_index + 1:
        raise TypeError(f"{func.__name__}: must have cmd parameter")

    cmd_param = params[cmd_param_index]
    if cmd_param not in hints:
        raise TypeError(f"{func.__name__}: missing type hint for '{cmd_param}'")

    hint_type = hints[cmd_param]
    if hint_type != command_type:
        raise TypeError(
            f"{func.__name__}: @{decorator_name}({command_type.__name__}) "
            f"doesn't match type hint {getattr(hint_type, '__name__', hint_type)}"
        )

    return cmd_param


def handles(command_type: type):
    """Decorator for command handler methods on Aggregate subclasses.

    The decorated method returns a single event, or a tuple of events (possibly
    empty). Events are applied and recorded only after the method returns, so a
    handler that raises leaves the aggregate untouched.

    Raises:
        TypeError: If the type hint is missing or doesn't match command_type.
    """

    def decorator(method: Callable) -> Callable:
        @wraps(method)
        def wrapper(self, *args, **kwargs):
            result = method(self, *args, **kwargs)
            events = result if isinstance(result, tuple) else (result,)
            for event in events:
                self._apply_and_record(event)
            return result

        wrapper._is_handler = True
        wrapper._command_type = command_type
        wrapper._unvalidated = method
        return wrapper

    return decorator


StateT = TypeVar("StateT")


class Aggregate(Generic[StateT], ABC):
    """Base class for event-sourced aggregates.

    Provides:
    - Command dispatch via @handles decorated methods
    - State rebuilt lazily from prior events
    - New events kept apart from history until committed
    - ``version`` as an optimistic concurrency key

    Subclasses must:
    - Set the ``name`` class attribute
    - Implement ``_create_empty_state() -> StateT``
    - Implement ``_apply_event(state: StateT, event) -> None``
    - Decorate command handlers with ``@handles(CommandType)``
    """

    name: str
    _dispatch_table: dict[type, str] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        if inspect.isabstract(cls):
            return

        if not getattr(cls, "name", None):
            raise TypeError(f"{cls.__name__} must define 'name' class attribute")

        cls._dispatch_table = cls._build_dispatch_table()

    @classmethod
    def _build_dispatch_table(cls) -> dict[type, str]:
        """Scan for @handles methods and build the dispatch table."""
        table = {}
        for attr_name in dir(cls):
            attr = getattr(cls, attr_name, None)
            if callable(attr) and getattr(attr, "_is_handler", False):
                cmd_type = attr._command_type
                # Hints resolve here, once the defining module is fully imported.
                validate_command_handler(
                    attr._unvalidated, cmd_type, cmd_param_index=1, decorator_name="handles"
                )
                if cmd_type in table:
                    raise TypeError(f"{cls.__name__}: duplicate handler for {cmd_type.__name__}")
                table[cmd_type] = attr_name
        return table

    def __init__(self, history: Iterable[Any] = (), clock: Optional[Clock] = None):
        """Initialize with prior events for rehydration.

        Args:
            history: Events already persisted for this aggregate, oldest first.
            clock: Source of "now" for commands that carry no timestamp.
        """
        self._history: list[Any] = list(history)
        self._pending: list[Any] = []
        self._state: Optional[StateT] = None
        self._clock = clock or utc_now
        self._log = logger.bind(aggregate=self.name)

    def now(self) -> datetime:
        return self._clock()

    def dispatch(self, command: Any) -> None:
        """Dispatch a command to its @handles method.

        Raises:
            ValueError: If no handler matches the command type.
        """
        method_name = self._dispatch_table.get(type(command))
        if method_name is None:
            raise ValueError(f"{errmsg.UNKNOWN_COMMAND}: {type(command).__name__}")
        getattr(self, method_name)(command)

    def handle(self, command: Any, expected_version: Optional[int] = None) -> list[Any]:
        """Check the version, dispatch, and return the events this command produced.

        Raises:
            ConcurrencyConflict: ``expected_version`` differs from the current version.
            OrderRejectedError: The command broke a business rule.
        """
        command_name = type(command).__name__
        if expected_version is not None and expected_version != self.version:
            self._log.warning(
                "command_conflict",
                command=command_name,
                expected_version=expected_version,
                version=self.version,
            )
            raise ConcurrencyConflict(expected=expected_version, actual=self.version)

        before = len(self._pending)
        try:
            self.dispatch(command)
        except OrderRejectedError as e:
            self._log.warning("command_rejected", command=command_name, reason=e.message)
            raise

        produced = self._pending[before:]
        self._log.info(
            "command_accepted",
            command=command_name,
            events=[type(e).__name__ for e in produced],
            version=self.version,
        )
        return produced

    @property
    def version(self) -> int:
        """Number of events applied, persisted or pending."""
        return len(self._history) + len(self._pending)

    @property
    def state(self) -> StateT:
        return self._get_state()

    def pending_events(self) -> list[Any]:
        """Events produced since load or the last commit, for persistence."""
        return list(self._pending)

    def commit(self) -> list[Any]:
        """Move pending events into history and return them."""
        committed = self._pending
        self._history.extend(committed)
        self._pending = []
        return committed

    def history(self) -> list[Any]:
        return self._history + self._pending

    def _get_state(self) -> StateT:
        if self._state is None:
            self._state = self._rebuild()
        return self._state

    def _rebuild(self) -> StateT:
        state = self._create_empty_state()
        for event in self._history + self._pending:
            self._apply_event(state, event)
        return state

    def _apply_and_record(self, event: Any) -> None:
        """Apply an event to cached state and add it to the pending list."""
        self._apply_event(self._get_state(), event)
        self._pending.append(event)

    @abstractmethod
    def _create_empty_state(self) -> StateT:
        """Create an empty state instance."""
        ...

    @abstractmethod
    def _apply_event(self, state: StateT, event: Any) -> None:
        """Apply a single event to state."""
        ...
