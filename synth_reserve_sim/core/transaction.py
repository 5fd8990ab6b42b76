#!/usr/bin/env python3
"""
Single-writer transactions

Every state-mutating entry point runs under one process-wide lock and either
commits fully or restores every live component to its pre-call state.
"""

import functools
import logging
import threading
import weakref
from collections import deque
from typing import Any, Dict, List, Tuple

logger = logging.getLogger(__name__)


def _copy_container(value: Any) -> Any:
    """Copy nested containers while keeping references to collaborators"""
    if isinstance(value, dict):
        return {k: _copy_container(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_copy_container(v) for v in value]
    if isinstance(value, set):
        return set(value)
    if isinstance(value, deque):
        return deque((_copy_container(v) for v in value), maxlen=value.maxlen)
    return value


class TransactionManager:
    """Tracks live components and serializes mutations"""

    def __init__(self):
        self._lock = threading.RLock()
        self._components = weakref.WeakSet()
        self._depth = 0
        self._snapshot: List[Tuple[Any, Dict[str, Any]]] = []

    def register(self, component: Any):
        self._components.add(component)

    @property
    def depth(self) -> int:
        return self._depth

    def begin(self):
        self._lock.acquire()
        if self._depth == 0:
            self._snapshot = [
                (component, component._snapshot_state())
                for component in list(self._components)
            ]
        self._depth += 1

    def commit(self):
        self._depth -= 1
        if self._depth == 0:
            self._snapshot = []
        self._lock.release()

    def rollback(self, exc: BaseException):
        self._depth -= 1
        try:
            # Nested calls join the outer transaction; only the outermost restores
            if self._depth == 0:
                for component, state in self._snapshot:
                    component._restore_state(state)
                self._snapshot = []
                logger.debug("transaction rolled back: %s", exc)
        finally:
            self._lock.release()


_manager = TransactionManager()


def get_transaction_manager() -> TransactionManager:
    return _manager


class Transaction:
    """Context manager wrapping one all-or-nothing operation"""

    def __enter__(self):
        _manager.begin()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            _manager.commit()
        else:
            _manager.rollback(exc_val)
        return False


def atomic(func):
    """Run the decorated call inside a Transaction"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with Transaction():
            return func(*args, **kwargs)
    return wrapper


class StatefulComponent:
    """Base class for anything whose state must roll back on rejection"""

    def __init__(self):
        _manager.register(self)

    def _snapshot_state(self) -> Dict[str, Any]:
        return {k: _copy_container(v) for k, v in vars(self).items()}

    def _restore_state(self, state: Dict[str, Any]):
        self.__dict__.clear()
        self.__dict__.update(state)
