"""Loading, error and selection state for one spec document.

:class:`SpecRepository` owns the current spec URL, the last successfully
loaded :class:`~rpcspec.models.SpecDocument`, a selected-method cursor and a
``loading`` / ``error`` status pair. It is an ordinary object: create one per
spec source and hand it to whatever needs it.

State transitions of :meth:`SpecRepository.load_spec`::

    loading=True, error=None        (observers notified)
        await fetch
    spec replaced  | error set      (previous spec kept on failure)
    loading=False                   (always, observers notified)

Interested parties register with :meth:`SpecRepository.subscribe` and
receive a :class:`RepositoryState` snapshot after every transition. Setting
``loading=True`` and clearing ``error`` happen together and produce one
notification, so observers never see ``loading=True`` next to a stale error.

Overlapping :meth:`~SpecRepository.load_spec` calls are not coordinated:
both requests run, and whichever finishes last determines the final state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from rpcspec.client import SpecFetcher
from rpcspec.exceptions import RpcSpecError
from rpcspec.models import MethodSpec, SpecDocument, TypeDescriptor, TypeEntry
from rpcspec.resolver import resolve_type

logger = logging.getLogger(__name__)

DEFAULT_SPEC_URL = "/spec.json"


class Fetcher(Protocol):
    """Transport contract: GET a URL and return its decoded JSON body."""

    async def fetch_json(self, url: str) -> Any: ...


@dataclass(frozen=True)
class RepositoryState:
    """Immutable snapshot of a :class:`SpecRepository` passed to observers."""

    spec_url: str
    spec: SpecDocument
    selected_method: Optional[MethodSpec]
    loading: bool
    error: Optional[str]


Observer = Callable[[RepositoryState], None]


class SpecRepository:
    """Manage the lifecycle of one loaded spec document.

    Args:
        spec_url: URL used by :meth:`load_spec` when called without one.
        fetcher: Transport used to retrieve documents. Defaults to a
            :class:`~rpcspec.client.SpecFetcher` with default settings.

    Example::

        repo = SpecRepository("http://localhost:8080/spec.json")
        await repo.load_spec()
        if repo.error:
            print(repo.error)
        for method in repo.methods:
            print(method.name)
    """

    def __init__(
        self,
        spec_url: str = DEFAULT_SPEC_URL,
        fetcher: Optional[Fetcher] = None,
    ) -> None:
        self._spec_url = spec_url
        self._fetcher: Fetcher = fetcher or SpecFetcher()
        self._spec = SpecDocument()
        self._selected_method: Optional[MethodSpec] = None
        self._loading = False
        self._error: Optional[str] = None
        self._observers: list[Observer] = []

    # ------------------------------------------------------------------ #
    # Read accessors
    # ------------------------------------------------------------------ #

    @property
    def spec_url(self) -> str:
        return self._spec_url

    @property
    def spec(self) -> SpecDocument:
        """The last successfully loaded document (empty before the first load)."""
        return self._spec

    @property
    def methods(self) -> list[MethodSpec]:
        return self._spec.methods

    @property
    def types(self) -> Mapping[str, TypeEntry]:
        return self._spec.types

    @property
    def selected_method(self) -> Optional[MethodSpec]:
        return self._selected_method

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    def snapshot(self) -> RepositoryState:
        """Return the current state as an immutable :class:`RepositoryState`."""
        return RepositoryState(
            spec_url=self._spec_url,
            spec=self._spec,
            selected_method=self._selected_method,
            loading=self._loading,
            error=self._error,
        )

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    async def load_spec(self, url: Optional[str] = None) -> None:
        """Fetch the spec document and make it current.

        Never raises for transport or decoding problems: the message ends
        up in :attr:`error` and the previously loaded spec stays in place.

        Args:
            url: URL to fetch. Defaults to :attr:`spec_url`; passing a URL
                here does not change :attr:`spec_url`.
        """
        current_url = url or self._spec_url
        self._loading = True
        self._error = None
        self._notify()

        try:
            body = await self._fetcher.fetch_json(current_url)
            self._spec = SpecDocument.from_payload(body)
            self._error = None
            logger.debug(
                "Loaded spec from %s: %d methods, %d types",
                current_url,
                len(self._spec.methods),
                len(self._spec.types),
            )
        except RpcSpecError as exc:
            self._error = str(exc)
            logger.error("Error fetching spec from %s: %s", current_url, exc)
        except Exception as exc:
            self._error = str(exc) or type(exc).__name__
            logger.exception("Unexpected error fetching spec from %s", current_url)
        finally:
            self._loading = False
            self._notify()

    def set_spec_url(self, url: str) -> asyncio.Task[None]:
        """Store *url* as the spec URL and start loading it.

        The URL is stored immediately; the load runs as a task on the
        running event loop.

        Args:
            url: The new spec URL.

        Returns:
            The task running :meth:`load_spec`, for callers that want to
            wait for it.

        Raises:
            RuntimeError: If called outside a running event loop.
        """
        loop = asyncio.get_running_loop()
        self._spec_url = url
        return loop.create_task(self.load_spec(url))

    def select_method(self, method: Optional[MethodSpec]) -> None:
        """Set the selected method, or clear it with ``None``.

        No check is made that *method* belongs to :attr:`methods`, and the
        selection survives reloads.
        """
        self._selected_method = method
        self._notify()

    def find_method(self, name: str) -> Optional[MethodSpec]:
        """Return the first method called *name*, or ``None``."""
        for method in self._spec.methods:
            if method.name == name:
                return method
        return None

    def resolve(self, name: Optional[str]) -> Optional[TypeDescriptor]:
        """Resolve *name* against the current type registry.

        Shortcut for ``resolve_type(name, repo.types)``.
        """
        return resolve_type(name, self._spec.types)

    # ------------------------------------------------------------------ #
    # Observers
    # ------------------------------------------------------------------ #

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register *observer* to be called after every state transition.

        Args:
            observer: Callable receiving a :class:`RepositoryState`.

        Returns:
            A function that removes the observer again.
        """
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _notify(self) -> None:
        if not self._observers:
            return
        state = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(state)
            except Exception:
                logger.exception("Observer %r failed", observer)
