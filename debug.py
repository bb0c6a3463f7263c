# debug.py
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator

COMPONENTS = (
    "keyboard", "plugboard", "rotor", "reflector", "stepping",
    "encipher", "config", "scorer", "search",
)


class Debug:
    """Per-component debug switches over one named logger.

    Every module keeps its own ``debug = Debug()``; the switches live on the
    class, so flipping one from a CLI reaches all of them.
    """

    _root_configured: bool = False
    _enabled: bool = True
    _components: Dict[str, bool] = dict.fromkeys(COMPONENTS, False)

    def __init__(self, *, log_to: str | None = None) -> None:
        if not Debug._root_configured:
            handlers: list[logging.Handler] = [logging.StreamHandler()]
            if log_to:
                handlers.append(logging.FileHandler(log_to, encoding="utf-8"))
            logging.basicConfig(
                level=logging.DEBUG,
                format="[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
                handlers=handlers,
            )
            Debug._root_configured = True
        self.logger = logging.getLogger("ROTORBREAK")

    @classmethod
    def configure(cls, components: Iterable[str] = (), *, log_to: str | None = None) -> "Debug":
        """Switch logging on for *components* only; used by the CLIs."""
        dbg = cls()
        if log_to:
            logging.getLogger().addHandler(logging.FileHandler(log_to, encoding="utf-8"))
        for name in COMPONENTS:
            Debug._components[name] = False
        dbg.enable(*components)
        dbg.toggle_global(True)
        return dbg

    @property
    def enabled(self) -> bool:
        return Debug._enabled

    # ── logging API ──────────────────────────────────────────────
    def log(self, component: str, message: str) -> None:
        if self.active(component):
            self.logger.debug("[%s] %s", component.upper(), message)

    def active(self, component: str) -> bool:
        return Debug._enabled and Debug._components.get(component, False)

    @contextmanager
    def timed(self, component: str, label: str) -> Iterator[None]:
        """Log how long the wrapped block took."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.log(component, f"{label} took {time.perf_counter() - start:.2f}s")

    # ── component toggles ────────────────────────────────────────
    def enable(self, *components: str) -> None:
        for c in components:
            self._require(c)
            Debug._components[c] = True

    def disable(self, *components: str) -> None:
        for c in components:
            self._require(c)
            Debug._components[c] = False

    def toggle(self, component: str) -> None:
        self._require(component)
        Debug._components[component] = not Debug._components[component]

    def toggle_global(self, state: bool) -> None:
        Debug._enabled = state

    def status(self) -> Dict[str, bool]:
        """Copy of the component map."""
        return dict(Debug._components)

    def _require(self, component: str) -> None:
        if component not in Debug._components:
            raise ValueError(f"No such component: {component!r}")

    def __repr__(self) -> str:
        active = [k for k, v in Debug._components.items() if v]
        return f"<Debug enabled={Debug._enabled} active={active}>"
