"""Application Host Shell.

The top-level ``CTk`` window.  Owns the active view, implements the
``navigate(path, message)`` callback the signup workflow calls on
completion, and runs the reconciliation sweep for the lifetime of the
window.

All dependencies are injected via the constructor.  The shell contains
no business logic.
"""

from __future__ import annotations

from typing import Optional

import customtkinter as ctk

from minara.config import AppConfig
from minara.logger import StructuredLogger
from minara.services import ServiceContainer
from minara.ui.signin_notice_view import SignInNoticeView
from minara.ui.signup_view import SignupView
from minara.ui.theme import (
    MAIN_WINDOW_HEIGHT,
    MAIN_WINDOW_WIDTH,
    MIN_WINDOW_HEIGHT,
    MIN_WINDOW_WIDTH,
)

SIGNUP_PATH: str = "/auth/signup"


class AppShell(ctk.CTk):
    """Host Shell, the main application window.

    Lifecycle
    ---------
    1. On boot: installs itself as the workflow's navigator, starts the
       reconciliation sweep and shows the ``SignupView``.
    2. ``navigate(path, message)`` swaps the active view; it may be called
       from any thread.
    3. On close: cancels the in-flight signup (via view teardown) and
       stops the sweep.

    Parameters
    ----------
    config:
        Application configuration.
    services:
        Fully-wired service container.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        config: AppConfig,
        services: ServiceContainer,
        logger: StructuredLogger,
    ) -> None:
        super().__init__()

        self._config = config
        self._services = services
        self._logger = logger
        self._active_view: Optional[ctk.CTkFrame] = None

        self.title("Minara Learn: Sign Up")
        ctk.set_appearance_mode("light")
        ctk.set_default_color_theme("blue")
        self.geometry(f"{MAIN_WINDOW_WIDTH}x{MAIN_WINDOW_HEIGHT}")
        self.minsize(MIN_WINDOW_WIDTH, MIN_WINDOW_HEIGHT)

        self.protocol("WM_DELETE_WINDOW", self._on_close)

        self._services["signup_workflow"].set_navigator(self.navigate)
        self._services["reconciliation_sweep"].start()

        self._route(SIGNUP_PATH, "")

    # ==================================================================
    # Navigation
    # ==================================================================

    def navigate(self, path: str, message: str = "") -> None:
        """Thread-safe route change; the swap happens on the Tk thread."""
        self.after(0, self._route, path, message)

    def _route(self, path: str, message: str) -> None:
        self._clear_active_view()
        self._logger.info("Navigating to %s", path)

        if path == self._config.SIGN_IN_PATH:
            self._active_view = SignInNoticeView(
                parent=self,
                message=message,
                on_back=lambda: self._route(SIGNUP_PATH, ""),
            )
        else:
            if path != SIGNUP_PATH:
                self._logger.warning("Unknown route %s; showing signup.", path)
            self._active_view = SignupView(
                parent=self,
                workflow=self._services["signup_workflow"],
                logger=self._logger,
            )
        self._active_view.pack(fill="both", expand=True)

    def _clear_active_view(self) -> None:
        if self._active_view is not None:
            self._active_view.destroy()
            self._active_view = None

    # ==================================================================
    # Window close
    # ==================================================================

    def _on_close(self) -> None:
        """Stop background threads before destroying the window."""
        self._clear_active_view()
        self._services["signup_workflow"].set_navigator(None)
        self._services["reconciliation_sweep"].stop()
        self.destroy()
