"""Sign-in Notice View.

Landing screen for the sign-in route after a completed signup.  Shows
the message the workflow passed to ``navigate`` (verify your email,
application under review) and lets the user start another signup.
Signing in itself is handled by the web platform.
"""

from __future__ import annotations

from typing import Callable

import customtkinter as ctk

from minara.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    BUTTON_HEIGHT,
    CARD_BORDER,
    CARD_WIDTH,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    FONT_BODY,
    FONT_BUTTON,
    FONT_HEADING,
    FONT_ICON_LG,
    PADDING_LG,
    PADDING_MD,
    SUCCESS_TEXT,
    TEXT_LIGHT,
    TEXT_PRIMARY,
)


class SignInNoticeView(ctk.CTkFrame):
    """Confirmation card shown at the sign-in route."""

    def __init__(
        self,
        parent: ctk.CTk,
        message: str,
        on_back: Callable[[], None],
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)

        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)
        self.grid_columnconfigure(0, weight=1)

        card = ctk.CTkFrame(
            self,
            width=CARD_WIDTH,
            fg_color=CONTENT_CARD_BG,
            corner_radius=16,
            border_width=1,
            border_color=CARD_BORDER,
        )
        card.grid(row=1, column=0)

        inner = ctk.CTkFrame(card, fg_color="transparent")
        inner.pack(fill="both", expand=True, padx=36, pady=28)

        ctk.CTkLabel(
            inner, text="✉", font=FONT_ICON_LG, text_color=SUCCESS_TEXT,
        ).pack(pady=(0, PADDING_MD))
        ctk.CTkLabel(
            inner, text="Check your inbox", font=FONT_HEADING, text_color=TEXT_PRIMARY,
        ).pack(pady=(0, PADDING_MD))
        self._message_label = ctk.CTkLabel(
            inner,
            text=message,
            font=FONT_BODY,
            text_color=TEXT_PRIMARY,
            wraplength=CARD_WIDTH - 100,
            justify="center",
        )
        self._message_label.pack(pady=(0, PADDING_LG))

        ctk.CTkButton(
            inner,
            text="Create another account",
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=BUTTON_HEIGHT,
            corner_radius=CORNER_RADIUS,
            command=on_back,
        ).pack(fill="x")

    def show_message(self, message: str) -> None:
        self._message_label.configure(text=message)
