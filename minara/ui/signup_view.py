"""Signup View.

Student / Instructor signup form.  Gathers inputs, hands a
``SignupRequest`` to ``SignupWorkflow`` on a background thread, and
renders the resulting ``WorkflowOutcome``: error message, remediation
hint / link, or the rate-limit countdown.

**Thin UI Rule**: this module contains no business logic.  Validation,
throttling and the write cascade all live in the service layer.
"""

from __future__ import annotations

import threading
import tkinter as tk
import webbrowser
from typing import Any, Callable, Optional

import customtkinter as ctk

from minara.logger import StructuredLogger
from minara.models.enums import ExperienceBand, ExpertiseArea, UserRole, WorkflowState
from minara.models.result_models import WorkflowOutcome
from minara.models.signup_models import InstructorDetails, SignupRequest
from minara.services.cancellation import CancellationToken
from minara.services.signup_workflow import SignupWorkflow
from minara.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    BUTTON_HEIGHT,
    CARD_BORDER,
    CARD_WIDTH,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    ERROR_TEXT,
    FONT_BODY,
    FONT_BRAND,
    FONT_BUTTON,
    FONT_CAPTION,
    FONT_LABEL,
    FONT_SMALL,
    FONT_SUBTITLE,
    FONT_TAB,
    FONT_TAB_ACTIVE,
    INPUT_BG,
    INPUT_BORDER,
    INPUT_HEIGHT,
    LINK_TEXT,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    TAB_HEIGHT,
    TAB_HOVER,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
    WARNING_TEXT,
)

_EXPERTISE_LABELS: dict[str, ExpertiseArea] = {
    "Programming & Development": ExpertiseArea.PROGRAMMING,
    "Design & UX": ExpertiseArea.DESIGN,
    "Business & Management": ExpertiseArea.BUSINESS,
    "Data Science & Analytics": ExpertiseArea.DATA_SCIENCE,
    "Cybersecurity": ExpertiseArea.CYBERSECURITY,
    "Cloud Computing": ExpertiseArea.CLOUD,
    "Mobile Development": ExpertiseArea.MOBILE,
    "AI & Machine Learning": ExpertiseArea.AI_ML,
    "DevOps": ExpertiseArea.DEVOPS,
    "Other": ExpertiseArea.OTHER,
}

_EXPERIENCE_LABELS: dict[str, ExperienceBand] = {
    "1-2 years": ExperienceBand.ONE_TO_TWO,
    "3-5 years": ExperienceBand.THREE_TO_FIVE,
    "6-10 years": ExperienceBand.SIX_TO_TEN,
    "10+ years": ExperienceBand.TEN_PLUS,
}

_SELECT_PLACEHOLDER: str = "Select..."
_SUBMIT_TEXT: str = "Create Account  →"
_SUBMIT_TEXT_INSTRUCTOR: str = "Submit Application  →"


class SignupView(ctk.CTkFrame):
    """Scrollable signup card with Student / Instructor tabs.

    Parameters
    ----------
    parent:
        The root ``CTk`` window this frame belongs to.
    workflow:
        Fully wired signup workflow (its guard drives the countdown).
    logger:
        Structured JSON logger.
    """

    def __init__(
        self,
        parent: ctk.CTk,
        workflow: SignupWorkflow,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)

        self._workflow: SignupWorkflow = workflow
        self._logger: StructuredLogger = logger
        self._role: UserRole = UserRole.STUDENT
        self._cancel_token: Optional[CancellationToken] = None
        self._closed: bool = False

        # Shared fields
        self._name_entry: Optional[ctk.CTkEntry] = None
        self._email_entry: Optional[ctk.CTkEntry] = None
        self._password_entry: Optional[ctk.CTkEntry] = None
        self._confirm_entry: Optional[ctk.CTkEntry] = None
        self._terms_var: tk.BooleanVar = tk.BooleanVar(value=False)

        # Instructor fields
        self._instructor_frame: Optional[ctk.CTkFrame] = None
        self._expertise_var: tk.StringVar = tk.StringVar(value=_SELECT_PLACEHOLDER)
        self._experience_var: tk.StringVar = tk.StringVar(value=_SELECT_PLACEHOLDER)
        self._organization_entry: Optional[ctk.CTkEntry] = None
        self._bio_box: Optional[ctk.CTkTextbox] = None
        self._motivation_box: Optional[ctk.CTkTextbox] = None

        # Tabs, actions, feedback
        self._student_tab: Optional[ctk.CTkButton] = None
        self._instructor_tab: Optional[ctk.CTkButton] = None
        self._submit_button: Optional[ctk.CTkButton] = None
        self._error_label: Optional[ctk.CTkLabel] = None
        self._hint_label: Optional[ctk.CTkLabel] = None
        self._link_label: Optional[ctk.CTkLabel] = None
        self._countdown_frame: Optional[ctk.CTkFrame] = None
        self._countdown_label: Optional[ctk.CTkLabel] = None
        self._terms_row: Optional[ctk.CTkFrame] = None

        self._build_ui()
        self._resume_countdown_if_blocked()

    # ------------------------------------------------------------------
    # UI Construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        scroll = ctk.CTkScrollableFrame(self, fg_color=CONTENT_BG)
        scroll.pack(fill="both", expand=True)

        card = ctk.CTkFrame(
            scroll,
            width=CARD_WIDTH,
            fg_color=CONTENT_CARD_BG,
            corner_radius=16,
            border_width=1,
            border_color=CARD_BORDER,
        )
        card.pack(pady=PADDING_LG, padx=PADDING_LG)

        inner = ctk.CTkFrame(card, fg_color="transparent")
        inner.pack(fill="both", expand=True, padx=36, pady=28)

        ctk.CTkLabel(
            inner, text="Minara Learn", font=FONT_BRAND, text_color=TEXT_PRIMARY,
        ).pack(pady=(0, 2))
        ctk.CTkLabel(
            inner,
            text="Create your account",
            font=FONT_SUBTITLE,
            text_color=TEXT_SECONDARY,
        ).pack(pady=(0, PADDING_LG))

        # -- Tab bar --
        tab_bar = ctk.CTkFrame(inner, fg_color="transparent", height=TAB_HEIGHT)
        tab_bar.pack(fill="x", pady=(0, PADDING_MD))
        tab_bar.pack_propagate(False)
        tab_bar.grid_columnconfigure(0, weight=1)
        tab_bar.grid_columnconfigure(1, weight=1)

        self._student_tab = self._tab_button(
            tab_bar, "Student", lambda: self._switch_role(UserRole.STUDENT),
        )
        self._student_tab.grid(row=0, column=0, sticky="nsew")
        self._instructor_tab = self._tab_button(
            tab_bar, "Instructor", lambda: self._switch_role(UserRole.INSTRUCTOR_PENDING),
        )
        self._instructor_tab.grid(row=0, column=1, sticky="nsew")

        # -- Shared fields --
        self._name_entry = self._labeled_entry(inner, "FULL NAME", "e.g. Amina Yusuf")
        self._email_entry = self._labeled_entry(inner, "EMAIL ADDRESS", "name@example.com")
        self._password_entry = self._labeled_entry(
            inner, "PASSWORD", "At least 8 characters", show="*",
        )
        self._confirm_entry = self._labeled_entry(
            inner, "CONFIRM PASSWORD", "Repeat your password", show="*",
        )

        # -- Instructor fields (packed only on the Instructor tab) --
        self._instructor_frame = ctk.CTkFrame(inner, fg_color="transparent")
        self._build_instructor_fields(self._instructor_frame)

        # -- Terms + submit --
        self._terms_row = ctk.CTkFrame(inner, fg_color="transparent")
        self._terms_row.pack(fill="x", pady=(PADDING_SM, PADDING_MD))
        ctk.CTkCheckBox(
            self._terms_row,
            text="I agree to the Terms of Service and Privacy Policy",
            font=FONT_SMALL,
            text_color=TEXT_PRIMARY,
            variable=self._terms_var,
            onvalue=True,
            offvalue=False,
        ).pack(anchor="w")

        self._submit_button = ctk.CTkButton(
            inner,
            text=_SUBMIT_TEXT,
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=BUTTON_HEIGHT,
            corner_radius=CORNER_RADIUS,
            command=self._handle_submit,
        )
        self._submit_button.pack(fill="x", pady=(0, PADDING_SM))

        # -- Feedback (hidden until needed) --
        self._error_label = ctk.CTkLabel(
            inner, text="", font=FONT_SMALL, text_color=ERROR_TEXT,
            wraplength=CARD_WIDTH - 100, justify="left",
        )
        self._hint_label = ctk.CTkLabel(
            inner, text="", font=FONT_SMALL, text_color=TEXT_SECONDARY,
            wraplength=CARD_WIDTH - 100, justify="left",
        )
        self._link_label = ctk.CTkLabel(
            inner, text="", font=FONT_SMALL, text_color=LINK_TEXT, cursor="hand2",
        )

        self._countdown_frame = ctk.CTkFrame(inner, fg_color="transparent")
        self._countdown_label = ctk.CTkLabel(
            self._countdown_frame, text="", font=FONT_SMALL, text_color=WARNING_TEXT,
        )
        self._countdown_label.pack(fill="x")
        ctk.CTkButton(
            self._countdown_frame,
            text="I've waited, let me try again",
            font=FONT_SMALL,
            fg_color="transparent",
            hover_color=TAB_HOVER,
            text_color=ACCENT_PRIMARY,
            height=28,
            corner_radius=CORNER_RADIUS,
            command=self._handle_override,
        ).pack(pady=(4, 0))

        ctk.CTkLabel(
            inner,
            text="Instructor applications are reviewed by our team before approval.",
            font=FONT_CAPTION,
            text_color=TEXT_SECONDARY,
        ).pack(side="bottom", pady=(PADDING_SM, 0))

        self._apply_tab_style()

    def _build_instructor_fields(self, parent: ctk.CTkFrame) -> None:
        self._labeled_option(parent, "AREA OF EXPERTISE", list(_EXPERTISE_LABELS), self._expertise_var)
        self._labeled_option(parent, "YEARS OF EXPERIENCE", list(_EXPERIENCE_LABELS), self._experience_var)
        self._organization_entry = self._labeled_entry(
            parent, "ORGANIZATION (OPTIONAL)", "Company or institution",
        )
        self._bio_box = self._labeled_textbox(
            parent, "PROFESSIONAL BIO (MIN. 100 CHARACTERS)",
        )
        self._motivation_box = self._labeled_textbox(
            parent, "WHY DO YOU WANT TO TEACH? (MIN. 50 CHARACTERS)",
        )

    # -- widget helpers -------------------------------------------------

    def _tab_button(self, parent: Any, text: str, command: Callable[[], None]) -> ctk.CTkButton:
        return ctk.CTkButton(
            parent,
            text=text,
            font=FONT_TAB,
            fg_color="transparent",
            hover_color=TAB_HOVER,
            text_color=TEXT_SECONDARY,
            height=TAB_HEIGHT,
            corner_radius=0,
            border_width=1,
            border_color=INPUT_BORDER,
            command=command,
        )

    @staticmethod
    def _field_label(parent: Any, text: str) -> None:
        ctk.CTkLabel(
            parent, text=text, font=FONT_LABEL, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", pady=(0, 4))

    def _labeled_entry(
        self, parent: Any, label: str, placeholder: str, show: str = "",
    ) -> ctk.CTkEntry:
        self._field_label(parent, label)
        entry = ctk.CTkEntry(
            parent,
            placeholder_text=placeholder,
            font=FONT_BODY,
            fg_color=INPUT_BG,
            border_color=INPUT_BORDER,
            text_color=TEXT_PRIMARY,
            show=show,
            height=INPUT_HEIGHT,
            corner_radius=CORNER_RADIUS,
        )
        entry.pack(fill="x", pady=(0, PADDING_MD))
        return entry

    def _labeled_option(
        self, parent: Any, label: str, values: list[str], variable: tk.StringVar,
    ) -> None:
        self._field_label(parent, label)
        ctk.CTkOptionMenu(
            parent,
            values=values,
            variable=variable,
            font=FONT_BODY,
            fg_color=INPUT_BG,
            button_color=ACCENT_PRIMARY,
            button_hover_color=ACCENT_HOVER,
            text_color=TEXT_PRIMARY,
            height=INPUT_HEIGHT,
            corner_radius=CORNER_RADIUS,
        ).pack(fill="x", pady=(0, PADDING_MD))

    def _labeled_textbox(self, parent: Any, label: str) -> ctk.CTkTextbox:
        self._field_label(parent, label)
        box = ctk.CTkTextbox(
            parent,
            font=FONT_BODY,
            fg_color=INPUT_BG,
            border_color=INPUT_BORDER,
            border_width=1,
            text_color=TEXT_PRIMARY,
            height=96,
            corner_radius=CORNER_RADIUS,
            wrap="word",
        )
        box.pack(fill="x", pady=(0, PADDING_MD))
        return box

    # ------------------------------------------------------------------
    # Tab switching
    # ------------------------------------------------------------------

    def _switch_role(self, role: UserRole) -> None:
        if role == self._role:
            return
        self._role = role
        self._clear_feedback()

        if role == UserRole.INSTRUCTOR_PENDING:
            self._instructor_frame.pack(fill="x", before=self._terms_row)
        else:
            self._instructor_frame.pack_forget()
        self._apply_tab_style()

    def _apply_tab_style(self) -> None:
        instructor = self._role == UserRole.INSTRUCTOR_PENDING
        active, inactive = (
            (self._instructor_tab, self._student_tab) if instructor
            else (self._student_tab, self._instructor_tab)
        )
        active.configure(
            text_color=ACCENT_PRIMARY, border_color=ACCENT_PRIMARY,
            border_width=2, font=FONT_TAB_ACTIVE,
        )
        inactive.configure(
            text_color=TEXT_SECONDARY, border_color=INPUT_BORDER,
            border_width=1, font=FONT_TAB,
        )
        if not self._workflow.guard.is_active:
            self._submit_button.configure(
                text=_SUBMIT_TEXT_INSTRUCTOR if instructor else _SUBMIT_TEXT,
            )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def _collect_request(self) -> SignupRequest:
        instructor: Optional[InstructorDetails] = None
        if self._role == UserRole.INSTRUCTOR_PENDING:
            expertise = _EXPERTISE_LABELS.get(self._expertise_var.get())
            experience = _EXPERIENCE_LABELS.get(self._experience_var.get())
            instructor = InstructorDetails(
                expertise=str(expertise) if expertise else "",
                experience=str(experience) if experience else "",
                organization=self._organization_entry.get().strip() or None,
                bio=self._bio_box.get("1.0", "end").strip(),
                motivation=self._motivation_box.get("1.0", "end").strip(),
            )

        return SignupRequest(
            role=self._role,
            email=self._email_entry.get().strip(),
            password=self._password_entry.get(),
            confirm_password=self._confirm_entry.get(),
            display_name=self._name_entry.get().strip(),
            agree_to_terms=bool(self._terms_var.get()),
            instructor=instructor,
        )

    def _handle_submit(self) -> None:
        """Check the guard on the UI thread, then run the workflow off it."""
        self._clear_feedback()

        check = self._workflow.guard.check_and_maybe_block()
        if check.blocked:
            self._show_error(
                f"Too many signup attempts. Please wait {check.remaining_seconds} seconds."
            )
            self._start_countdown()
            return

        request = self._collect_request()
        self._cancel_token = CancellationToken()
        self._set_loading(True)

        threading.Thread(
            target=self._run_workflow,
            args=(request, self._cancel_token),
            name="signup-submit",
            daemon=True,
        ).start()

    def _run_workflow(self, request: SignupRequest, token: CancellationToken) -> None:
        """Background thread: delegate to ``SignupWorkflow.submit_signup``.

        All UI mutations are dispatched back via ``self.after(0, ...)``.
        """
        try:
            outcome = self._workflow.submit_signup(request, cancel_token=token)
            self._post(self._show_outcome, outcome, token)
        except Exception as exc:
            self._logger.error("Signup crashed: %s", exc, exc_info=True)
            error_msg = str(exc)
            self._post(lambda msg=error_msg: self._show_error(f"Signup failed: {msg}"))
        finally:
            self._post(lambda: self._set_loading(False))

    def _show_outcome(self, outcome: WorkflowOutcome, token: CancellationToken) -> None:
        # Late result of a submission this view has already abandoned.
        if token.cancelled or outcome.state == WorkflowState.CANCELLED:
            return

        if outcome.success:
            self._clear_form()
            return

        self._show_error(outcome.message)
        if outcome.remediation_hint:
            self._hint_label.configure(text=outcome.remediation_hint)
            self._hint_label.pack(fill="x", pady=(4, 0))
        if outcome.remediation_link:
            self._show_link(outcome.remediation_link)
        if self._workflow.guard.is_active:
            self._start_countdown()

    # ------------------------------------------------------------------
    # Rate-limit countdown
    # ------------------------------------------------------------------

    def _resume_countdown_if_blocked(self) -> None:
        if self._workflow.guard.is_active:
            self._start_countdown()

    def _start_countdown(self) -> None:
        """Show the countdown, driven by the guard's ticker thread."""
        self._countdown_frame.pack(fill="x", pady=(PADDING_SM, 0))
        self._submit_button.configure(state="disabled")
        self._workflow.guard.start_ticker(
            lambda remaining: self._post(self._on_tick, remaining),
        )

    def _on_tick(self, remaining: int) -> None:
        if remaining <= 0:
            self._end_countdown()
            return
        self._countdown_label.configure(
            text=f"Please wait {remaining} seconds before trying again.",
        )
        self._submit_button.configure(text=f"Please wait ({remaining}s)")

    def _handle_override(self) -> None:
        """Manual override: the user says the provider cooldown has passed."""
        self._workflow.guard.clear()
        self._workflow.guard.stop_ticker()
        self._end_countdown()
        self._clear_feedback()

    def _end_countdown(self) -> None:
        self._countdown_frame.pack_forget()
        self._submit_button.configure(state="normal")
        self._apply_tab_style()

    # ------------------------------------------------------------------
    # UI Helper Methods
    # ------------------------------------------------------------------

    def _post(self, callback: Callable[..., None], *args: Any) -> None:
        """Schedule *callback* on the Tk thread unless the view is gone."""
        if self._closed:
            return
        try:
            self.after(0, callback, *args)
        except (RuntimeError, tk.TclError):
            # Interpreter or widget already torn down.
            self._closed = True

    def _show_error(self, message: str) -> None:
        self._error_label.configure(text=message)
        self._error_label.pack(fill="x", pady=(PADDING_SM, 0))

    def _show_link(self, link: str) -> None:
        self._link_label.configure(text=link)
        self._link_label.unbind("<Button-1>")
        if link.startswith(("http://", "https://", "mailto:")):
            self._link_label.bind("<Button-1>", lambda _e: webbrowser.open(link))
        self._link_label.pack(fill="x", pady=(4, 0))

    def _clear_feedback(self) -> None:
        for label in (self._error_label, self._hint_label, self._link_label):
            if label is not None:
                label.configure(text="")
                label.pack_forget()

    def _clear_form(self) -> None:
        for entry in (
            self._name_entry, self._email_entry,
            self._password_entry, self._confirm_entry, self._organization_entry,
        ):
            entry.delete(0, "end")
        for box in (self._bio_box, self._motivation_box):
            box.delete("1.0", "end")
        self._terms_var.set(False)
        self._expertise_var.set(_SELECT_PLACEHOLDER)
        self._experience_var.set(_SELECT_PLACEHOLDER)

    def _set_loading(self, loading: bool) -> None:
        """Disable the submit button while a submission is in flight.

        A running countdown owns the button state and is not overridden.
        """
        if self._submit_button is None:
            return
        if loading:
            self._submit_button.configure(text="Creating account...", state="disabled")
        elif not self._workflow.guard.is_active:
            self._submit_button.configure(state="normal")
            self._apply_tab_style()

    def destroy(self) -> None:
        """Cancel any in-flight submission and stop the countdown ticker."""
        self._closed = True
        if self._cancel_token is not None:
            self._cancel_token.cancel()
        self._workflow.guard.stop_ticker()
        super().destroy()
