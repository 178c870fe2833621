"""
Business Logic Services Package.

Signup components (rate-limit guard, validator, account creator, profile
reconciler, application writer), the workflow that orchestrates them,
and the background reconciliation sweep.

The ``create_services()`` factory wires every repository and service
together, returning a typed dict that the UI layer can consume without
knowing the internal dependency graph.
"""

from __future__ import annotations

import time
from typing import Callable, TypedDict

from minara.config import AppConfig
from minara.database import DatabaseManager
from minara.logger import get_logger
from minara.repositories.application_repository import ApplicationRepository
from minara.repositories.orphaned_account_repository import OrphanedAccountRepository
from minara.repositories.profile_repository import ProfileRepository
from minara.services.account_service import AccountService
from minara.services.application_service import ApplicationService
from minara.services.profile_reconciler import ProfileReconciler
from minara.services.rate_limit_guard import RateLimitGuard
from minara.services.reconciliation_sweep import ReconciliationSweep
from minara.services.signup_validation import SignupValidator
from minara.services.signup_workflow import SignupWorkflow


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    # --- Signup steps ---
    rate_limit_guard: RateLimitGuard
    signup_validator: SignupValidator
    account_service: AccountService
    profile_reconciler: ProfileReconciler
    application_service: ApplicationService

    # --- Orchestration ---
    signup_workflow: SignupWorkflow

    # --- Background ---
    reconciliation_sweep: ReconciliationSweep


def create_services(
    db: DatabaseManager,
    config: AppConfig,
    clock: Callable[[], float] = time.monotonic,
) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.  The
    application entry-point calls this once at startup; tests call it
    with a fake Supabase client inside *db* and a fake *clock*.

    Args:
        db: Initialised DatabaseManager with Supabase + SQLite ready.
        config: Application configuration.
        clock: Monotonic time source for the rate-limit guard.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
        The workflow has no navigator yet; the UI shell installs one.
    """
    logger = get_logger("services")

    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    profile_repo = ProfileRepository(db=db, logger=logger)
    application_repo = ApplicationRepository(db=db, logger=logger)
    orphan_repo = OrphanedAccountRepository(db=db, logger=logger)

    # ------------------------------------------------------------------
    # 2. Leaf services
    # ------------------------------------------------------------------
    rate_limit_guard = RateLimitGuard(logger=logger, clock=clock)
    signup_validator = SignupValidator(config=config)
    account_service = AccountService(db=db, config=config, logger=logger)
    profile_reconciler = ProfileReconciler(
        repo=profile_repo,
        config=config,
        logger=logger,
    )
    application_service = ApplicationService(repo=application_repo, logger=logger)

    # ------------------------------------------------------------------
    # 3. Orchestration
    # ------------------------------------------------------------------
    signup_workflow = SignupWorkflow(
        guard=rate_limit_guard,
        validator=signup_validator,
        account_service=account_service,
        profile_reconciler=profile_reconciler,
        application_service=application_service,
        orphan_repo=orphan_repo,
        config=config,
        logger=logger,
    )

    # ------------------------------------------------------------------
    # 4. Background reconciliation of orphaned accounts
    # ------------------------------------------------------------------
    reconciliation_sweep = ReconciliationSweep(
        db=db,
        orphan_repo=orphan_repo,
        reconciler=profile_reconciler,
        config=config,
        logger=logger,
    )

    return ServiceContainer(
        rate_limit_guard=rate_limit_guard,
        signup_validator=signup_validator,
        account_service=account_service,
        profile_reconciler=profile_reconciler,
        application_service=application_service,
        signup_workflow=signup_workflow,
        reconciliation_sweep=reconciliation_sweep,
    )
