#!/usr/bin/env python3

"""Display utilities for setup scripts."""

from logging import Logger

from bootstrap.config import BootstrapConfig
from bootstrap.steps import ExecutionResult, Phase, RunSummary, Step, StepStatus


def print_setup_summary(logger: Logger, config: BootstrapConfig, phase: Phase, description: str) -> None:
    """Print the configuration the run will use."""
    logger.info("=" * 60)
    logger.info(description)
    logger.info("=" * 60)
    if phase is Phase.ROOT:
        logger.info("Phase 1: System security and user setup")
        logger.info(f"User: {config.username}")
    else:
        logger.info("Phase 2: Developer environment setup")
        logger.info(f"Git: {config.git_name} <{config.git_email}>")
    if config.custom_steps:
        logger.info(f"Steps: {config.custom_steps}")
    if config.dry_run:
        logger.info("Dry-run: Yes")
    logger.info("=" * 60)


def print_step_list(logger: Logger, steps: list[Step]) -> None:
    width = max((len(step.name) for step in steps), default=0)
    for i, step in enumerate(steps, 1):
        logger.info(f"{i:2d}. {step.name.ljust(width)}  {step.description}")


def print_results_summary(logger: Logger, results: list[ExecutionResult]) -> RunSummary:
    """Print counts plus one line per failure and warning."""
    summary = RunSummary.from_results(results)

    logger.info("")
    logger.info("=" * 60)
    logger.info(
        f"Applied: {summary.applied}  Skipped: {summary.skipped}  "
        f"Failed: {summary.failed}  Warnings: {summary.warnings}"
    )
    for result in results:
        if result.status is StepStatus.FAILED:
            logger.error(f"  ✗ {result.name}: {result.message}")
        elif result.warning:
            logger.warning(f"  ⚠ {result.name}: {result.message}")
    logger.info("=" * 60)

    if summary.success:
        logger.info("✓ Setup complete")
    else:
        logger.error(f"✗ {summary.failed} step(s) failed, re-run after fixing the errors above")
    return summary


def print_next_steps(logger: Logger, config: BootstrapConfig, phase: Phase) -> None:
    logger.info("")
    if phase is Phase.ROOT:
        logger.info("NEXT STEP:")
        logger.info("  1. Disconnect from this session")
        logger.info(f"  2. Reconnect as: ssh {config.username}@<server-ip>")
        logger.info(f"  3. Run this script again: ~/{config.script_name}")
    else:
        logger.info("To apply changes to current shell, run:")
        logger.info("  source ~/.bashrc")
        logger.info("Next SSH/mosh connection will auto-attach to tmux.")
        logger.info("Run 'nvim' to complete LazyVim plugin installation.")
        logger.info("Mise upgrade logs: /var/log/mise-upgrade.log")
