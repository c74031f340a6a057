#!/usr/bin/env python3

from __future__ import annotations

import sys
from typing import Callable, Optional

from bootstrap.arg_parser import create_setup_argument_parser
from bootstrap.catalog import get_steps_for_phase
from bootstrap.config import BootstrapConfig
from bootstrap.context import SetupContext, create_context
from bootstrap.display import (
    print_next_steps,
    print_results_summary,
    print_setup_summary,
    print_step_list,
)
from bootstrap.logging_utils import add_rotating_file_handler, get_bootstrap_logger
from bootstrap.phase_selector import select_phase
from bootstrap.runner import StepRunner
from bootstrap.steps import ExecutionResult, RunSummary
from bootstrap.system_utils import EnvironmentMismatchError, detect_os, is_root


EXIT_OK = 0
EXIT_STEP_FAILED = 1
EXIT_USAGE = 2
EXIT_ENVIRONMENT = 3


def exit_code_for(results: list[ExecutionResult]) -> int:
    return EXIT_OK if RunSummary.from_results(results).success else EXIT_STEP_FAILED


def ensure_environment(ctx: SetupContext) -> None:
    """Abort before any step if the host cannot be provisioned."""
    distro = detect_os()
    if not ctx.packages.is_available():
        raise EnvironmentMismatchError("apt-get not found, cannot install packages")
    ctx.logger.info(f"OS: {distro}")


def setup_main(
    description: str,
    argv: Optional[list[str]] = None,
    context_factory: Callable[..., SetupContext] = create_context,
) -> int:
    parser = create_setup_argument_parser(description)
    args = parser.parse_args(argv)

    logger = get_bootstrap_logger(verbose=args.verbose)

    try:
        config = BootstrapConfig.from_args(args)
        config.validate()
        phase = select_phase(config.phase)
        steps = get_steps_for_phase(phase, config, config.step_names())
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if args.list_steps:
        print_step_list(logger, steps)
        return EXIT_OK

    if not config.dry_run:
        add_rotating_file_handler(logger, config.default_log_file(is_root()))

    ctx = context_factory(config, logger=logger)
    print_setup_summary(logger, config, phase, description)
    runner = StepRunner(ctx, logger)

    try:
        ensure_environment(ctx)
        if config.dry_run:
            runner.check_only(steps)
            return EXIT_OK
        results = runner.run(steps)
    except EnvironmentMismatchError as e:
        logger.error(f"✗ Fatal: {e}")
        return EXIT_ENVIRONMENT

    summary = print_results_summary(logger, results)
    if summary.success:
        print_next_steps(logger, config, phase)
    return exit_code_for(results)
