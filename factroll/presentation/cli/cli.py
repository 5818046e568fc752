"""
CLI Module

Architectural Intent:
- Command-line interface for factroll
- Entry point for all user interactions
- Delegates to application use cases via composition root
- Supports --verbose/--debug flags for log level control

Inputs missing on the command line fall back to the `rollout` config section,
which itself reads FACTROLL_ROLLOUT_* environment variables.
"""

import argparse
import asyncio
import json
import logging
import sys
import traceback
from dataclasses import replace
from factroll.application.dtos.rollout_dtos import PlanRequest, RolloutRequest
from factroll.composition_root import create_container
from factroll.infrastructure.config import FactrollConfig, load_config
from factroll.infrastructure.logging import configure_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="factroll: rolling configuration rollouts batched by node facts"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug output with tracebacks"
    )
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit structured JSON logs"
    )
    parser.add_argument(
        "--config", "-c", default=None, help="Path to factroll.json"
    )
    parser.add_argument(
        "--inventory", "-i", default=None, help="Path to the platform inventory file"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    rollout_parser = subparsers.add_parser(
        "rollout", help="Roll a revision out to a node group batch by batch"
    )
    rollout_parser.add_argument("--revision", "-r", help="Commit to roll out")
    rollout_parser.add_argument("--group", "-g", help="Target node group id")
    rollout_parser.add_argument("--branch", "-b", help="Persistent target branch")
    rollout_parser.add_argument("--fact", "-f", help="Fact to batch nodes by")
    rollout_parser.add_argument("--repo", help="Control repository remote")
    rollout_parser.add_argument(
        "--noop", action="store_true", default=None, help="Run the agent in noop mode"
    )
    rollout_parser.add_argument(
        "--enforce-after-noop",
        action="store_true",
        default=None,
        help="After a successful noop rollout, enforce batch by batch",
    )
    rollout_parser.add_argument(
        "--delay", type=float, default=None, help="Seconds to wait between batches"
    )
    rollout_parser.add_argument(
        "--fail-if-no-nodes",
        action="store_true",
        default=None,
        help="Fail instead of deploying directly when the group is empty",
    )
    rollout_parser.add_argument(
        "--missing-fact",
        choices=["fail", "exclude"],
        default=None,
        help="What to do with nodes lacking the fact",
    )
    rollout_parser.add_argument("--rollout-id", help="Identifier used in branch names")
    rollout_parser.add_argument(
        "--json", action="store_true", help="Print the result as JSON"
    )

    plan_parser = subparsers.add_parser(
        "plan", help="Show how a group would be batched, without changing anything"
    )
    plan_parser.add_argument("--group", "-g", help="Target node group id")
    plan_parser.add_argument("--fact", "-f", help="Fact to batch nodes by")

    return parser


def _pick(value, default):
    return default if value is None else value


def _rollout_request(args: argparse.Namespace, config: FactrollConfig) -> RolloutRequest:
    defaults = config.rollout
    extra = {"rollout_id": args.rollout_id} if args.rollout_id else {}
    return RolloutRequest(
        revision=_pick(args.revision, defaults.revision),
        target_group=_pick(args.group, defaults.group),
        target_branch=_pick(args.branch, defaults.branch),
        fact=_pick(args.fact, defaults.fact),
        noop=_pick(args.noop, defaults.noop),
        post_noop_enforce=_pick(args.enforce_after_noop, defaults.post_noop_enforce),
        batch_delay_seconds=_pick(args.delay, defaults.batch_delay_seconds),
        fail_if_no_nodes=_pick(args.fail_if_no_nodes, defaults.fail_if_no_nodes),
        repo=_pick(args.repo, defaults.repo),
        missing_fact_policy=_pick(args.missing_fact, defaults.missing_fact_policy),
        **extra,
    )


async def async_main():
    parser = _build_parser()
    args = parser.parse_args()

    config = load_config(args.config)
    if args.inventory:
        config = replace(
            config, platform=replace(config.platform, inventory_file=args.inventory)
        )

    if args.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    else:
        level = getattr(logging, str(config.log_level).upper(), logging.WARNING)
    configure_logging(level=level, json_format=args.json_logs)

    verbose = args.verbose or args.debug

    if args.command == "rollout":
        try:
            request = _rollout_request(args, config)
        except ValueError as e:
            print(f"[-] Invalid rollout parameters: {e}")
            sys.exit(2)

        try:
            container = create_container(config)
        except FileNotFoundError as e:
            print(f"[-] Inventory file not found: {e}")
            sys.exit(1)
        except ValueError as e:
            print(f"[-] Configuration error: {e}")
            sys.exit(2)

        print(
            f"[*] Rolling out {request.revision[:8]} to group '{request.target_group}' "
            f"by fact '{request.fact}' (rollout {request.rollout_id})..."
        )
        try:
            result = await container.run_rollout.execute(request)
        except Exception as e:
            print(f"[-] Rollout crashed: {e}")
            if verbose:
                traceback.print_exc()
            sys.exit(1)

        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
        for report in result.batch_reports:
            marker = "+" if report.succeeded else "-"
            print(f"[{marker}] {report.phase} {report.key}: {len(report.nodes)} node(s)")
        if result.excluded_nodes:
            print(f"[!] Excluded (no fact): {', '.join(result.excluded_nodes)}")
        if result.success:
            print(f"[+] {result.describe()}")
            return
        print(f"[-] {result.describe()}")
        if verbose and result.error is not None:
            traceback.print_exception(result.error)
        sys.exit(1)

    if args.command == "plan":
        try:
            request = PlanRequest(
                target_group=_pick(args.group, config.rollout.group),
                fact=_pick(args.fact, config.rollout.fact),
            )
            container = create_container(config)
        except ValueError as e:
            print(f"[-] Invalid plan parameters: {e}")
            sys.exit(2)
        except FileNotFoundError as e:
            print(f"[-] Inventory file not found: {e}")
            sys.exit(1)

        try:
            plan = await container.plan_rollout.execute(request)
        except Exception as e:
            print(f"[-] Planning failed: {e}")
            if verbose:
                traceback.print_exc()
            sys.exit(1)

        print(f"[*] Target: {plan.target}")
        if plan.direct_deploy:
            print("[*] No nodes: the rollout would deploy the branch directly.")
            return
        for index, batch in enumerate(plan.grouping.batches, start=1):
            print(f"  {index}. {batch.key}: {', '.join(batch.nodes)}")
        if plan.grouping.excluded:
            print(f"[!] Nodes without fact: {', '.join(plan.grouping.excluded)}")
        return

    parser.print_help()


def main():
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
