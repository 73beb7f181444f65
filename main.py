"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           main.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Command line entry point. Loads the profile configuration,
                sets up logging and runs one of the vault jobs: inbox
                processing, semantic linking or folder relation analysis.
------------------------------------------------------------------------------
"""

import argparse
import signal
import sys
import threading
from typing import List, Optional

from PyQt6.QtCore import QCoreApplication

from paraflux.ai.service import AIService
from paraflux.config import AppConfig
from paraflux.errors import VaultStructureError
from paraflux.linker import FolderRelationAnalyzer, SemanticLinker
from paraflux.logger import get_logger, setup_logging
from paraflux.models.processing import PendingDecision
from paraflux.pipeline import InboxProcessor
from paraflux.vault import VaultLayout


def _print_progress(fraction: float, message: str) -> None:
    print(f"[{fraction * 100:5.1f}%] {message}", flush=True)


def _ask_decision(processor: InboxProcessor, decision: PendingDecision) -> None:
    """Interactive resolution of one pending decision on the terminal."""
    print(f"\n{decision.file_name} ({decision.reason.value})")
    if decision.content:
        print("  " + decision.content[:200].replace("\n", " "))
    for i, option in enumerate(decision.options):
        folder = option.project or option.target_folder or "-"
        print(f"  [{i}] {option.category.folder_name}/{folder}  ({option.confidence:.2f})")
    print("  [s] skip   [d] delete")

    answer = input("Choice: ").strip().lower()
    if answer == "d":
        outcome = processor.resolve(decision, action="delete")
    elif answer.isdigit() and int(answer) < len(decision.options):
        outcome = processor.resolve(decision, decision.options[int(answer)])
    else:
        outcome = processor.resolve(decision, action="skip")
    print(f"  -> {outcome.status.kind.value} {outcome.display_target}")


def run_process(args, config: AppConfig, layout: VaultLayout, cancel: threading.Event) -> int:
    processor = InboxProcessor(layout, AIService.from_config(config), config=config)
    result = processor.process(on_progress=_print_progress, cancel=cancel)

    for outcome in result.outcomes:
        detail = f" ({outcome.status.detail})" if outcome.status.detail else ""
        print(f"{outcome.status.kind.value:>12}  {outcome.file_name} -> {outcome.display_target}{detail}")

    pending = list(result.pending)
    if args.misplaced:
        pending.extend(processor.find_misplaced())

    for decision in pending:
        if args.interactive:
            _ask_decision(processor, decision)
        else:
            print(f"{'pending':>12}  {decision.file_name} [{decision.reason.value}]")

    if result.cancelled:
        print("Cancelled.")
    print(f"{result.succeeded}/{result.total} filed, {len(result.pending)} pending, {result.failed} failed")
    return 1 if result.failed else 0


def run_link(args, config: AppConfig, layout: VaultLayout, cancel: threading.Event) -> int:
    linker = SemanticLinker(layout, AIService.from_config(config))
    result = linker.link_all(changed_files=args.changed or None, on_progress=_print_progress, cancel=cancel)
    print(
        f"Tags normalized: {result.tags_normalized}, notes linked: {result.notes_linked}, "
        f"links created: {result.links_created}, removals detected: {result.removals_detected}"
    )
    if result.cancelled:
        print("Cancelled.")
    return 0


def run_folders(args, config: AppConfig, layout: VaultLayout, cancel: threading.Event) -> int:
    analyzer = FolderRelationAnalyzer(layout, AIService.from_config(config))
    candidates = analyzer.analyze()
    if not candidates:
        print("No related folder pairs found.")
        return 0

    for c in candidates:
        proposal = c.proposed.value if c.proposed else "-"
        print(
            f"{proposal:>8}  {c.folder_a} <> {c.folder_b}  "
            f"conf={c.confidence:.2f} links={c.existing_links} tags={c.shared_tags} "
            f"removed={c.removal_count}  {c.hint}"
        )
    if args.apply:
        print(f"Stored {analyzer.persist(candidates)} folder relations.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ParaFlux - PARA inbox organizer and semantic linker")
    parser.add_argument("-P", "--profile", type=str, help="Application profile for isolation (e.g. 'dev', 'work')")
    parser.add_argument("--vault", type=str, help="Vault root, overrides the configured path for this run")
    sub = parser.add_subparsers(dest="command", required=True)

    p_process = sub.add_parser("process", help="Classify and file everything in _Inbox")
    p_process.add_argument("-i", "--interactive", action="store_true", help="Resolve pending decisions on the terminal")
    p_process.add_argument("--misplaced", action="store_true", help="Also report notes filed under the wrong category")

    p_link = sub.add_parser("link", help="Build the semantic link graph")
    p_link.add_argument("--changed", nargs="*", help="Only relink these notes and their neighbours")

    p_folders = sub.add_parser("folders", help="Analyze folder relations")
    p_folders.add_argument("--apply", action="store_true", help="Store the proposed relations")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    ParaFlux Entry Point.
    Loads configuration and logging, then dispatches the sub-command.
    """
    args = build_parser().parse_args(argv)

    app_id = f"paraflux-{args.profile}" if args.profile else "paraflux"
    QCoreApplication.setApplicationName(app_id)

    app_config = AppConfig(profile=args.profile)
    setup_logging(
        level=app_config.get_log_level(),
        log_file=str(app_config.get_log_file_path()),
        component_levels=app_config.get_log_components()
    )
    logger = get_logger("main")
    logger.info(f"ParaFlux started (Profile: {args.profile or 'default'}, command: {args.command})")

    vault_path = args.vault or app_config.get_vault_path()
    if not vault_path:
        print("No vault configured. Use --vault PATH.", file=sys.stderr)
        return 2
    layout = VaultLayout(vault_path)

    cancel = threading.Event()
    signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())

    commands = {"process": run_process, "link": run_link, "folders": run_folders}
    try:
        return commands[args.command](args, app_config, layout, cancel)
    except VaultStructureError as e:
        logger.error(f"Vault structure error: {e}")
        print(f"Vault structure error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
