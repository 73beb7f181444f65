"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/pipeline.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Inbox pipeline. Coordinates scan, extraction, two-stage
                classification, confirmation gates and filing. Every inbox
                file ends up as exactly one outcome or one pending decision.
------------------------------------------------------------------------------
"""

import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from paraflux import frontmatter
from paraflux.ai.classifier import TwoStageClassifier
from paraflux.ai.summarizer import DocumentSummarizer
from paraflux.errors import ParaFluxError
from paraflux.extraction import ContentExtractor, DefaultExtractor
from paraflux.logger import get_logger
from paraflux.models.classification import ClassificationResult, ClassifyInput
from paraflux.models.processing import InboxRunResult, OutcomeStatus, PendingDecision, ProcessingOutcome
from paraflux.models.types import ParaCategory, PendingReason
from paraflux.organizer import FileOrganizer
from paraflux.project_context import ProjectContextBuilder
from paraflux.scanner import InboxScanner
from paraflux.vault import VaultLayout, is_binary_file

logger = get_logger("pipeline")

LOW_CONFIDENCE_THRESHOLD = 0.5
EXCERPT_LENGTH = 500
ALTERNATIVE_CONFIDENCE = 0.5

ProgressCallback = Callable[[float, str], None]


@dataclass
class _InboxItem:
    path: Path
    input: Optional[ClassifyInput] = None
    error: Optional[str] = None


class InboxProcessor:
    """
    Runs one inbox pass. The FileOrganizer is created per run so its
    duplicate caches never outlive the pass.
    """

    def __init__(
        self,
        layout: VaultLayout,
        ai_service,
        config=None,
        extractor: Optional[ContentExtractor] = None,
    ) -> None:
        self.layout = layout
        self.ai_service = ai_service
        self.extractor = extractor or DefaultExtractor()
        self.scanner = InboxScanner(layout)
        self.context_builder = ProjectContextBuilder(layout)
        self.classifier = TwoStageClassifier(ai_service)
        self.summarizer = DocumentSummarizer(ai_service)

        self.low_confidence_threshold = LOW_CONFIDENCE_THRESHOLD
        self.confirm_name_collisions = False
        if config is not None:
            self.low_confidence_threshold = config.get_low_confidence_threshold()
            self.confirm_name_collisions = config.get_confirm_name_collisions()

        self.organizer = self._new_organizer()

    def _new_organizer(self) -> FileOrganizer:
        return FileOrganizer(self.layout, self.extractor, self.summarizer)

    # --- Run ---

    def process(
        self,
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> InboxRunResult:
        """
        Processes every file currently in the inbox.

        Raises:
            VaultStructureError: If the vault skeleton cannot be created.
        """
        def report(fraction: float, message: str) -> None:
            if on_progress:
                on_progress(min(1.0, fraction), message)

        def cancelled() -> bool:
            return cancel is not None and cancel.is_set()

        self.layout.ensure_structure()
        self.organizer = self._new_organizer()

        files = self.scanner.scan()
        result = InboxRunResult(total=len(files))
        if not files:
            report(1.0, "Inbox is empty")
            return result
        logger.info(f"Inbox run started: {len(files)} files")

        # 1. Extraction (0.0 - 0.1)
        items: List[_InboxItem] = []
        for i, path in enumerate(files):
            if cancelled():
                result.cancelled = True
                return result
            report(0.1 * i / len(files), f"Reading {path.name}")
            try:
                extracted = self.extractor.extract(path)
                items.append(_InboxItem(path, ClassifyInput(file_path=path, content=extracted.text)))
            except (OSError, ValueError) as e:
                logger.error(f"Extraction failed for {path.name}: {e}")
                items.append(_InboxItem(path, error=f"Extraction failed: {e}"))

        # 2. Classification (0.1 - 0.7)
        project_names = self.context_builder.project_names()
        inputs = [item.input for item in items if item.input is not None]
        if not self.ai_service.is_available:
            logger.warning("No AI provider configured, every file will need confirmation")
        classifications = self.classifier.classify_files(
            inputs,
            project_names,
            project_context=self.context_builder.build_project_context(),
            subfolder_context=self.context_builder.build_subfolder_context(),
            cancel=cancel,
            on_progress=lambda f, m: report(0.1 + 0.6 * f, m),
        )
        if cancelled():
            result.cancelled = True
            return result

        # 3. Gating and filing (0.7 - 1.0)
        results_iter = iter(classifications)
        for i, item in enumerate(items):
            if cancelled():
                logger.info(f"Inbox run cancelled after {i}/{len(items)} files")
                result.cancelled = True
                return result
            report(0.7 + 0.3 * i / len(items), f"Filing {item.path.name}")

            if item.input is None:
                result.outcomes.append(ProcessingOutcome.failed(item.path.name, item.error or "Unknown error"))
                continue

            classification = next(results_iter)
            decision = self._gate(item.input, classification, project_names)
            if decision is not None:
                logger.info(f"{item.path.name} needs confirmation: {decision.reason.value}")
                result.pending.append(decision)
                continue

            result.outcomes.append(self._organize(item.path, classification))

        report(1.0, f"Done: {result.succeeded} filed, {len(result.pending)} pending, {result.failed} failed")
        logger.info(
            f"Inbox run finished: {result.succeeded} filed, "
            f"{len(result.pending)} pending, {result.failed} failed"
        )
        return result

    def _organize(self, path: Path, classification: ClassificationResult) -> ProcessingOutcome:
        try:
            return self.organizer.organize(path, classification)
        except (ParaFluxError, OSError, ValueError) as e:
            logger.error(f"Failed to file {path.name}: {e}")
            return ProcessingOutcome.failed(path.name, str(e))

    # --- Gates ---

    def _gate(
        self,
        item: ClassifyInput,
        classification: ClassificationResult,
        project_names: Sequence[str],
    ) -> Optional[PendingDecision]:
        def pending(reason: PendingReason, options: List[ClassificationResult]) -> PendingDecision:
            return PendingDecision(
                file_name=item.file_name,
                file_path=item.file_path,
                content=item.content[:EXCERPT_LENGTH],
                options=options,
                reason=reason,
                suggested_project=classification.suggested_project,
            )

        if classification.confidence < self.low_confidence_threshold:
            return pending(PendingReason.LOW_CONFIDENCE, self.generate_options(classification, project_names))

        if classification.needs_project_confirmation:
            options = [classification] + [
                opt for opt in self.generate_options(classification, project_names)[1:]
                if opt.category != ParaCategory.PROJECT
            ]
            return pending(PendingReason.UNMATCHED_PROJECT, options)

        target_dir = self.layout.target_directory(classification)
        is_root = target_dir == self.layout.category_path(classification.category)
        if not is_root and item.file_path.stem == target_dir.name:
            return pending(PendingReason.INDEX_NAME_COLLISION, [classification])

        if self.confirm_name_collisions:
            destination_dir = self.layout.assets_directory_for(item.file_path) if is_binary_file(item.file_path) else target_dir
            if (destination_dir / item.file_name).exists():
                return pending(PendingReason.EXISTING_FILE_COLLISION, [classification])

        return None

    @staticmethod
    def generate_options(
        classification: ClassificationResult,
        project_names: Sequence[str],
    ) -> List[ClassificationResult]:
        """
        The proposal first, then one alternative per other category. The
        project alternative points to the first existing project; without
        projects it is left out.
        """
        options = [classification]
        for category in ParaCategory:
            if category == classification.category:
                continue
            if category == ParaCategory.PROJECT:
                if not project_names:
                    continue
                options.append(replace(
                    classification,
                    category=category,
                    project=project_names[0],
                    suggested_project=None,
                    confidence=ALTERNATIVE_CONFIDENCE,
                ))
            else:
                options.append(replace(classification, category=category, confidence=ALTERNATIVE_CONFIDENCE))
        return options

    # --- Misplaced notes ---

    def find_misplaced(self) -> List[PendingDecision]:
        """
        Filed notes whose frontmatter category disagrees with the category
        folder they live in. Option 0 moves the note to its declared
        category, option 1 keeps it in place and rewrites its category.
        """
        decisions: List[PendingDecision] = []
        project_names = self.layout.project_names()

        for folder_category in ParaCategory:
            base = self.layout.category_path(folder_category)
            if not base.is_dir():
                continue
            for note in sorted(base.rglob("*.md")):
                rel_parts = note.relative_to(base).parts
                if any(part.startswith((".", "_")) for part in rel_parts):
                    continue
                try:
                    text = note.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as e:
                    logger.debug(f"Skipping unreadable note {note.name}: {e}")
                    continue
                fm, body = frontmatter.parse(text)
                if fm.category is None or fm.category == folder_category:
                    continue

                subfolder = "/".join(rel_parts[:-1])
                move = ClassificationResult(
                    category=fm.category,
                    tags=tuple(fm.tags),
                    summary=fm.summary or "",
                    target_folder=subfolder,
                    project=fm.project if fm.project in project_names else None,
                    confidence=1.0,
                    suggested_project=(
                        (fm.project or subfolder or None)
                        if fm.category == ParaCategory.PROJECT and fm.project not in project_names
                        else None
                    ),
                )
                keep = ClassificationResult(
                    category=folder_category,
                    tags=tuple(fm.tags),
                    summary=fm.summary or "",
                    target_folder=subfolder,
                    project=rel_parts[0] if folder_category == ParaCategory.PROJECT and len(rel_parts) > 1 else fm.project,
                    confidence=1.0,
                )
                decisions.append(PendingDecision(
                    file_name=note.name,
                    file_path=note,
                    content=body.strip()[:EXCERPT_LENGTH],
                    options=[move, keep],
                    reason=PendingReason.MISCLASSIFIED_PLACEMENT,
                    suggested_project=move.suggested_project,
                ))

        if decisions:
            logger.info(f"Found {len(decisions)} misplaced notes")
        return decisions

    # --- Resolution ---

    def resolve(
        self,
        decision: PendingDecision,
        choice: Optional[ClassificationResult] = None,
        action: str = "confirm",
    ) -> ProcessingOutcome:
        """
        Applies the user's answer to a pending decision.

        Args:
            decision: The decision returned by process() or find_misplaced().
            choice: Classification to apply; defaults to the proposal.
            action: "confirm", "skip" or "delete".
        """
        if action == "skip":
            logger.info(f"Skipped {decision.file_name}")
            return ProcessingOutcome(
                file_name=decision.file_name,
                category=None,
                target_path=str(decision.file_path),
                status=OutcomeStatus.skipped(decision.reason.value),
            )

        try:
            if action == "delete":
                return self.organizer.delete(decision.file_path)
            if action != "confirm":
                raise ValueError(f"Unknown action: {action}")

            classification = choice or decision.proposal
            if classification is None:
                raise ValueError("Decision has no classification to apply")

            if classification.category == ParaCategory.PROJECT and not classification.project:
                name = classification.suggested_project or decision.suggested_project
                if name:
                    directory = self.organizer.create_project(name)
                    classification = replace(classification, project=directory.name, suggested_project=None)

            if decision.reason == PendingReason.MISCLASSIFIED_PLACEMENT:
                return self.organizer.relocate(decision.file_path, classification)
            return self.organizer.organize(decision.file_path, classification)
        except (ParaFluxError, OSError, ValueError) as e:
            logger.error(f"Could not resolve {decision.file_name}: {e}")
            return ProcessingOutcome.failed(decision.file_name, str(e))
