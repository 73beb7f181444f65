"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/ai/classifier.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Two-stage classifier. Combines the fast batch guess with the
                precise re-classification of uncertain files, normalizes
                folder names and matches project names against the vault.
------------------------------------------------------------------------------
"""

import re
import threading
from typing import Callable, List, Optional, Sequence, Union

from paraflux.ai.stage1 import Stage1Processor
from paraflux.ai.stage2 import Stage2Processor
from paraflux.logger import get_logger
from paraflux.models.ai_payloads import Stage1Item, Stage2Payload
from paraflux.models.classification import ClassificationResult, ClassifyInput
from paraflux.models.types import ParaCategory

logger = get_logger("ai.classifier")

CONFIDENCE_THRESHOLD = 0.8

_CATEGORY_PREFIX_RE = re.compile(r"^[1-4]_(?:Project|Area|Resource|Archive)/?", re.IGNORECASE)
_BARE_CATEGORY_RE = re.compile(r"^(?:[1-4]_)?(?:project|area|resource|archive)s?$", re.IGNORECASE)
_PROJECT_NORMALIZE_RE = re.compile(r"[\s\-]+")


def strip_category_prefix(folder: Optional[str]) -> str:
    """
    '2_Area/DevOps' -> 'DevOps'. A bare category name ('Resource',
    '3_Resource') is rejected to ''.
    """
    if not folder:
        return ""
    cleaned = _CATEGORY_PREFIX_RE.sub("", folder.strip()).strip().strip("/")
    if _BARE_CATEGORY_RE.match(cleaned):
        return ""
    return cleaned


def _normalize_project(name: str) -> str:
    return _PROJECT_NORMALIZE_RE.sub("_", name.strip().lower())


def fuzzy_match_project(name: Optional[str], project_names: Sequence[str]) -> Optional[str]:
    """
    Maps a model-supplied project name onto an existing project folder.
    Order: exact, normalized-exact, normalized substring. None if unmatched.
    """
    if not name or not project_names:
        return None
    if name in project_names:
        return name

    wanted = _normalize_project(name)
    if not wanted:
        return None
    for project in project_names:
        if _normalize_project(project) == wanted:
            return project
    for project in project_names:
        normalized = _normalize_project(project)
        if normalized and (wanted in normalized or normalized in wanted):
            return project
    return None


class TwoStageClassifier:
    """
    Stage 1 for everything, Stage 2 for every file below the confidence
    threshold. Result precedence per file: Stage 2, Stage 1, safe default.
    """

    def __init__(self, ai_service, threshold: float = CONFIDENCE_THRESHOLD) -> None:
        self.stage1 = Stage1Processor(ai_service)
        self.stage2 = Stage2Processor(ai_service)
        self.threshold = threshold

    def classify_files(
        self,
        files: List[ClassifyInput],
        project_names: Sequence[str],
        project_context: str = "",
        subfolder_context: str = "",
        cancel: Optional[threading.Event] = None,
        on_progress: Optional[Callable[[float, str], None]] = None,
    ) -> List[ClassificationResult]:
        """
        Classifies all files. The returned list is aligned with `files`.
        """
        if not files:
            return []

        def stage_progress(start: float, span: float):
            if on_progress is None:
                return None
            return lambda fraction, message: on_progress(start + fraction * span, message)

        stage1 = self.stage1.classify(
            files, project_context, subfolder_context,
            cancel=cancel, on_progress=stage_progress(0.0, 0.6),
        )

        uncertain = [
            (i, f) for i, f in enumerate(files)
            if i not in stage1 or stage1[i].confidence < self.threshold
        ]
        if uncertain:
            logger.info(f"Stage 2: {len(uncertain)}/{len(files)} files below confidence {self.threshold}")
        stage2 = self.stage2.classify(
            uncertain, project_context, subfolder_context,
            cancel=cancel, on_progress=stage_progress(0.6, 0.35),
        )

        results: List[ClassificationResult] = []
        for i, f in enumerate(files):
            if i in stage2:
                results.append(self._to_result(stage2[i], project_names))
            elif i in stage1:
                if stage1[i].confidence < self.threshold:
                    logger.info(f"Stage 2 failed for {f.file_name}, keeping Stage 1 result")
                results.append(self._to_result(stage1[i], project_names))
            else:
                logger.warning(f"No classification for {f.file_name}, using default")
                results.append(ClassificationResult.default())

        if on_progress:
            on_progress(1.0, "Classification complete")
        return results

    @staticmethod
    def _to_result(item: Union[Stage1Item, Stage2Payload], project_names: Sequence[str]) -> ClassificationResult:
        target_folder = strip_category_prefix(item.target_folder)
        raw_project = item.project
        if item.para == ParaCategory.PROJECT and not raw_project and target_folder:
            raw_project = target_folder

        project = fuzzy_match_project(raw_project, project_names)
        suggested = raw_project if raw_project and project is None else None

        return ClassificationResult(
            category=item.para,
            tags=tuple(item.tags),
            summary=item.summary,
            target_folder=target_folder,
            project=project,
            confidence=item.confidence,
            suggested_project=suggested,
        )
