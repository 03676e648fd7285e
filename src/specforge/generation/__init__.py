"""Incremental code-generation pipeline.

Architecture::

    change_detector.py   entity-level diffs between specification snapshots
    task_manager.py      dependency-ordered workflow and task status
    code_manager.py      virtual file system with an operation log
    parser.py            fenced ``file="..."`` blocks → generated files
    prompts.py           system/component/page prompt templates
    stylesheet.py        style guide → CSS custom properties
    cache.py             fingerprint-keyed generated code
    generator.py         CodeGenerator, the orchestrator
"""

from specforge.generation.cache import CacheEntry, GenerationCache
from specforge.generation.change_detector import ChangeDetector
from specforge.generation.code_manager import CodeManager, normalize_path
from specforge.generation.generator import CodeGenerator
from specforge.generation.parser import infer_file_kind, parse_response
from specforge.generation.prompts import PromptManager
from specforge.generation.stylesheet import render_stylesheet
from specforge.generation.task_manager import TaskManager
from specforge.generation.types import (
    ChangeKind,
    ChangeRecord,
    FileKind,
    FileOperation,
    GeneratedCode,
    GeneratedFile,
    GenerationContext,
    GenerationMetadata,
    GenerationTask,
    ManagedFile,
    OperationKind,
    Progress,
    TaskKind,
    TaskStatus,
    WorkflowStep,
)

__all__ = [
    "CacheEntry",
    "ChangeDetector",
    "ChangeKind",
    "ChangeRecord",
    "CodeGenerator",
    "CodeManager",
    "FileKind",
    "FileOperation",
    "GeneratedCode",
    "GeneratedFile",
    "GenerationCache",
    "GenerationContext",
    "GenerationMetadata",
    "GenerationTask",
    "ManagedFile",
    "OperationKind",
    "Progress",
    "PromptManager",
    "TaskKind",
    "TaskManager",
    "TaskStatus",
    "WorkflowStep",
    "infer_file_kind",
    "normalize_path",
    "parse_response",
    "render_stylesheet",
]
