# -*- coding: utf-8 -*-
"""
Lamina: Characteristic-matrix optics of a single thin film
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: lamina_trace.py — Hierarchical calculation trace.

Structure:
  1.  ResultValue is a tagged union (scalar / complex / matrix / text);
      formatting is chosen by the tag, never by probing the payload.
  2.  CalculationStep owns its children and results.  The way back up
      (step → parent, result → step) is a weakref and never keeps
      anything alive.
  3.  TraceSink is the protocol the engine writes to.  CalculationLogger
      records both projections (flat text log + step tree) from the same
      append calls; NullTrace discards everything for headless runs.
  4.  traced_session / traced_step wrap the protocol so every opened step
      ends Completed on normal exit and Failed when an exception escapes.

Flat-log layout:
    <label padded to 25>  = <value>       reals 6 dp, complex 4 dp
    <matrix name>:
    [ <cell>  <cell> ]                    cell width = widest in column, ≥ 12
"""

from __future__ import annotations

import re
import uuid
import weakref
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Optional,
    Protocol,
    Tuple,
    runtime_checkable,
)

import numpy as np

from lamina_complex import ComplexNumber, format_complex, format_real
from lamina_matrix import ComplexMatrix

__all__ = [
    "StepKind",
    "StepStatus",
    "ResultKind",
    "ResultValue",
    "CalculationResult",
    "CalculationStep",
    "TraceSink",
    "NullTrace",
    "CalculationLogger",
    "classify_step_title",
    "traced_session",
    "traced_step",
]

SEPARATOR = "=" * 60
LINE = "-" * 40
LABEL_WIDTH: int = 25
SUMMARY_LABEL_WIDTH: int = 17


# ═══════════════════════════════════════════════════════════════════════════════
# 1.  Tags
# ═══════════════════════════════════════════════════════════════════════════════
class StepKind(Enum):
    HEADER = "header"
    INPUT_PARAMETERS = "input-parameters"
    PHASE_THICKNESS = "phase-thickness"
    OPTICAL_ADMITTANCE = "optical-admittance"
    CHARACTERISTIC_MATRIX = "characteristic-matrix"
    BOUNDARY_CONDITION = "boundary-condition"
    REFLECTION_TRANSMISSION = "reflection-transmission"
    TRA_CALCULATION = "TRA-calculation"
    VALIDATION = "validation"
    COMPARISON = "comparison"
    FINAL_RESULTS = "final-results"


class StepStatus(Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"
    WARNING = "Warning"

    @property
    def is_terminal(self) -> bool:
        return self in (StepStatus.COMPLETED, StepStatus.FAILED)


class ResultKind(Enum):
    SCALAR = "scalar"
    COMPLEX = "complex"
    MATRIX = "matrix"
    TEXT = "text"


# Ordered: first match wins.
_TITLE_RULES: Tuple[Tuple[re.Pattern, StepKind], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), kind)
    for pattern, kind in (
        (r"\binput\b", StepKind.INPUT_PARAMETERS),
        (r"phase thickness", StepKind.PHASE_THICKNESS),
        (r"optical admittance", StepKind.OPTICAL_ADMITTANCE),
        (r"characteristic matrix", StepKind.CHARACTERISTIC_MATRIX),
        (r"boundary", StepKind.BOUNDARY_CONDITION),
        (r"\bTRA\b", StepKind.TRA_CALCULATION),
        (r"reflection|transmission", StepKind.REFLECTION_TRANSMISSION),
        (r"validation|verification", StepKind.VALIDATION),
        (r"comparison", StepKind.COMPARISON),
        (r"final result", StepKind.FINAL_RESULTS),
    )
)


def classify_step_title(title: str) -> StepKind:
    """Derive a step kind from keywords in its title (HEADER when none match)."""
    for pattern, kind in _TITLE_RULES:
        if pattern.search(title):
            return kind
    return StepKind.HEADER


# ═══════════════════════════════════════════════════════════════════════════════
# 2.  ResultValue — tagged union
# ═══════════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True, slots=True)
class ResultValue:
    kind: ResultKind
    payload: Any

    @classmethod
    def from_scalar(cls, value: float) -> "ResultValue":
        return cls(ResultKind.SCALAR, float(value))

    @classmethod
    def from_complex(cls, value: Any) -> "ResultValue":
        return cls(ResultKind.COMPLEX, ComplexNumber.coerce(value))

    @classmethod
    def from_matrix(cls, value: ComplexMatrix) -> "ResultValue":
        return cls(ResultKind.MATRIX, value)

    @classmethod
    def from_text(cls, value: Any) -> "ResultValue":
        return cls(ResultKind.TEXT, "" if value is None else str(value))

    @classmethod
    def of(cls, value: Any) -> "ResultValue":
        """Single entry point that tags a raw Python value."""
        if isinstance(value, ResultValue):
            return value
        if isinstance(value, (bool, np.bool_)):
            return cls.from_text(bool(value))
        if isinstance(value, (int, float, np.integer, np.floating)):
            return cls.from_scalar(value)
        if isinstance(value, (ComplexNumber, complex, np.complexfloating)):
            return cls.from_complex(value)
        if isinstance(value, ComplexMatrix):
            return cls.from_matrix(value)
        return cls.from_text(value)

    def format(self) -> str:
        """Full rendering used by the flat text log."""
        return _FULL_FORMATTERS[self.kind](self.payload)

    def format_compact(self) -> str:
        """Single-line rendering used by tree displays."""
        return _COMPACT_FORMATTERS[self.kind](self.payload)


_FULL_FORMATTERS: Dict[ResultKind, Callable[[Any], str]] = {
    ResultKind.SCALAR: lambda v: format_real(v, 6),
    ResultKind.COMPLEX: lambda v: format_complex(v, 4),
    ResultKind.MATRIX: lambda m: m.to_formatted_string(),
    ResultKind.TEXT: str,
}

_COMPACT_FORMATTERS: Dict[ResultKind, Callable[[Any], str]] = {
    **_FULL_FORMATTERS,
    ResultKind.MATRIX: lambda m: f"[{m.rows}×{m.columns} Matrix]",
}


# ═══════════════════════════════════════════════════════════════════════════════
# 3.  Tree nodes
# ═══════════════════════════════════════════════════════════════════════════════
@dataclass(eq=False)
class CalculationResult:
    """Named leaf value attached to a step."""
    name: str
    value: ResultValue
    unit: str = ""
    formula: str = ""
    _step_ref: Optional["weakref.ReferenceType[CalculationStep]"] = field(
        default=None, repr=False
    )

    @property
    def kind(self) -> ResultKind:
        return self.value.kind

    @property
    def parent_step(self) -> Optional["CalculationStep"]:
        return self._step_ref() if self._step_ref is not None else None

    @property
    def formatted_value(self) -> str:
        text = self.value.format_compact()
        return f"{text} {self.unit}" if self.unit else text


@dataclass(eq=False)
class CalculationStep:
    """
    One node of the trace tree.

    Lifecycle: Pending → Running (``update_status``) → Completed | Failed.
    Terminal transitions stamp ``end_time`` and set ``progress`` (100 on
    Completed, 0 on Failed); otherwise ``progress`` stays None.
    """
    title: str
    kind: StepKind = StepKind.HEADER
    status: StepStatus = StepStatus.PENDING
    description: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    results: List[CalculationResult] = field(default_factory=list)
    children: List["CalculationStep"] = field(default_factory=list)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    progress: Optional[float] = None
    _parent_ref: Optional["weakref.ReferenceType[CalculationStep]"] = field(
        default=None, repr=False
    )

    # -- navigation --------------------------------------------------------
    @property
    def parent(self) -> Optional["CalculationStep"]:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def depth(self) -> int:
        depth, node = 0, self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def walk(self) -> Iterator["CalculationStep"]:
        """Depth-first, pre-order traversal of this subtree."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, title: str) -> Optional["CalculationStep"]:
        for step in self.walk():
            if step.title == title:
                return step
        return None

    def result(self, name: str) -> Optional[CalculationResult]:
        for entry in self.results:
            if entry.name == name:
                return entry
        return None

    # -- mutation (append-only) --------------------------------------------
    def add_child(self, step: "CalculationStep") -> "CalculationStep":
        step._parent_ref = weakref.ref(self)
        self.children.append(step)
        return step

    def add_result(
        self, name: str, value: Any, unit: str = "", formula: str = ""
    ) -> CalculationResult:
        entry = CalculationResult(
            name=name,
            value=ResultValue.of(value),
            unit=unit,
            formula=formula,
            _step_ref=weakref.ref(self),
        )
        self.results.append(entry)
        return entry

    def update_status(self, status: StepStatus) -> None:
        self.status = status
        if status is StepStatus.RUNNING:
            self.start_time = datetime.now()
        elif status.is_terminal:
            self.end_time = datetime.now()
            self.progress = 100.0 if status is StepStatus.COMPLETED else 0.0

    # -- timing ------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def duration(self) -> Optional[timedelta]:
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time


# ═══════════════════════════════════════════════════════════════════════════════
# 4.  TraceSink protocol
# ═══════════════════════════════════════════════════════════════════════════════
@runtime_checkable
class TraceSink(Protocol):
    """
    Minimal interface the engine writes its trace through.

    Concrete implementations:
      - CalculationLogger (flat text log + step tree)
      - NullTrace         (discards everything)
    """
    @property
    def session_active(self) -> bool: ...
    def open_session(self, title: str) -> None: ...
    def open_step(self, title: str, kind: Optional[StepKind] = None) -> None: ...
    def add_result(
        self, name: str, value: Any, unit: str = "", formula: str = ""
    ) -> None: ...
    def close_step(self, status: StepStatus = StepStatus.COMPLETED) -> None: ...
    def complete_session(self) -> None: ...
    def fail_session(self) -> None: ...
    def log_final_results(
        self, reflectance: float, transmittance: float, absorbance: float,
        conserved: bool,
    ) -> None: ...
    def log_energy_conservation(self, conserved: bool, total: float) -> None: ...


class NullTrace:
    """Trace sink that records nothing."""
    __slots__ = ()

    @property
    def session_active(self) -> bool:
        return False

    def open_session(self, title: str) -> None:
        pass

    def open_step(self, title: str, kind: Optional[StepKind] = None) -> None:
        pass

    def add_result(
        self, name: str, value: Any, unit: str = "", formula: str = ""
    ) -> None:
        pass

    def close_step(self, status: StepStatus = StepStatus.COMPLETED) -> None:
        pass

    def complete_session(self) -> None:
        pass

    def fail_session(self) -> None:
        pass

    def log_final_results(
        self, reflectance: float, transmittance: float, absorbance: float,
        conserved: bool,
    ) -> None:
        pass

    def log_energy_conservation(self, conserved: bool, total: float) -> None:
        pass


# ═══════════════════════════════════════════════════════════════════════════════
# 5.  CalculationLogger
# ═══════════════════════════════════════════════════════════════════════════════
class CalculationLogger:
    """
    Recording trace sink.

    Attributes
    ----------
    steps : list[CalculationStep]
        Top-level steps, normally the single session root.
    lines : tuple[str, ...]
        Flat text log, one entry per line.

    Not safe for concurrent use; give every calculation its own logger.
    """

    def __init__(self) -> None:
        self._lines: List[str] = []
        self.steps: List[CalculationStep] = []
        self._root: Optional[CalculationStep] = None
        self._current: Optional[CalculationStep] = None

    # -- projections -------------------------------------------------------
    @property
    def root(self) -> Optional[CalculationStep]:
        return self._root

    @property
    def current_step(self) -> Optional[CalculationStep]:
        return self._current

    @property
    def lines(self) -> Tuple[str, ...]:
        return tuple(self._lines)

    @property
    def full_log(self) -> str:
        return "\n".join(self._lines) + ("\n" if self._lines else "")

    def get_full_log(self) -> str:
        return self.full_log

    def iter_steps(self) -> Iterator[CalculationStep]:
        for step in self.steps:
            yield from step.walk()

    # -- session -----------------------------------------------------------
    @property
    def session_active(self) -> bool:
        return self._root is not None and self._root.status is StepStatus.RUNNING

    def open_session(self, title: str) -> None:
        """Create the session root, or reuse it while it is still running."""
        if self.session_active:
            return

        self._lines.extend((SEPARATOR, f"  {title}", SEPARATOR, ""))

        root = CalculationStep(title=title, kind=StepKind.HEADER)
        root.update_status(StepStatus.RUNNING)
        self.steps.append(root)
        self._root = root
        self._current = root

    def complete_session(self) -> None:
        self._close_chain(StepStatus.COMPLETED)

    def fail_session(self) -> None:
        self._close_chain(StepStatus.FAILED)

    def _close_chain(self, status: StepStatus) -> None:
        step = self._current
        while step is not None:
            if step.status is StepStatus.RUNNING:
                step.update_status(status)
            step = step.parent
        if self._root is not None and self._root.status is StepStatus.RUNNING:
            self._root.update_status(status)
        self._current = None

    # -- steps -------------------------------------------------------------
    def open_step(self, title: str, kind: Optional[StepKind] = None) -> None:
        self._lines.extend((LINE, f"{title}:", LINE))

        step = CalculationStep(
            title=title, kind=kind if kind is not None else classify_step_title(title)
        )
        step.update_status(StepStatus.RUNNING)

        parent = self._current
        if parent is None or parent.status is not StepStatus.RUNNING:
            parent = self._root if self.session_active else None
        if parent is not None:
            parent.add_child(step)
        else:
            self.steps.append(step)
        self._current = step

    def close_step(self, status: StepStatus = StepStatus.COMPLETED) -> None:
        step = self._current
        if step is None:
            return
        step.update_status(status)
        self._current = step.parent

    def complete_current_step(self) -> None:
        self.close_step(StepStatus.COMPLETED)

    def fail_current_step(self) -> None:
        self.close_step(StepStatus.FAILED)

    # -- results -----------------------------------------------------------
    def _result_target(self) -> Optional[CalculationStep]:
        """Open step, else the session root; None when there is no tree yet."""
        return self._current if self._current is not None else self._root

    def add_result(
        self, name: str, value: Any, unit: str = "", formula: str = ""
    ) -> None:
        """Record in both projections, or in neither when no step exists."""
        target = self._result_target()
        if target is None:
            return

        tagged = ResultValue.of(value)
        if tagged.kind is ResultKind.MATRIX:
            self._lines.append(f"{name}:")
            self._lines.extend(tagged.format().split("\n"))
            self._lines.append("")
        else:
            suffix = f" {unit}" if unit else ""
            self._lines.append(f"{name:<{LABEL_WIDTH}} = {tagged.format()}{suffix}")

        target.add_result(name, tagged, unit, formula)

    def log_final_results(
        self, reflectance: float, transmittance: float, absorbance: float,
        conserved: bool,
    ) -> None:
        target = self._result_target()
        if target is None:
            return

        total = reflectance + transmittance + absorbance
        marker = "✓" if conserved else "✗"
        rows = (
            ("Reflectance (R)", reflectance),
            ("Transmittance (T)", transmittance),
            ("Absorbance (A)", absorbance),
            ("Total", total),
        )
        for label, value in rows:
            self._lines.append(f"{label:<{SUMMARY_LABEL_WIDTH}} = {value * 100:.4f}%")
        self._lines.append(f"{'Energy conserved':<{SUMMARY_LABEL_WIDTH}} = {marker}")
        self._lines.append("")

        for label, value in rows:
            target.add_result(label, value * 100.0, unit="%")
        target.add_result("Energy conserved", ResultValue.from_text(marker))

    def log_energy_conservation(self, conserved: bool, total: float) -> None:
        target = self._result_target()
        if target is None:
            return

        deviation = abs(total - 1.0)
        verdict = "PASS ✓" if conserved else "FAIL ✗"
        self._lines.append(f"Energy conservation check: R + T + A = {total * 100:.4f}%")
        self._lines.append(f"Deviation: {deviation * 100:.6f}%")
        self._lines.append(f"Result: {verdict}")
        self._lines.append("")

        target.add_result("R + T + A", total * 100.0, unit="%")
        target.add_result("Deviation", deviation * 100.0, unit="%")
        target.add_result("Energy conservation", ResultValue.from_text(verdict))

    # -- reset -------------------------------------------------------------
    def clear(self) -> None:
        """Discard the whole tree and the flat log."""
        self._lines.clear()
        self.steps.clear()
        self._root = None
        self._current = None


# ═══════════════════════════════════════════════════════════════════════════════
# 6.  Context helpers
# ═══════════════════════════════════════════════════════════════════════════════
@contextmanager
def traced_session(sink: TraceSink, title: str) -> Iterator[TraceSink]:
    """
    Run a block inside a trace session.

    An already-active session is reused and left open for its owner.
    Otherwise a new root is opened, completed on normal exit and failed
    (with every open step) when an exception escapes.
    """
    if sink.session_active:
        yield sink
        return

    sink.open_session(title)
    try:
        yield sink
    except BaseException:
        sink.fail_session()
        raise
    sink.complete_session()


@contextmanager
def traced_step(
    sink: TraceSink, title: str, kind: Optional[StepKind] = None
) -> Iterator[TraceSink]:
    sink.open_step(title, kind)
    try:
        yield sink
    except BaseException:
        sink.close_step(StepStatus.FAILED)
        raise
    sink.close_step(StepStatus.COMPLETED)
