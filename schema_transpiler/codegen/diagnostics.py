"""
Diagnostic/warning system for the schema transpiler.

Collects and reports problems found while converting a document: fatal
conditions that leave no usable output, and locally recovered degradations
(a skipped declaration, a field typed as unknown) that readers of the output
should know about.
"""

import sys
from dataclasses import dataclass
from enum import Enum
from typing import List


class DiagnosticSeverity(Enum):
    """Severity levels for transpiler diagnostics."""
    ERROR = 'error'
    WARNING = 'warning'
    INFO = 'info'


class DiagnosticKind(Enum):
    """What went wrong, independent of the message wording."""
    SYNTAX_UNRECOGNIZED = 'syntax-unrecognized'
    SIZE_LIMIT_EXCEEDED = 'size-limit-exceeded'
    UNBALANCED_DELIMITER = 'unbalanced-delimiter'
    DEPTH_EXCEEDED = 'depth-exceeded'
    UNKNOWN_REFERENCE = 'unknown-reference'
    NUMERIC_RANGE = 'numeric-range'
    UNSUPPORTED_CONSTRUCT = 'unsupported-construct'


@dataclass(frozen=True)
class Diagnostic:
    """A single diagnostic message."""
    severity: DiagnosticSeverity
    kind: DiagnosticKind
    code: str
    message: str
    declaration: str = ''
    construct: str = ''  # e.g., 'field', 'declaration', 'reference'

    def __str__(self) -> str:
        if self.declaration:
            return f'[{self.severity.value}] {self.declaration}: {self.message} ({self.code})'
        return f'[{self.severity.value}] {self.message} ({self.code})'


class ConversionError(Exception):
    """Raised inside a converter when a document cannot be converted at all."""

    def __init__(self, diagnostic: Diagnostic):
        super().__init__(diagnostic.message)
        self.diagnostic = diagnostic


# =============================================================================
# FATAL DIAGNOSTICS
# =============================================================================

def syntax_unrecognized(what: str) -> Diagnostic:
    """No declarations could be found in the document."""
    return Diagnostic(
        severity=DiagnosticSeverity.ERROR,
        kind=DiagnosticKind.SYNTAX_UNRECOGNIZED,
        code='E001',
        message=f'No {what} found in input.',
        construct='document',
    )


def invalid_document(what: str, detail: str) -> Diagnostic:
    """A structured (JSON/YAML) document failed to parse."""
    return Diagnostic(
        severity=DiagnosticSeverity.ERROR,
        kind=DiagnosticKind.SYNTAX_UNRECOGNIZED,
        code='E001',
        message=f'Input is not a valid {what}: {detail}',
        construct='document',
    )


def size_limit_exceeded(length: int, limit: int) -> Diagnostic:
    """The input is longer than the configured ceiling."""
    return Diagnostic(
        severity=DiagnosticSeverity.ERROR,
        kind=DiagnosticKind.SIZE_LIMIT_EXCEEDED,
        code='E002',
        message=f'Input too large ({length:,} characters). '
                f'Maximum allowed is {limit:,} characters.',
        construct='document',
    )


def conversion_failed(detail: str) -> Diagnostic:
    """The converter hit an internal error; reported instead of raised."""
    return Diagnostic(
        severity=DiagnosticSeverity.ERROR,
        kind=DiagnosticKind.UNSUPPORTED_CONSTRUCT,
        code='E099',
        message=f'Conversion failed: {detail}',
        construct='document',
    )


class TranspilerDiagnostics:
    """
    Collects transpiler warnings/diagnostics during a single conversion.

    Usage:
        diag = TranspilerDiagnostics()
        diag.warn_unknown_reference('Address', declaration='User')
        # ... after conversion ...
        diag.print_summary()
    """

    def __init__(self, verbose: bool = False):
        self._diagnostics: List[Diagnostic] = []
        self._verbose = verbose

    @property
    def diagnostics(self) -> List[Diagnostic]:
        """Get all collected diagnostics."""
        return list(self._diagnostics)

    @property
    def warnings(self) -> List[Diagnostic]:
        """Get only warning-level diagnostics."""
        return [d for d in self._diagnostics if d.severity == DiagnosticSeverity.WARNING]

    @property
    def count(self) -> int:
        """Get total diagnostic count."""
        return len(self._diagnostics)

    def clear(self) -> None:
        """Clear all diagnostics."""
        self._diagnostics.clear()

    # =========================================================================
    # SPECIFIC WARNING METHODS
    # =========================================================================

    def warn_unbalanced_delimiter(self, name: str, delimiter: str = '{') -> None:
        """Warn that a declaration was skipped because its body never closes."""
        self._diagnostics.append(Diagnostic(
            severity=DiagnosticSeverity.WARNING,
            kind=DiagnosticKind.UNBALANCED_DELIMITER,
            code='W001',
            message=f'Declaration "{name}" was skipped: no closing delimiter '
                    f'for "{delimiter}".',
            declaration=name,
            construct='declaration',
        ))

    def warn_depth_exceeded(self, max_depth: int, declaration: str = '') -> None:
        """Warn that a nested type was truncated to the unknown type."""
        self._diagnostics.append(Diagnostic(
            severity=DiagnosticSeverity.WARNING,
            kind=DiagnosticKind.DEPTH_EXCEEDED,
            code='W002',
            message=f'Schema exceeds {max_depth} levels of nesting. '
                    f'Deeper nodes are typed as unknown.',
            declaration=declaration,
            construct='nesting',
        ))

    def warn_unknown_reference(self, name: str, declaration: str = '') -> None:
        """Warn that a named reference does not resolve to any declaration."""
        self._diagnostics.append(Diagnostic(
            severity=DiagnosticSeverity.WARNING,
            kind=DiagnosticKind.UNKNOWN_REFERENCE,
            code='W003',
            message=f'Reference "{name}" is not declared in this document; '
                    f'typed as unknown.',
            declaration=declaration,
            construct='reference',
        ))

    def warn_numeric_range(self, value: str, declaration: str = '') -> None:
        """Warn that an integer cannot be represented exactly as a JS number."""
        self._diagnostics.append(Diagnostic(
            severity=DiagnosticSeverity.WARNING,
            kind=DiagnosticKind.NUMERIC_RANGE,
            code='W004',
            message=f'Integer {value} exceeds the safe integer range; '
                    f'consumers using float64 numbers will lose precision.',
            declaration=declaration,
            construct='literal',
        ))

    def warn_unsupported_construct(
        self,
        construct: str,
        detail: str = '',
        declaration: str = '',
    ) -> None:
        """Generic warning for unsupported constructs."""
        msg = f'Unsupported construct: {construct}'
        if detail:
            msg += f' ({detail})'
        self._diagnostics.append(Diagnostic(
            severity=DiagnosticSeverity.WARNING,
            kind=DiagnosticKind.UNSUPPORTED_CONSTRUCT,
            code='W099',
            message=msg,
            declaration=declaration,
            construct=construct,
        ))

    # =========================================================================
    # REPORTING
    # =========================================================================

    def print_summary(self, file=None) -> None:
        """Print a summary of all diagnostics to stderr (or specified file)."""
        if file is None:
            file = sys.stderr

        warnings = self.warnings
        if not warnings:
            return

        print(f'\nTranspiler warnings ({len(warnings)}):', file=file)
        by_construct: dict = {}
        for w in warnings:
            by_construct.setdefault(w.construct or 'other', []).append(w)

        for construct, diags in sorted(by_construct.items()):
            print(f'  {construct}: {len(diags)} occurrence(s)', file=file)
            if self._verbose:
                for d in diags:
                    print(f'    {d}', file=file)

    def get_summary(self) -> str:
        """Get a summary string of all diagnostics."""
        if not self._diagnostics:
            return 'No transpiler warnings.'

        by_construct: dict = {}
        for w in self.warnings:
            key = w.construct or 'other'
            by_construct[key] = by_construct.get(key, 0) + 1

        parts = [f'{count} {construct}' for construct, count in sorted(by_construct.items())]
        return f'Transpiler warnings: {", ".join(parts)}'

