"""
Validation framework for parsed chord sheets

Provides multiple levels of validation:
1. Structural validation - checks data integrity of a Chordsheet
2. Comparison - checks that two sheets carry the same chords and sections
   (used for round trips through a format)
3. Confidence scoring - assigns quality scores to parsed sheets
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .chord import Key
from .errors import AppError, InvalidKeyError
from .model import AnnotationLine, Chordsheet, EmptyLine, Section, SectionType, TextLine


@dataclass
class ValidationIssue:
    """Represents a validation problem"""
    severity: str  # 'error', 'warning', 'info'
    message: str
    location: Optional[str] = None  # e.g., "section 2, line 3"

    def to_app_error(self) -> AppError:
        context = {'location': self.location} if self.location else {}
        return AppError.validation(self.message, recoverable=self.severity != 'error', **context)


@dataclass
class ValidationResult:
    """Result of validation checks"""
    valid: bool
    confidence: float  # 0.0 to 1.0
    issues: List[ValidationIssue]
    metrics: Dict[str, Any]

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == 'error']

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == 'warning']


class StructuralValidator:
    """Validates structural integrity of parsed chord sheets"""

    @staticmethod
    def validate(sheet: Chordsheet) -> ValidationResult:
        """Run all structural validation checks"""
        issues = []
        metrics = {}

        # Check metadata
        issues.extend(StructuralValidator._check_metadata(sheet, metrics))

        # Check sections and lines
        issues.extend(StructuralValidator._check_content(sheet, metrics))

        # Check chord placements
        issues.extend(StructuralValidator._check_chord_placements(sheet, metrics))

        confidence = StructuralValidator._calculate_confidence(issues, metrics)

        # Determine if valid (no errors, only warnings/info allowed)
        valid = not any(issue.severity == 'error' for issue in issues)

        return ValidationResult(valid=valid, confidence=confidence, issues=issues, metrics=metrics)

    @staticmethod
    def _check_metadata(sheet: Chordsheet, metrics: Dict) -> List[ValidationIssue]:
        """Validate title, artist and key"""
        issues = []

        if not sheet.title or not sheet.title.strip():
            issues.append(ValidationIssue('warning', 'Missing or empty title'))
        else:
            metrics['has_title'] = True

        if sheet.artist and sheet.artist.strip():
            metrics['has_artist'] = True

        if sheet.original_key:
            try:
                Key.parse(sheet.original_key)
                metrics['has_key'] = True
            except InvalidKeyError:
                issues.append(ValidationIssue('error', f'Unrecognized key "{sheet.original_key}"'))

        return issues

    @staticmethod
    def _check_content(sheet: Chordsheet, metrics: Dict) -> List[ValidationIssue]:
        """Validate section and line structure"""
        issues = []

        metrics['section_count'] = len(sheet.sections)
        if not sheet.sections:
            issues.append(ValidationIssue('error', 'No sections found'))
            return issues

        if metrics['section_count'] > 30:
            issues.append(ValidationIssue(
                'warning',
                f'Unusually high section count: {metrics["section_count"]}'
            ))

        text_lines = 0
        lines_with_chords = 0
        lines_with_lyrics = 0
        annotations = 0

        for section_idx, section in enumerate(sheet.sections):
            if not section.lines:
                issues.append(ValidationIssue('info', 'Empty section', f'section {section_idx}'))
                continue

            for line_idx, line in enumerate(section.lines):
                if isinstance(line, TextLine):
                    text_lines += 1
                    if line.chords:
                        lines_with_chords += 1
                    if line.text.strip():
                        lines_with_lyrics += 1
                elif isinstance(line, AnnotationLine):
                    annotations += 1
                    if not line.value.strip():
                        issues.append(ValidationIssue(
                            'warning', 'Empty annotation', f'section {section_idx}, line {line_idx}'
                        ))
                elif isinstance(line, EmptyLine):
                    if line_idx in (0, len(section.lines) - 1):
                        issues.append(ValidationIssue(
                            'warning', 'Section starts or ends with blank lines',
                            f'section {section_idx}'
                        ))
                else:
                    raise TypeError(f"Unknown line type: {type(line).__name__}")

        metrics['text_lines'] = text_lines
        metrics['lines_with_chords'] = lines_with_chords
        metrics['lines_with_lyrics'] = lines_with_lyrics
        metrics['annotations'] = annotations

        if text_lines == 0:
            issues.append(ValidationIssue('warning', 'No text lines found in any section'))
        elif lines_with_chords == 0:
            issues.append(ValidationIssue('warning', 'No chords found in sheet'))

        if lines_with_lyrics > 0:
            metrics['chord_lyric_ratio'] = lines_with_chords / lines_with_lyrics

        return issues

    @staticmethod
    def _check_chord_placements(sheet: Chordsheet, metrics: Dict) -> List[ValidationIssue]:
        """Validate chord ranges and chord spelling"""
        issues = []
        total_chords = 0
        position_errors = 0
        unrecognized = 0

        for section_idx, section in enumerate(sheet.sections):
            for line_idx, line in enumerate(section.lines):
                if not isinstance(line, TextLine):
                    continue
                previous_start = -1
                for cp in line.chords:
                    total_chords += 1
                    location = f'section {section_idx}, line {line_idx}, chord: {cp.chord.name}'

                    if cp.end_index > len(line.text) or cp.start_index < previous_start:
                        position_errors += 1
                        issues.append(ValidationIssue(
                            'error',
                            f'Chord range {cp.start_index}..{cp.end_index} does not fit text of length {len(line.text)}',
                            location
                        ))
                    previous_start = cp.start_index

                    if cp.chord.has_unrecognized:
                        unrecognized += 1
                        issues.append(ValidationIssue(
                            'warning', f'Unrecognized chord suffix in "{cp.chord.original_notation}"', location
                        ))

        metrics['total_chords'] = total_chords
        metrics['chord_position_errors'] = position_errors
        metrics['unrecognized_chords'] = unrecognized
        if total_chords > 0:
            metrics['chord_position_error_rate'] = position_errors / total_chords

        return issues

    @staticmethod
    def _calculate_confidence(issues: List[ValidationIssue], metrics: Dict) -> float:
        """Calculate confidence score 0.0-1.0"""
        score = 0.8

        # Penalize for errors and warnings
        error_count = sum(1 for issue in issues if issue.severity == 'error')
        warning_count = sum(1 for issue in issues if issue.severity == 'warning')

        score -= error_count * 0.2  # Each error: -0.2
        score -= warning_count * 0.05  # Each warning: -0.05

        # Bonus for good metadata
        if metrics.get('has_title'):
            score += 0.05
        if metrics.get('has_artist'):
            score += 0.05
        if metrics.get('has_key'):
            score += 0.05

        # Bonus for good chord coverage
        chord_ratio = metrics.get('chord_lyric_ratio', 0)
        if chord_ratio >= 0.6:
            score += 0.1
        elif chord_ratio >= 0.3:
            score += 0.05

        # Penalty for chord position errors
        score -= metrics.get('chord_position_error_rate', 0) * 0.3

        # Clamp to 0.0-1.0
        return max(0.0, min(1.0, score))


class ComparisonValidator:
    """Compares two chord sheets, e.g. before and after a round trip through a format"""

    @staticmethod
    def section_types(sheet: Chordsheet) -> List[SectionType]:
        return [section.type for section in sheet.sections]

    @staticmethod
    def compare(expected: Chordsheet, actual: Chordsheet) -> ValidationResult:
        issues = []
        metrics = {}

        expected_types = ComparisonValidator.section_types(expected)
        actual_types = ComparisonValidator.section_types(actual)
        metrics['expected_sections'] = len(expected_types)
        metrics['actual_sections'] = len(actual_types)
        if expected_types != actual_types:
            issues.append(ValidationIssue(
                'error',
                f'Section types differ: expected {[t.value for t in expected_types]}, '
                f'got {[t.value for t in actual_types]}'
            ))

        expected_chords = expected.chords()
        actual_chords = actual.chords()
        metrics['expected_chords'] = len(expected_chords)
        metrics['actual_chords'] = len(actual_chords)
        if len(expected_chords) != len(actual_chords):
            issues.append(ValidationIssue(
                'error',
                f'Chord count mismatch: expected {len(expected_chords)}, got {len(actual_chords)}'
            ))

        mismatches = 0
        for i, (want, got) in enumerate(zip(expected_chords, actual_chords)):
            if not want.is_equivalent(got):
                mismatches += 1
                if mismatches <= 10:
                    issues.append(ValidationIssue(
                        'error', f'Chord mismatch: expected {want.name}, got {got.name}', f'chord {i}'
                    ))
        metrics['chord_mismatches'] = mismatches

        text_expected = ComparisonValidator._text_line_counts(expected.sections)
        text_actual = ComparisonValidator._text_line_counts(actual.sections)
        if text_expected != text_actual:
            issues.append(ValidationIssue(
                'warning', f'Text lines per section differ: expected {text_expected}, got {text_actual}'
            ))

        total = max(len(expected_chords), 1)
        confidence = max(0.0, 1.0 - mismatches / total - 0.2 * sum(i.severity == 'error' for i in issues))
        valid = not any(i.severity == 'error' for i in issues)
        return ValidationResult(valid=valid, confidence=min(1.0, confidence), issues=issues, metrics=metrics)

    @staticmethod
    def _text_line_counts(sections: Tuple[Section, ...]) -> List[int]:
        return [sum(1 for line in s.lines if isinstance(line, TextLine)) for s in sections]


class BatchValidator:
    """Aggregates validation results across a corpus"""

    @staticmethod
    def validate_corpus(sheets: List[Tuple[str, Chordsheet]]) -> Dict:
        """
        Validate multiple sheets and return aggregate statistics

        Args:
            sheets: List of (name, chordsheet) tuples

        Returns: Dictionary with aggregate statistics
        """
        stats = {
            'total': len(sheets),
            'valid': 0,
            'invalid': 0,
            'high_confidence': 0,    # > 0.8
            'medium_confidence': 0,  # 0.5 - 0.8
            'low_confidence': 0,     # < 0.5
            'avg_confidence': 0.0,
            'error_count': 0,
            'warning_count': 0,
        }

        confidences = []
        for _, sheet in sheets:
            result = StructuralValidator.validate(sheet)
            if result.valid:
                stats['valid'] += 1
            else:
                stats['invalid'] += 1

            confidences.append(result.confidence)
            if result.confidence > 0.8:
                stats['high_confidence'] += 1
            elif result.confidence >= 0.5:
                stats['medium_confidence'] += 1
            else:
                stats['low_confidence'] += 1

            stats['error_count'] += len(result.errors)
            stats['warning_count'] += len(result.warnings)

        if confidences:
            stats['avg_confidence'] = sum(confidences) / len(confidences)

        return stats
