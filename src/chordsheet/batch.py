#!/usr/bin/env python3
"""
Batch converter for chord sheet files

Converts every chord sheet under a directory to one target format,
optionally transposing, validates the results and writes a JSON report.
"""

import argparse
import json
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .config import load_config
from .engine import ConversionEngine, ConversionResult
from .errors import AppError
from .model import Chordsheet, NotationFormat
from .validator import BatchValidator, StructuralValidator

logger = logging.getLogger(__name__)

# File extension written for each target format
OUTPUT_EXTENSIONS: Dict[NotationFormat, str] = {
    NotationFormat.CHORDPRO: '.pro',
    NotationFormat.ONSONG: '.onsong',
    NotationFormat.SONGBOOK: '.txt',
    NotationFormat.NASHVILLE: '.nns',
    NotationFormat.GUITAR_TABS: '.tab',
    NotationFormat.PLANNING_CENTER: '.pco',
}

INPUT_EXTENSIONS = {'.pro', '.cho', '.chopro', '.chordpro', '.crd', '.onsong', '.txt', '.nns', '.tab', '.pco'}


@dataclass
class FileOutcome:
    """Result of converting one file"""
    path: Path
    result: Optional[ConversionResult] = None
    errors: List[AppError] = field(default_factory=list)
    output_path: Optional[Path] = None
    sheet: Optional[Chordsheet] = None

    @property
    def success(self) -> bool:
        return not self.errors and self.result is not None and self.result.success


class BatchConverter:
    """Converts chord sheet files in batch"""

    def __init__(self, input_dir: str, output_dir: str,
                 target_format: NotationFormat = NotationFormat.CHORDPRO,
                 target_key: Optional[str] = None,
                 source_format: Optional[NotationFormat] = None,
                 workers: int = 4,
                 engine: Optional[ConversionEngine] = None):
        self.input_dir = Path(input_dir)
        self.output_dir = Path(output_dir)
        self.target_format = NotationFormat.coerce(target_format)
        self.source_format = NotationFormat.coerce(source_format) if source_format else None
        self.target_key = target_key
        self.workers = max(1, workers)
        self.engine = engine or ConversionEngine()

        # Track statistics
        self.stats = {
            'total_files': 0,
            'converted_files': 0,
            'failed_files': 0,
            'source_formats': {},
            'failures': [],
            'warnings': {},
            'validation_results': [],
        }

    def find_files(self) -> List[Path]:
        """Find all chord sheet files in input directory"""
        files = [p for p in self.input_dir.rglob('*')
                 if p.is_file() and p.suffix.lower() in INPUT_EXTENSIONS]

        # Sort for consistent processing order
        return sorted(files)

    def output_path_for(self, file_path: Path) -> Path:
        relative = file_path.relative_to(self.input_dir)
        return (self.output_dir / relative).with_suffix(OUTPUT_EXTENSIONS[self.target_format])

    def process_file(self, file_path: Path) -> FileOutcome:
        """
        Convert a single file and write its output

        Never raises for unreadable input or unwritable output; those become
        FILE_ERRORs on the outcome.
        """
        outcome = FileOutcome(file_path)
        try:
            text = file_path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            outcome.errors.append(AppError.file(f"Failed to read file: {e}", path=str(file_path)))
            return outcome

        outcome.result = self.engine.convert(
            text,
            source_format=self.source_format,
            target_format=self.target_format,
            target_key=self.target_key,
        )
        if not outcome.result.success:
            outcome.errors.extend(outcome.result.errors)
            return outcome

        output_path = self.output_path_for(file_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(outcome.result.output + '\n', encoding='utf-8')
        except OSError as e:
            outcome.errors.append(AppError.file(f"Failed to write output: {e}", path=str(output_path)))
            return outcome
        outcome.output_path = output_path

        # Validate what a reader of the output file would get back
        if outcome.result.output:
            outcome.sheet = self.engine.parse(outcome.result.output, self.target_format)
        return outcome

    def process_batch(self, limit: Optional[int] = None) -> dict:
        """
        Convert all files in batch

        Args:
            limit: Optional limit on number of files to process (for testing)

        Returns: Statistics dictionary
        """
        files = self.find_files()
        if limit:
            files = files[:limit]

        self.stats['total_files'] = len(files)
        logger.info(f"Found {len(files)} chord sheet files")

        # Files are independent; map() keeps input order in the report
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            outcomes = list(pool.map(self.process_file, files))

        converted: List[Tuple[str, Chordsheet]] = []
        for outcome in outcomes:
            name = str(outcome.path.relative_to(self.input_dir))
            self._record(name, outcome)
            if outcome.success and outcome.sheet is not None:
                converted.append((name, outcome.sheet))

        if converted:
            self.stats['batch_validation'] = BatchValidator.validate_corpus(converted)

        return self.stats

    def _record(self, name: str, outcome: FileOutcome):
        result = outcome.result
        if result is not None:
            source = result.metadata.get('source_format')
            if source:
                self.stats['source_formats'][source] = self.stats['source_formats'].get(source, 0) + 1
            if result.warnings:
                self.stats['warnings'][name] = list(result.warnings)

        if not outcome.success:
            self.stats['failed_files'] += 1
            self.stats['failures'].append({
                'file': name,
                'errors': [e.to_dict() for e in outcome.errors],
            })
            logger.warning(f"{name}: {'; '.join(str(e) for e in outcome.errors)}")
            return

        self.stats['converted_files'] += 1
        if outcome.sheet is not None:
            validation = StructuralValidator.validate(outcome.sheet)
            self.stats['validation_results'].append({
                'file': name,
                'valid': validation.valid,
                'confidence': validation.confidence,
                'errors': len(validation.errors),
                'warnings': len(validation.warnings),
            })

    def print_report(self):
        """Print processing report"""
        print("\n" + "=" * 70)
        print("BATCH CONVERSION REPORT")
        print("=" * 70)

        print(f"\nFiles Processed: {self.stats['total_files']}")
        print(f"  Converted: {self.stats['converted_files']}")
        print(f"  Failed: {self.stats['failed_files']}")

        if self.stats['total_files'] > 0:
            success_rate = self.stats['converted_files'] / self.stats['total_files'] * 100
            print(f"  Success Rate: {success_rate:.1f}%")

        print(f"\nSource Formats:")
        for fmt, count in sorted(self.stats['source_formats'].items()):
            print(f"  {fmt}: {count}")

        if 'batch_validation' in self.stats:
            bv = self.stats['batch_validation']
            print(f"\nValidation Results:")
            print(f"  Valid: {bv['valid']}")
            print(f"  Invalid: {bv['invalid']}")
            print(f"  Average Confidence: {bv['avg_confidence']:.2%}")

        if self.stats['failures']:
            print(f"\nFailed Files (showing first 10):")
            for failure in self.stats['failures'][:10]:
                messages = '; '.join(e['message'] for e in failure['errors'])
                print(f"  {failure['file']}: {messages}")

        print(f"\nOutput written to: {self.output_dir}")

    def save_report(self, report_file: str):
        """Save detailed statistics to JSON file"""
        with open(report_file, 'w', encoding='utf-8') as f:
            json.dump(self.stats, f, indent=2)
        logger.info(f"Detailed report saved to: {report_file}")


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description='Convert a directory of chord sheets to another notation format'
    )
    parser.add_argument('input_dir', help='Directory containing chord sheet files')
    parser.add_argument('-o', '--output-dir', default='converted',
                        help='Directory for converted files (default: converted/)')
    parser.add_argument('-t', '--to', dest='target_format', default='chordpro',
                        help='Target format (default: chordpro)')
    parser.add_argument('-f', '--from', dest='source_format',
                        help='Source format (default: detect per file)')
    parser.add_argument('-k', '--key', dest='target_key', help='Transpose every song to this key')
    parser.add_argument('-c', '--config', help='YAML file overriding the packaged format profiles')
    parser.add_argument('-w', '--workers', type=int, default=4, help='Worker threads (default: 4)')
    parser.add_argument('-r', '--report', default='conversion_report.json',
                        help='JSON file for detailed statistics (default: conversion_report.json)')
    parser.add_argument('-l', '--limit', type=int, help='Limit number of files to process (for testing)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log every pipeline stage')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if not os.path.isdir(args.input_dir):
        print(f"Error: Input directory not found: {args.input_dir}")
        sys.exit(1)

    try:
        target_format = NotationFormat.coerce(args.target_format)
        source_format = NotationFormat.coerce(args.source_format) if args.source_format else None
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(2)

    engine = ConversionEngine(config=load_config(args.config)) if args.config else None
    converter = BatchConverter(
        input_dir=args.input_dir,
        output_dir=args.output_dir,
        target_format=target_format,
        target_key=args.target_key,
        source_format=source_format,
        workers=args.workers,
        engine=engine,
    )

    converter.process_batch(limit=args.limit)
    converter.print_report()
    converter.save_report(args.report)

    if converter.stats['failed_files']:
        sys.exit(1)


if __name__ == "__main__":
    main()
