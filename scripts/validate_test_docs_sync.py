#!/usr/bin/env python3
"""
Validate that test_scenarios_business_summary.md stays in sync with test_integration_scenarios.py.

This script checks:
1. All test classes in the test file are documented
2. All test methods are referenced in the doc
3. Warns about documented tests that no longer exist

Run: python scripts/validate_test_docs_sync.py
"""

import re
import sys
from dataclasses import dataclass, field
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
TEST_FILE = PROJECT_ROOT / 'tests' / 'test_integration_scenarios.py'
DOC_FILE = PROJECT_ROOT / 'docs' / 'test_scenarios_business_summary.md'

CLASS_PATTERN = re.compile(r'^class (Test\w+)')
METHOD_PATTERN = re.compile(r'^\s+def (test_\w+)')
DOC_CLASS_PATTERN = re.compile(r'\*\*Test Class\*\*:\s*`(Test\w+)`')
DOC_METHOD_PATTERN = re.compile(r'\*\*Test Method\*\*:\s*`(test_\w+)`')


@dataclass
class SyncReport:
    test_classes: dict[str, list[str]]
    doc_classes: set[str]
    doc_methods: set[str]
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def test_methods(self) -> set[str]:
        return {m for methods in self.test_classes.values() for m in methods}

    @property
    def in_sync(self) -> bool:
        return not self.errors and not self.warnings


def extract_test_classes_and_methods(test_file: Path) -> dict[str, list[str]]:
    """Map each test class of the file to its test methods, in file order."""
    classes = {}
    current_class = None

    for line in test_file.read_text().splitlines():
        class_match = CLASS_PATTERN.match(line)
        if class_match:
            current_class = class_match.group(1)
            classes[current_class] = []
        elif current_class:
            method_match = METHOD_PATTERN.match(line)
            if method_match:
                classes[current_class].append(method_match.group(1))

    return classes


def extract_documented_tests(doc_file: Path) -> tuple[set[str], set[str]]:
    """Class names and method names referenced in the documentation."""
    content = doc_file.read_text()
    return set(DOC_CLASS_PATTERN.findall(content)), set(DOC_METHOD_PATTERN.findall(content))


def check_sync(test_file: Path = TEST_FILE, doc_file: Path = DOC_FILE) -> SyncReport:
    """Missing documentation is an error; documentation of removed tests is a warning."""
    doc_classes, doc_methods = extract_documented_tests(doc_file)
    report = SyncReport(
        test_classes=extract_test_classes_and_methods(test_file),
        doc_classes=doc_classes,
        doc_methods=doc_methods,
    )

    for cls in sorted(set(report.test_classes) - doc_classes):
        report.errors.append(f"Missing class documentation: {cls}")
    for method in sorted(report.test_methods - doc_methods):
        report.errors.append(f"Missing method documentation: {method}")
    for cls in sorted(doc_classes - set(report.test_classes)):
        report.warnings.append(f"Documented class no longer exists: {cls}")
    for method in sorted(doc_methods - report.test_methods):
        report.warnings.append(f"Documented method no longer exists: {method}")

    return report


def print_report(report: SyncReport) -> None:
    print("=" * 60)
    print("Test Documentation Sync Validation")
    print("=" * 60)
    print(f"\nTest file: {TEST_FILE.name}")
    print(f"Doc file:  {DOC_FILE.name}")
    print(f"\nTest classes found: {len(report.test_classes)}")
    print(f"Test methods found: {len(report.test_methods)}")
    print(f"Documented classes: {len(report.doc_classes)}")
    print(f"Documented methods: {len(report.doc_methods)}")

    if report.errors:
        print(f"\n❌ ERRORS ({len(report.errors)}):")
        for error in report.errors:
            print(f"   - {error}")

    if report.warnings:
        print(f"\n⚠️  WARNINGS ({len(report.warnings)}):")
        for warning in report.warnings:
            print(f"   - {warning}")

    if report.in_sync:
        print("\n✅ All scenarios are documented and in sync!")

    print("\n" + "=" * 60)
    print("\nCoverage by Class:")
    for cls, methods in sorted(report.test_classes.items()):
        print(f"\n  {'✅' if cls in report.doc_classes else '❌'} {cls}")
        for method in methods:
            print(f"      {'✅' if method in report.doc_methods else '❌'} {method}")


def main():
    for path in (TEST_FILE, DOC_FILE):
        if not path.exists():
            print(f"❌ File not found: {path}")
            sys.exit(1)

    report = check_sync()
    print_report(report)
    sys.exit(1 if report.errors else 0)


if __name__ == '__main__':
    main()
