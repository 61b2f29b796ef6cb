"""
Test to ensure the business scenario summary stays in sync with the
integration scenarios, using the same checker as scripts/validate_test_docs_sync.py.
"""

import importlib.util
import sys
from pathlib import Path

import pytest


SCRIPT = Path(__file__).parent.parent / 'scripts' / 'validate_test_docs_sync.py'


@pytest.fixture(scope="module")
def sync():
    spec = importlib.util.spec_from_file_location("validate_test_docs_sync", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


class TestDocumentationSync:
    """The repository's scenario summary documents every integration test."""

    def test_doc_files_exist(self, sync):
        assert sync.TEST_FILE.exists(), f"Test file not found: {sync.TEST_FILE}"
        assert sync.DOC_FILE.exists(), f"Documentation file not found: {sync.DOC_FILE}"

    def test_every_scenario_is_documented(self, sync):
        report = sync.check_sync()
        assert not report.errors, (
            f"{report.errors}\nPlease update docs/test_scenarios_business_summary.md"
        )

    def test_no_stale_documentation(self, sync):
        report = sync.check_sync()
        assert not report.warnings, (
            f"{report.warnings}\nPlease update docs/test_scenarios_business_summary.md"
        )


class TestSyncChecker:
    """The checker itself flags drift in both directions."""

    @pytest.fixture
    def test_file(self, tmp_path):
        path = tmp_path / "test_scenarios.py"
        path.write_text(
            "class TestPool:\n"
            "    def test_surplus(self):\n"
            "        pass\n"
            "\n"
            "    def helper(self):\n"
            "        pass\n"
            "\n"
            "    def test_deficit(self):\n"
            "        pass\n"
        )
        return path

    def test_missing_method_is_an_error(self, sync, test_file, tmp_path):
        doc = tmp_path / "summary.md"
        doc.write_text("**Test Class**: `TestPool`\n**Test Method**: `test_surplus`\n")

        report = sync.check_sync(test_file, doc)

        assert report.errors == ["Missing method documentation: test_deficit"]
        assert report.warnings == []

    def test_removed_test_is_a_warning(self, sync, test_file, tmp_path):
        doc = tmp_path / "summary.md"
        doc.write_text(
            "**Test Class**: `TestPool`\n"
            "**Test Method**: `test_surplus`\n"
            "**Test Method**: `test_deficit`\n"
            "**Test Class**: `TestRetired`\n"
        )

        report = sync.check_sync(test_file, doc)

        assert report.errors == []
        assert report.warnings == ["Documented class no longer exists: TestRetired"]

    def test_helpers_are_not_scenarios(self, sync, test_file):
        assert sync.extract_test_classes_and_methods(test_file) == {
            "TestPool": ["test_surplus", "test_deficit"]
        }
