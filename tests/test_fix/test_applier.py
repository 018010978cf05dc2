"""Tests for fix rules and the patch applier."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from pixelens.core.models import Issue, MatchKind, SearchResult, Severity
from pixelens.fix import applier as applier_module
from pixelens.fix.applier import (
    PatchApplier,
    extract_alt_text,
    find_fix_rule,
    insert_css_declaration,
    insert_missing_alt,
)
from pixelens.fix.ledger import EditLedger, LedgerError


@pytest.fixture
def ledger(tmp_path: Path) -> EditLedger:
    return EditLedger(tmp_path / ".pixelens" / "edit_history.db")


@pytest.fixture
def applier(ledger: EditLedger) -> PatchApplier:
    return PatchApplier(ledger)


def _alt_issue(fix: str = 'alt="Company Logo"') -> Issue:
    return Issue(
        id="1",
        title="Missing Alt Text",
        description="WCAG 2.1 violation: Image lacks alt attribute",
        severity=Severity.HIGH,
        category="accessibility",
        element_selector="img.logo",
        suggested_fix=fix,
    )


def _color_issue(fix: str = "color: #121212;", selector: str = ".hero-text") -> Issue:
    return Issue(
        id="2",
        title="Low Contrast Text",
        description="Text contrast ratio is below 4.5:1",
        severity=Severity.MEDIUM,
        category="styling",
        element_selector=selector,
        suggested_fix=fix,
    )


def _match(path: Path, line: int = 1, kind: MatchKind = MatchKind.CLASS) -> SearchResult:
    return SearchResult(file_path=path, line_number=line, line_content="", match_kind=kind)


class TestAltText:
    def test_extract_alt_text(self):
        assert extract_alt_text('<img src="logo.png" alt="Company Logo">') == 'alt="Company Logo"'
        assert extract_alt_text("alt='Logo'") == "alt='Logo'"
        assert extract_alt_text("Add descriptive alt text") is None

    def test_inserts_only_into_tags_without_alt(self):
        """Tags that already declare alt are left byte-identical."""
        content = (
            '<img class="logo" src="x.png">\n'
            '<img src="y.png" alt="Existing">\n'
            '<img src="z.png" />\n'
            "<imgcaption>not an image</imgcaption>\n"
        )

        result = insert_missing_alt(content, 'alt="Company Logo"')

        assert result == (
            '<img class="logo" src="x.png" alt="Company Logo">\n'
            '<img src="y.png" alt="Existing">\n'
            '<img src="z.png" alt="Company Logo" />\n'
            "<imgcaption>not an image</imgcaption>\n"
        )

    def test_multiline_tag(self):
        content = '<img\n  src="x.png"\n>'

        assert insert_missing_alt(content, 'alt="X"') == '<img\n  src="x.png" alt="X"\n>'

    def test_applies_and_records(self, applier: PatchApplier, ledger: EditLedger, tmp_path: Path):
        page = tmp_path / "index.html"
        page.write_text('<header>\n  <img class="logo" src="x.png">\n</header>\n')

        outcome = applier.apply(_match(page, 2), _alt_issue())

        assert outcome.success is True
        assert outcome.file_path == page
        assert outcome.line_number == 2
        assert page.read_text() == '<header>\n  <img class="logo" src="x.png" alt="Company Logo">\n</header>\n'
        records = ledger.list()
        assert len(records) == 1
        assert outcome.edit_id == records[0].id
        assert records[0].original_content == '<header>\n  <img class="logo" src="x.png">\n</header>\n'
        assert records[0].modified_content == page.read_text()

    def test_second_application_is_noop(self, applier: PatchApplier, ledger: EditLedger, tmp_path: Path):
        """Re-applying the same fix changes nothing and records nothing."""
        page = tmp_path / "index.html"
        page.write_text('<img class="logo" src="x.png">\n')

        first = applier.apply(_match(page), _alt_issue())
        after_first = page.read_bytes()
        second = applier.apply(_match(page), _alt_issue())

        assert first.success is True
        assert second.success is False
        assert page.read_bytes() == after_first
        assert ledger.count() == 1

    def test_no_alt_value_is_noop(self, applier: PatchApplier, ledger: EditLedger, tmp_path: Path):
        page = tmp_path / "index.html"
        page.write_text('<img src="x.png">\n')

        outcome = applier.apply(_match(page), _alt_issue(fix="Add descriptive alt text to the logo"))

        assert outcome.success is False
        assert "alt" in outcome.message
        assert page.read_text() == '<img src="x.png">\n'
        assert ledger.count() == 0

    def test_crlf_preserved(self, applier: PatchApplier, tmp_path: Path):
        page = tmp_path / "index.html"
        page.write_bytes(b'<p>hi</p>\r\n<img src="x.png">\r\n')

        applier.apply(_match(page, 2), _alt_issue())

        assert page.read_bytes() == b'<p>hi</p>\r\n<img src="x.png" alt="Company Logo">\r\n'


class TestCssDeclaration:
    def test_inserts_after_opening_brace(self):
        content = ".hero-text {\n  font-size: 2rem;\n}\n"

        result = insert_css_declaration(content, [".hero-text"], "color: #121212;")

        assert result == ".hero-text {\n  color: #121212;\n  font-size: 2rem;\n}\n"

    def test_selector_is_literal_prefix(self):
        """.hero-text does not match .hero-textual."""
        content = ".hero-textual {\n  margin: 0;\n}\n.hero-text {\n}\n"

        result = insert_css_declaration(content, [".hero-text"], "color: #121212")

        assert result == ".hero-textual {\n  margin: 0;\n}\n.hero-text {\n  color: #121212;\n}\n"

    def test_grouped_selector(self):
        content = "h1, .hero-text { margin: 0; }"

        assert insert_css_declaration(content, [".hero-text"], "color: red;") == (
            "h1, .hero-text {\n  color: red; margin: 0; }"
        )

    def test_existing_declaration_is_noop(self):
        content = ".hero-text {\n  color: #121212;\n}\n"

        assert insert_css_declaration(content, [".hero-text"], "color: #121212;") == content

    def test_no_rule_is_noop(self):
        content = ".other {\n}\n"

        assert insert_css_declaration(content, [".hero-text"], "color: red;") == content

    def test_applies_and_records(self, applier: PatchApplier, ledger: EditLedger, tmp_path: Path):
        css = tmp_path / "main.css"
        css.write_text("body {\n  margin: 0;\n}\n\n.hero-text {\n    font-weight: bold;\n}\n")

        outcome = applier.apply(_match(css, 5, MatchKind.CSS), _color_issue())

        assert outcome.success is True
        assert css.read_text() == (
            "body {\n  margin: 0;\n}\n\n.hero-text {\n    color: #121212;\n    font-weight: bold;\n}\n"
        )
        assert ledger.count() == 1


class TestUnsupportedFixes:
    @pytest.mark.parametrize(
        "category, fix",
        [
            ("styling", "padding: 12px 24px; border-radius: 4px;"),
            ("performance", "Compress image to reduce file size by 70%"),
            ("accessibility", "color: #121212; background-color: #ffffff;"),
        ],
    )
    def test_no_rule(self, category: str, fix: str):
        issue = Issue("9", "Other", "Something else", Severity.LOW, category, ".x", fix)

        assert find_fix_rule(issue) is None

    @pytest.mark.parametrize("name", ["main.css", "theme.SCSS", "vars.less"])
    def test_css_rule_for_stylesheets(self, name: str):
        rule = find_fix_rule(_color_issue(), Path(name))

        assert rule is not None
        assert rule.name == "css-declaration"

    @pytest.mark.parametrize("name", ["app.js", "Button.tsx", "index.html"])
    def test_css_rule_not_for_other_files(self, name: str):
        assert find_fix_rule(_color_issue(), Path(name)) is None

    def test_script_with_matching_braces_untouched(self, applier: PatchApplier, ledger: EditLedger, tmp_path: Path):
        """A JS function named like a tag selector never gets a CSS declaration."""
        script = tmp_path / "app.js"
        script.write_text("function button() {\n  return 1;\n}\n")
        best = _match(script, 1, MatchKind.CSS)

        outcome = applier.apply(best, _color_issue(selector="button"), [best])

        assert outcome.success is False
        assert "No automatic fix" in outcome.message
        assert outcome.candidates == [best]
        assert script.read_text() == "function button() {\n  return 1;\n}\n"
        assert ledger.count() == 0

    def test_unsupported_returns_candidates(self, applier: PatchApplier, ledger: EditLedger, tmp_path: Path):
        """Without a rule the file is untouched and candidates come back."""
        page = tmp_path / "index.html"
        page.write_text('<button class="cta-button">Go</button>\n')
        issue = Issue("3", "Inconsistent Button Styling", "", Severity.LOW, "styling", ".cta-button", "padding: 12px;")
        best = _match(page, 1, MatchKind.CSS)
        other = _match(page, 1, MatchKind.FALLBACK)

        outcome = applier.apply(best, issue, [best, other])

        assert outcome.success is False
        assert "styling" in outcome.message
        assert outcome.candidates == [best, other]
        assert page.read_text() == '<button class="cta-button">Go</button>\n'
        assert ledger.count() == 0


class TestFailures:
    def test_missing_file(self, applier: PatchApplier, ledger: EditLedger, tmp_path: Path):
        outcome = applier.apply(_match(tmp_path / "gone.html"), _alt_issue())

        assert outcome.success is False
        assert "Cannot read" in outcome.message
        assert ledger.count() == 0

    def test_write_failure_surfaces_and_skips_ledger(
        self, applier: PatchApplier, ledger: EditLedger, tmp_path: Path, monkeypatch
    ):
        page = tmp_path / "index.html"
        page.write_text('<img src="x.png">\n')

        def fail(path, content):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(applier_module, "write_source", fail)
        outcome = applier.apply(_match(page), _alt_issue())

        assert outcome.success is False
        assert "Permission denied" in outcome.message
        assert page.read_text() == '<img src="x.png">\n'
        assert ledger.count() == 0

    def test_ledger_failure_keeps_write_and_says_so(self, applier: PatchApplier, tmp_path: Path, monkeypatch):
        page = tmp_path / "index.html"
        page.write_text('<img src="x.png">\n')

        def broken_append(*args, **kwargs):
            raise LedgerError("database is locked")

        monkeypatch.setattr(applier.ledger, "append", broken_append)
        outcome = applier.apply(_match(page), _alt_issue())

        assert outcome.success is False
        assert outcome.audit_recorded is False
        assert "audit record failed" in outcome.message
        assert 'alt="Company Logo"' in page.read_text()

    def test_write_leaves_no_temp_files(self, applier: PatchApplier, tmp_path: Path):
        page = tmp_path / "index.html"
        page.write_text('<img src="x.png">\n')

        applier.apply(_match(page), _alt_issue())

        assert sorted(os.listdir(tmp_path)) == [".pixelens", "index.html"]

    def test_deleted_file_is_not_recreated(self, applier: PatchApplier, ledger: EditLedger, tmp_path: Path):
        """A file removed between read and write is a failed write."""
        page = tmp_path / "index.html"
        page.write_text('<img src="x.png">\n')
        original = page.read_text()
        page.unlink()

        outcome = applier.write(page, original, '<img src="x.png" alt="X">\n')

        assert outcome.success is False
        assert "Failed to write" in outcome.message
        assert not page.exists()
        assert ledger.count() == 0
        assert sorted(os.listdir(tmp_path)) == [".pixelens"]

    def test_symlink_target_is_rewritten(self, applier: PatchApplier, ledger: EditLedger, tmp_path: Path):
        """Fixing a symlinked file updates the target and keeps the link."""
        shared = tmp_path / "shared"
        shared.mkdir()
        real = shared / "real.html"
        real.write_text('<img class="logo" src="a.png">\n')
        link = tmp_path / "index.html"
        try:
            link.symlink_to(real)
        except OSError:
            pytest.skip("symlinks not supported")

        outcome = applier.apply(_match(link), _alt_issue())

        assert outcome.success is True
        assert link.is_symlink()
        assert real.read_text() == '<img class="logo" src="a.png" alt="Company Logo">\n'
        assert ledger.count() == 1


class TestPlan:
    def test_plan_does_not_write(self, applier: PatchApplier, ledger: EditLedger, tmp_path: Path):
        page = tmp_path / "index.html"
        page.write_text('<img src="x.png">\n')

        plan = applier.plan(_match(page), _alt_issue())

        assert plan is not None
        assert plan.rule == "missing-alt"
        assert plan.changed
        assert '+<img src="x.png" alt="Company Logo">' in plan.diff()
        assert page.read_text() == '<img src="x.png">\n'
        assert ledger.count() == 0

    def test_plan_none_without_rule(self, applier: PatchApplier, tmp_path: Path):
        issue = Issue("4", "Large Image", "", Severity.MEDIUM, "performance", ".hero-image", "Compress")

        assert applier.plan(_match(tmp_path / "x.html"), issue) is None
