"""
Tests for the per-project template registry.

Tests cover:
- Registering, replacing and clearing templates
- Matching against all templates of a project
- Price override codes
- Building in-store EAN-13 codes
- Concurrent access
"""

import threading

import pytest
from structlog.testing import capture_logs

from code_templates import (
    DEFAULT_TEMPLATE_ID,
    CodeMatcher,
    PriceOverrideCode,
    ProjectTemplates,
)
from code_templates.core.matcher import ReadWriteLock
from code_templates.validators.ean import ean13


PROJECT = "demo-project"


@pytest.fixture
def matcher():
    """A matcher loaded with the built-in templates."""
    matcher = CodeMatcher()
    matcher.load_project(ProjectTemplates.builtin(PROJECT))
    return matcher


def matched_ids(matcher, code, project_id=PROJECT):
    return sorted(r.template.id for r in matcher.match(code, project_id))


class TestRegistry:
    """Tests for registering templates."""

    def test_add_template(self):
        """Test a template is registered under its project."""
        matcher = CodeMatcher()
        matcher.add_template(PROJECT, "instore", "2{code:5}{_}{embed:5}{ec}")
        assert matcher.projects() == [PROJECT]
        assert list(matcher.templates(PROJECT)) == ["instore"]
        assert matcher.template(PROJECT, "instore").template == "2{code:5}{_}{embed:5}{ec}"

    def test_invalid_template_is_ignored(self):
        """Test invalid templates are logged and not registered."""
        matcher = CodeMatcher()
        with capture_logs() as logs:
            matcher.add_template(PROJECT, "broken", "{bogus:3}")

        assert matcher.template(PROJECT, "broken") is None
        assert logs[0]["event"] == "invalid_template_ignored"
        assert logs[0]["log_level"] == "warning"
        assert logs[0]["project_id"] == PROJECT
        assert logs[0]["template_id"] == "broken"
        assert "UNKNOWN_TOKEN" in logs[0]["error"]

    def test_invalid_template_keeps_previous(self):
        """Test an invalid replacement leaves the old template in place."""
        matcher = CodeMatcher()
        matcher.add_template(PROJECT, "t", "{code:*}")
        matcher.add_template(PROJECT, "t", "{code:")
        assert matcher.template(PROJECT, "t").template == "{code:*}"

    def test_replace_template(self):
        """Test registering an existing id replaces the template."""
        matcher = CodeMatcher()
        matcher.add_template(PROJECT, "t", "{code:*}")
        matcher.add_template(PROJECT, "t", "{code:ean13}")
        assert matcher.template(PROJECT, "t").template == "{code:ean13}"

    def test_projects_are_isolated(self):
        """Test templates of one project don't match in another."""
        matcher = CodeMatcher()
        matcher.add_template("a", DEFAULT_TEMPLATE_ID, "{code:*}")
        assert len(matcher.match("123", "a")) == 1
        assert matcher.match("123", "b") == []

    def test_clear_templates(self, matcher):
        """Test clearing removes every project."""
        with capture_logs() as logs:
            matcher.clear_templates()
        assert matcher.projects() == []
        assert matcher.match("2957783000742", PROJECT) == []
        assert logs[0]["event"] == "templates_cleared"

    def test_templates_snapshot(self, matcher):
        """Test the returned mapping is a copy."""
        templates = matcher.templates(PROJECT)
        templates.clear()
        assert matcher.templates(PROJECT)

    def test_load_project_logs(self):
        """Test loading a project is logged with its counts."""
        matcher = CodeMatcher()
        with capture_logs() as logs:
            matcher.load_project(ProjectTemplates.builtin(PROJECT))
        loaded = [e for e in logs if e["event"] == "project_templates_loaded"]
        assert loaded[0]["code_templates"] == 6
        assert loaded[0]["price_override_codes"] == 0


class TestMatch:
    """Tests for matching against all templates of a project."""

    def test_instore_code(self, matcher):
        """Test an in-store code matches both in-store layouts."""
        assert matched_ids(matcher, "2957783000742") == [
            "default",
            "ean13_instore",
            "ean13_instore_chk",
        ]

    def test_code128(self, matcher):
        """Test a GS1-128 code."""
        assert matched_ids(matcher, "0128000017120605") == ["default", "ean14_code128"]

    def test_german_print(self, matcher):
        """Test a German print-media code."""
        assert matched_ids(matcher, "4029764001807") == ["default", "german_print"]

    def test_plain_ean(self, matcher):
        """Test a regular EAN only matches the catch-all template."""
        results = matcher.match("0885580466732", PROJECT)
        assert [r.template.id for r in results] == [DEFAULT_TEMPLATE_ID]
        assert results[0].lookup_code == "0885580466732"

    def test_unknown_project(self, matcher):
        """Test an unknown project has no matches."""
        assert matcher.match("2957783000742", "unknown") == []


class TestFindTemplate:
    """Tests for find_template()."""

    def test_in_project(self, matcher):
        """Test finding a template in a given project."""
        assert matcher.find_template("ean13_instore", PROJECT) is not None
        assert matcher.find_template("ean13_instore", "other") is None

    def test_in_any_project(self):
        """Test searching all projects."""
        matcher = CodeMatcher()
        matcher.add_template("a", "x", "{code:*}")
        matcher.add_template("b", "y", "{code:ean13}")
        assert matcher.find_template("y").template == "{code:ean13}"
        assert matcher.find_template("z") is None


class TestCreateInstoreEAN:
    """Tests for building in-store EAN-13 codes."""

    @pytest.mark.parametrize("data,expected", [
        (1, "2111110000014"),
        (12, "2111110000120"),
        (123, "2111110001233"),
        (1234, "2111110012345"),
        (12345, "2111110123454"),
    ])
    def test_without_internal_checksum(self, matcher, data, expected):
        """Test the plain in-store layout."""
        assert matcher.create_instore_ean("ean13_instore", "11111", data, PROJECT) == expected

    @pytest.mark.parametrize("data,expected", [
        (1, "2111114000010"),
        (12, "2111119000121"),
        (123, "2111114001239"),
        (1234, "2111111012344"),
        (12345, "2111118123456"),
    ])
    def test_with_internal_checksum(self, matcher, data, expected):
        """Test the in-store layout with an internal checksum."""
        assert matcher.create_instore_ean("ean13_instore_chk", "11111", data, PROJECT) == expected

    def test_searches_all_projects(self, matcher):
        """Test the template is found without a project."""
        assert matcher.create_instore_ean("ean13_instore", "11111", 1) == "2111110000014"

    def test_unusable_templates(self, matcher):
        """Test templates without a fitting code or embed field."""
        assert matcher.create_instore_ean(DEFAULT_TEMPLATE_ID, "11111", 1, PROJECT) is None
        assert matcher.create_instore_ean("ean14_code128", "11111", 1, PROJECT) is None
        assert matcher.create_instore_ean("unknown", "11111", 1, PROJECT) is None

    def test_short_code_length(self, matcher):
        """Test the short code must fill the code field exactly."""
        assert matcher.create_instore_ean("ean13_instore", "1111", 1, PROJECT) is None
        assert matcher.create_instore_ean("ean13_instore", "1", 1, PROJECT) is None

    def test_payload_range(self, matcher):
        """Test payloads must fit into five digits."""
        assert matcher.create_instore_ean("ean13_instore", "11111", 99999, PROJECT) is not None
        assert matcher.create_instore_ean("ean13_instore", "11111", 100000, PROJECT) is None
        assert matcher.create_instore_ean("ean13_instore", "11111", -1, PROJECT) is None

    def test_created_code_matches(self, matcher):
        """Test the created code matches its template again."""
        code = matcher.create_instore_ean("ean13_instore_chk", "11111", 4711, PROJECT)
        result = matcher.template(PROJECT, "ean13_instore_chk").match(code)
        assert result.lookup_code == "11111"
        assert result.embedded_data == 4711


class TestPriceOverride:
    """Tests for price override codes."""

    DISCOUNT = PriceOverrideCode(
        id="discount",
        template="97{code:ean13}{embed:5}{_}",
        lookup_template="ean13_instore",
        transmission_template="ean13_instore",
        transmission_code="12345",
    )
    PASSTHROUGH = PriceOverrideCode(
        id="passthrough",
        template="98{code:ean13}{embed:5}{_}",
        lookup_template=DEFAULT_TEMPLATE_ID,
        transmission_code="4029764001807",
    )
    CODE = "97" + "4029764001807" + "00199" + "0"

    @pytest.fixture
    def project(self):
        return ProjectTemplates(
            project_id=PROJECT,
            code_templates=ProjectTemplates.builtin(PROJECT).code_templates,
            price_override_codes=[self.DISCOUNT, self.PASSTHROUGH],
        )

    @pytest.fixture
    def override_matcher(self, project):
        matcher = CodeMatcher()
        matcher.load_project(project)
        return matcher

    def test_transmission_code_is_built(self, override_matcher, project):
        """Test the transmission code carries the embedded data."""
        lookup = override_matcher.match_override(self.CODE, project.price_override_codes, PROJECT)
        assert lookup.lookup_code == "4029764001807"
        assert lookup.lookup_template == "ean13_instore"
        assert lookup.embedded_data == 199
        assert lookup.transmission_code == ean13("212345000199").code

    def test_transmission_code_passthrough(self, override_matcher, project):
        """Test overrides without a transmission template pass their code on."""
        code = "98" + "4029764001807" + "00250" + "0"
        lookup = override_matcher.match_override(code, project.price_override_codes, PROJECT)
        assert lookup.lookup_template == DEFAULT_TEMPLATE_ID
        assert lookup.transmission_code == "4029764001807"
        assert lookup.embedded_data == 250

    def test_first_override_wins(self, override_matcher):
        """Test overrides are tried in order."""
        catch_all = PriceOverrideCode(id=DEFAULT_TEMPLATE_ID, template="{code:*}")
        lookup = override_matcher.match_override(self.CODE, [catch_all, self.DISCOUNT], PROJECT)
        assert lookup.lookup_code == self.CODE
        assert lookup.lookup_template is None
        assert lookup.transmission_code is None

        lookup = override_matcher.match_override(self.CODE, [self.DISCOUNT, catch_all], PROJECT)
        assert lookup.lookup_code == "4029764001807"

    def test_no_match(self, override_matcher, project):
        """Test codes that match no override."""
        assert override_matcher.match_override("2957783000742", project.price_override_codes, PROJECT) is None
        assert override_matcher.match_override(self.CODE, [], PROJECT) is None
        assert override_matcher.match_override(self.CODE, None, PROJECT) is None
        assert override_matcher.match_override(self.CODE, project.price_override_codes, "other") is None

    def test_unregistered_override_is_skipped(self, override_matcher):
        """Test overrides without a registered template are skipped."""
        missing = PriceOverrideCode(id="missing", template="{code:*}")
        assert override_matcher.match_override(self.CODE, [missing], PROJECT) is None


class TestReadWriteLock:
    """Tests for the registry lock."""

    def test_readers_share_lock(self):
        """Test two readers hold the lock at the same time."""
        lock = ReadWriteLock()
        inside = threading.Event()
        release = threading.Event()
        acquired = threading.Event()

        def first_reader():
            with lock.read_locked():
                inside.set()
                release.wait(5)

        def second_reader():
            with lock.read_locked():
                acquired.set()

        t1 = threading.Thread(target=first_reader)
        t1.start()
        assert inside.wait(5)

        t2 = threading.Thread(target=second_reader)
        t2.start()
        assert acquired.wait(5)

        release.set()
        t1.join(5)
        t2.join(5)

    def test_writer_excludes_readers(self):
        """Test a reader waits while a writer holds the lock."""
        lock = ReadWriteLock()
        acquired = threading.Event()

        def reader():
            with lock.read_locked():
                acquired.set()

        with lock.write_locked():
            thread = threading.Thread(target=reader)
            thread.start()
            assert not acquired.wait(0.2)

        assert acquired.wait(5)
        thread.join(5)


class TestConcurrency:
    """Tests for concurrent matching and registration."""

    def test_match_during_registration(self, matcher):
        """Test lookups see complete templates while others are registered."""
        errors = []
        stop = threading.Event()

        def lookup():
            try:
                while not stop.is_set():
                    ids = matched_ids(matcher, "2957783000742")
                    assert "ean13_instore" in ids
            except Exception as exc:
                errors.append(exc)

        def register():
            for i in range(200):
                matcher.add_template(PROJECT, f"extra_{i}", "2{code:5}{_}{embed:5}{ec}")

        readers = [threading.Thread(target=lookup) for _ in range(4)]
        for thread in readers:
            thread.start()

        writer = threading.Thread(target=register)
        writer.start()
        writer.join(30)
        stop.set()
        for thread in readers:
            thread.join(30)

        assert errors == []
        assert len(matcher.templates(PROJECT)) == 206
        assert len(matcher.match("2957783000742", PROJECT)) == 203
