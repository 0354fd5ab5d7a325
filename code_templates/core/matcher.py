"""
Code Matcher

A per-project registry of compiled code templates. Scanned codes are
matched against all templates of a project; price override templates
are tried in priority order, and in-store EAN-13 codes can be built
from a template, a short code and a payload.

The registry is safe to share between threads: lookups run concurrently
under a shared lock, while registering or clearing templates takes the
lock exclusively.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence

import structlog

from .components import Code, Embed, Ignore, InternalChecksum, PlainText
from .grammar import TemplateGrammarError
from .template import CodeTemplate, ParseResult
from ..metadata import PriceOverrideCode, ProjectTemplates
from ..validators.ean import ean13, internal_checksum5

logger = structlog.get_logger(__name__)


class ReadWriteLock:
    """
    A lock allowing many concurrent readers or a single writer.

    Waiting writers block new readers, so a steady stream of lookups
    cannot starve a template refresh.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(frozen=True)
class OverrideLookup:
    """
    The result of matching a price override code.

    Attributes:
        lookup_code: The code to use for product lookup
        lookup_template: Id of the template to use for product lookup
        transmission_code: The code to send onward, if any
        embedded_data: The data embedded in the scanned code
    """
    lookup_code: str
    lookup_template: Optional[str]
    transmission_code: Optional[str]
    embedded_data: Optional[int]


class CodeMatcher:
    """
    Registry of compiled templates, keyed by project and template id.

    Example:
        >>> matcher = CodeMatcher()
        >>> matcher.add_template("demo", "default", "{code:*}")
        >>> [r.lookup_code for r in matcher.match("4029764001807", "demo")]
        ['4029764001807']
    """

    def __init__(self) -> None:
        self._templates: Dict[str, Dict[str, CodeTemplate]] = {}
        self._lock = ReadWriteLock()

    def add_template(self, project_id: str, template_id: str, template: str) -> None:
        """
        Compile and register a template.

        Invalid templates are logged and ignored; a previously registered
        template with the same id is left in place.
        """
        try:
            compiled = CodeTemplate.compile(template_id, template)
        except TemplateGrammarError as exc:
            logger.warning(
                "invalid_template_ignored",
                project_id=project_id,
                template_id=template_id,
                template=template,
                error=str(exc),
            )
            return

        with self._lock.write_locked():
            self._templates.setdefault(project_id, {})[template_id] = compiled
        logger.debug("template_registered", project_id=project_id, template_id=template_id)

    def load_project(self, project: ProjectTemplates) -> None:
        """Register all code templates and price override templates of a project."""
        for definition in project.code_templates:
            self.add_template(project.project_id, definition.id, definition.template)
        for override in project.price_override_codes:
            self.add_template(project.project_id, override.id, override.template)
        logger.info(
            "project_templates_loaded",
            project_id=project.project_id,
            code_templates=len(project.code_templates),
            price_override_codes=len(project.price_override_codes),
        )

    def clear_templates(self) -> None:
        """Remove all templates of all projects."""
        with self._lock.write_locked():
            self._templates = {}
        logger.info("templates_cleared")

    def projects(self) -> List[str]:
        with self._lock.read_locked():
            return list(self._templates)

    def templates(self, project_id: str) -> Dict[str, CodeTemplate]:
        """A snapshot of a project's templates, keyed by id."""
        with self._lock.read_locked():
            return dict(self._templates.get(project_id, {}))

    def template(self, project_id: str, template_id: str) -> Optional[CodeTemplate]:
        with self._lock.read_locked():
            return self._templates.get(project_id, {}).get(template_id)

    def match(self, code: str, project_id: str) -> List[ParseResult]:
        """
        Match a code against all templates of a project.

        Returns:
            Every successful match, in no particular priority order
        """
        templates = self.templates(project_id)
        results = []
        for template in templates.values():
            result = template.match(code)
            if result is not None:
                results.append(result)
        return results

    def match_override(
        self,
        code: str,
        overrides: Optional[Sequence[PriceOverrideCode]],
        project_id: str,
    ) -> Optional[OverrideLookup]:
        """
        Match a code against a project's price override templates.

        Overrides are tried in the given order and the first match wins.
        If the winning override has a transmission template, a new
        transmission code is built from it, the override's transmission
        code and the embedded data.
        """
        if not overrides:
            return None

        candidates = self.templates(project_id)
        if not candidates:
            return None

        for override in overrides:
            template = candidates.get(override.id)
            if template is None:
                continue
            result = template.match(code)
            if result is None:
                continue
            return self._override_lookup(result, override, project_id)

        return None

    def _override_lookup(
        self,
        result: ParseResult,
        override: PriceOverrideCode,
        project_id: str,
    ) -> OverrideLookup:
        embedded_data = result.embedded_data
        transmission_code = override.transmission_code

        if (
            override.transmission_template is not None
            and override.transmission_code is not None
            and embedded_data is not None
        ):
            transmission_code = self.create_instore_ean(
                override.transmission_template,
                override.transmission_code,
                embedded_data,
                project_id,
            )

        return OverrideLookup(
            lookup_code=result.lookup_code,
            lookup_template=override.lookup_template,
            transmission_code=transmission_code,
            embedded_data=embedded_data,
        )

    def find_template(self, template_id: str, project_id: Optional[str] = None) -> Optional[CodeTemplate]:
        """Find a template by id, in one project or the first project that has it."""
        with self._lock.read_locked():
            if project_id is not None:
                return self._templates.get(project_id, {}).get(template_id)
            for templates in self._templates.values():
                if template_id in templates:
                    return templates[template_id]
        return None

    def create_instore_ean(
        self,
        template_id: str,
        code: str,
        data: int,
        project_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Build an in-store EAN-13 carrying a 5-digit payload.

        Args:
            template_id: Id of the template describing the layout
            code: Short code for the template's `{code}` field
            data: The payload, e.g. a price in cents
            project_id: Project to search, or None to search all projects

        Returns:
            The EAN-13, or None if the template is unknown, has no
            `{embed}` field, the short code does not fit, or no valid
            EAN-13 can be built
        """
        template = self.find_template(template_id, project_id)
        if template is None:
            logger.debug("template_not_found", template_id=template_id, project_id=project_id)
            return None

        payload = str(data).zfill(5)
        if data < 0 or len(payload) != 5:
            return None

        parts: List[str] = []
        embed_seen = False
        for component in template.components:
            if isinstance(component, PlainText):
                parts.append(component.text)
            elif isinstance(component, Code):
                if len(code) != component.length:
                    return None
                parts.append(code)
            elif isinstance(component, InternalChecksum):
                parts.append(str(internal_checksum5([int(d) for d in payload])))
            elif type(component) is Embed:
                parts.append("0" * component.length)
                embed_seen = True
            elif isinstance(component, Ignore) and not component.ignore_all:
                parts.append("0" * component.length)

        if not embed_seen:
            return None

        ean = ean13("".join(parts)[:7] + payload)
        return ean.code if ean else None
