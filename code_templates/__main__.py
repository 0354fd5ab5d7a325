"""
CLI interface for the code template matcher.

Usage:
    python -m code_templates match "<code>" [options]
    python -m code_templates embed "<code>" <payload> --template <id> [options]
    python -m code_templates create-instore <template id> <short code> <payload> [options]
    python -m code_templates check "<template>"

Options:
    --project            Project whose templates are used
    --templates          Project metadata JSON (defaults to the built-in templates)
    --json               Output as JSON
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .config import get_settings
from .core.grammar import TemplateGrammarError
from .core.matcher import CodeMatcher
from .core.template import CodeTemplate, ParseResult
from .formatters.json_formatter import format_match, format_matches_json
from .logging import configure_logging
from .metadata import MetadataError, ProjectTemplates, load_projects


def format_result(result: ParseResult) -> str:
    """Format a single match for display."""
    lines = [
        f"Template: {result.template.id} ({result.template.template})",
        f"  Lookup Code: {result.lookup_code!r}",
    ]

    if result.embedded_data is not None:
        lines.append(f"  Embedded Data: {result.embedded_data}")

    decimal = result.embedded_decimal
    if decimal is not None:
        lines.append(f"  Embedded Decimal: {decimal.decimal_value}")

    if result.reference_price is not None:
        lines.append(f"  Reference Price: {result.reference_price}")

    for component, value in result.entries:
        lines.append(f"    {component.describe():<16} {value!r}")

    return '\n'.join(lines)


def format_results(code: str, results: List[ParseResult]) -> str:
    """Format all matches of a code for display."""
    lines = [
        "=" * 60,
        "Code Template Matches",
        "=" * 60,
        f"Code: {code!r}",
        f"Matches: {len(results)}",
        "",
    ]
    for result in sorted(results, key=lambda r: r.template.id):
        lines.append(format_result(result))
        lines.append("")
    return '\n'.join(lines)


def build_matcher(project_id: str, templates_file: Optional[Path]) -> CodeMatcher:
    """Register the project's templates, or the built-in set without a metadata file."""
    matcher = CodeMatcher()
    if templates_file is None:
        matcher.load_project(ProjectTemplates.builtin(project_id))
        return matcher

    for project in load_projects(templates_file):
        matcher.load_project(project)
    return matcher


def _cmd_match(matcher: CodeMatcher, args: argparse.Namespace) -> int:
    results = matcher.match(args.code, args.project)
    if args.json:
        print(format_matches_json(results, include_fields=args.fields))
    else:
        print(format_results(args.code, results))
    return 0 if results else 1


def _cmd_embed(matcher: CodeMatcher, args: argparse.Namespace) -> int:
    template = matcher.template(args.project, args.template)
    if template is None:
        print(f"Unknown template: {args.template}", file=sys.stderr)
        return 1

    result = template.match(args.code)
    if result is None:
        print(f"Code does not match template {args.template}: {args.code}", file=sys.stderr)
        return 1

    code = result.embed(args.payload)
    if args.json:
        output = format_match(result)
        output["Embedded Code"] = code
        print(json.dumps(output, ensure_ascii=False, indent=2))
    else:
        print(code if code is not None else "Embedding failed")
    return 0 if code is not None else 1


def _cmd_create_instore(matcher: CodeMatcher, args: argparse.Namespace) -> int:
    project_id = None if args.any_project else args.project
    code = matcher.create_instore_ean(args.template_id, args.short_code, args.payload, project_id)
    if args.json:
        print(json.dumps({"Code": code}, ensure_ascii=False, indent=2))
    else:
        print(code if code is not None else "Cannot create in-store EAN")
    return 0 if code is not None else 1


def _cmd_check(args: argparse.Namespace) -> int:
    try:
        template = CodeTemplate.compile(args.template_id, args.template)
    except TemplateGrammarError as exc:
        if args.json:
            print(json.dumps(
                {"valid": False, "error": exc.code.value, "message": str(exc)},
                ensure_ascii=False,
                indent=2,
            ))
        else:
            print(f"Invalid template: {exc}")
        return 1

    if args.json:
        print(json.dumps({
            "valid": True,
            "expected_length": template.expected_length,
            "components": template.describe(),
        }, ensure_ascii=False, indent=2))
    else:
        print(f"Template: {template.template}")
        print(f"Expected Length: {template.expected_length or 'any'}")
        for component in template.components:
            print(f"  {component.describe():<16} length={component.length}")
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    settings = get_settings()

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '--project',
        default=settings.default_project,
        help='Project whose templates are used'
    )
    common.add_argument(
        '--templates',
        type=Path,
        default=settings.templates_file,
        help='Project metadata JSON with codeTemplates and priceOverrideCodes'
    )
    common.add_argument(
        '--json',
        action='store_true',
        help='Output result as JSON'
    )
    common.add_argument(
        '--log-level',
        default=settings.log_level,
        help='Log level (default: %(default)s)'
    )

    parser = argparse.ArgumentParser(
        prog='code_templates',
        description='Match scanned codes against code templates'
    )
    commands = parser.add_subparsers(dest='command', required=True)

    match_cmd = commands.add_parser('match', parents=[common], help='Match a code against all templates')
    match_cmd.add_argument('code', help='Scanned code')
    match_cmd.add_argument('--fields', action='store_true', help='Include all matched fields (JSON only)')

    embed_cmd = commands.add_parser('embed', parents=[common], help='Embed a payload into a matched code')
    embed_cmd.add_argument('code', help='Scanned code')
    embed_cmd.add_argument('payload', type=int, help='Data to embed')
    embed_cmd.add_argument('--template', required=True, help='Template id to match against')

    create_cmd = commands.add_parser('create-instore', parents=[common], help='Build an in-store EAN-13')
    create_cmd.add_argument('template_id', help='Template id')
    create_cmd.add_argument('short_code', help='Code for the template\'s {code} field')
    create_cmd.add_argument('payload', type=int, help='5-digit payload')
    create_cmd.add_argument('--any-project', action='store_true', help='Search the template in all projects')

    check_cmd = commands.add_parser('check', parents=[common], help='Compile a template')
    check_cmd.add_argument('template', help='Template string')
    check_cmd.add_argument('--template-id', default='check', help='Template id')

    args = parser.parse_args(argv)

    configure_logging(args.log_level, settings.log_json)

    if args.command == 'check':
        return _cmd_check(args)

    try:
        matcher = build_matcher(args.project, args.templates)
    except MetadataError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if args.command == 'match':
        return _cmd_match(matcher, args)
    if args.command == 'embed':
        return _cmd_embed(matcher, args)
    return _cmd_create_instore(matcher, args)


if __name__ == '__main__':
    sys.exit(main())
