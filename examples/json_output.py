"""
Demo: Clean JSON Output

Shows the JSON output for typical retail codes matched against the
built-in templates, plus embedding and in-store EAN creation.
"""

from code_templates import CodeMatcher, ProjectTemplates, match_code_to_dict, match_code_to_json


PROJECT = "demo"


def demo_json_output():
    """Demonstrate clean JSON output for typical codes."""

    matcher = CodeMatcher()
    matcher.load_project(ProjectTemplates.builtin(PROJECT))
    matcher.add_template(PROJECT, "scale", "01{code:14}15{_:6}3103{embed:3.3}10{_:*}")

    print("=" * 80)
    print("  CLEAN JSON OUTPUT DEMO")
    print("=" * 80)

    test_cases = [
        ("Case A: In-store EAN-13 with internal checksum", "2957783000742"),
        ("Case B: German print media", "4029764001807"),
        ("Case C: GS1-128 GTIN", "0128000017120605"),
        ("Case D: Weighing scale label", "019011531031000815060403310302028810030406"),
        ("Case E: Plain EAN-13", "0885580466732"),
    ]

    for title, code in test_cases:
        print(f"\n{title}")
        print("-" * 80)
        print(f"Input: {code}")
        print("\nJSON Output:")
        print(match_code_to_json(matcher, code, PROJECT))

    print("\n\n" + "=" * 80)
    print("  DICTIONARY FORMAT EXAMPLE")
    print("=" * 80)

    code = "2957783000742"
    for entry in match_code_to_dict(matcher, code, PROJECT):
        print(f"\n{entry['Template']}:")
        for key, value in entry.items():
            print(f"  {key:25s}: {value}")

    print("\n\n" + "=" * 80)
    print("  EMBEDDING EXAMPLE")
    print("=" * 80)

    result = matcher.template(PROJECT, "ean13_instore_chk").match(code)
    for payload in (1, 523, 12345):
        print(f"  {code} + {payload:>5} -> {result.embed(payload)}")

    print("\n\n" + "=" * 80)
    print("  IN-STORE EAN CREATION")
    print("=" * 80)

    for template_id in ("ean13_instore", "ean13_instore_chk"):
        created = matcher.create_instore_ean(template_id, "11111", 12345, PROJECT)
        print(f"  {template_id:20s}: {created}")


if __name__ == "__main__":
    demo_json_output()
