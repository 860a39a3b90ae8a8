#!/usr/bin/env python3
"""
Example script demonstrating listing parsing, document splitting and JSON export.
"""

import sys
from pathlib import Path

# Add the parent directory to the path so we can import standaardwerk
sys.path.insert(0, str(Path(__file__).parent.parent))

from standaardwerk import DocumentParser, ProgramParser, export_programs_to_json, load_syntax_rules

DATA_DIR = Path(__file__).parent / "data"


def main():
    """Parse the sample listing and document shipped with the examples."""
    rules = load_syntax_rules(DATA_DIR / "syntax_rules.yaml")

    listing = (DATA_DIR / "sortentrennung.txt").read_text(encoding="utf-8")
    print(f"📖 Parsing listing: sortentrennung.txt")
    model = ProgramParser(rules).parse(listing)

    print(f"✅ Program {model.name} ({model.function_block_id}), IDB {model.idb_name}")
    for step in model.steps:
        print(f"  - {step.kind.value} {step.number}: {step.description}")
        for group in step.condition_groups:
            texts = [("NOT " if c.negated else "") + c.text for c in group.conditions]
            print(f"      {group.combinator.value}: {', '.join(texts)}")
    for reference in model.references:
        print(f"  → {reference.target_program} steps {reference.target_steps}")
    for issue in model.warnings:
        print(f"  ⚠️ line {issue.line_number}: {issue.message}")

    print(f"\n📖 Parsing document: document.html")
    html = (DATA_DIR / "document.html").read_text(encoding="utf-8")
    result = DocumentParser(rules).parse_html(html)
    for program in result.programs:
        print(f"  - {'/'.join(program.folder_path)}/{program.name} {program.function_block_id}: "
              f"{program.statistics.total_steps} steps")

    output_file = "standaardwerk_example.json"
    export_programs_to_json([model] + result.programs, output_file)
    print(f"\n📤 Exported {1 + len(result.programs)} programs to {output_file}")


if __name__ == "__main__":
    main()
