#!/usr/bin/env python3
"""
Command line interface for standaardwerk.

    standaardwerk parse -i listing.txt -o model.json
    standaardwerk document -i document.html -o programs.json
"""

import sys
import json
import logging
from pathlib import Path
from typing import Optional

import click

from .document import DocumentParser, blocks_from_html, blocks_from_records
from .export import ALL_COMPONENTS, export_programs_to_json
from .parser import ProgramParser
from .syntax_rules import DEFAULT_SYNTAX_RULES, SyntaxRules, load_syntax_rules


def _load_rules(rules_file: Optional[str]) -> SyntaxRules:
    if rules_file is None:
        return DEFAULT_SYNTAX_RULES
    click.echo(f"📖 Loading syntax rules: {rules_file}")
    return load_syntax_rules(rules_file)


def _fail(e: Exception, verbose: bool) -> None:
    click.echo(f"❌ Error: {e}", err=True)
    if verbose:
        import traceback
        traceback.print_exc()
    sys.exit(1)


@click.group()
def main():
    """Parse step-program listings into structured program models."""


@main.command()
@click.option('--input', '-i', 'input_file', required=True, help='Input listing text file')
@click.option('--output', '-o', 'output_file', required=True, help='Output JSON file')
@click.option('--rules', '-r', 'rules_file', help='YAML file with syntax rule overrides')
@click.option('--name', 'program_name', help='Program name')
@click.option('--fb', 'function_block', help='Function block id, e.g. FB12')
@click.option('--include', multiple=True, type=click.Choice(ALL_COMPONENTS),
              help='Components to export (default: all)')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
def parse(input_file: str, output_file: str, rules_file: Optional[str], program_name: Optional[str],
          function_block: Optional[str], include: tuple, verbose: bool):
    """Parse a single program listing and write its model as JSON."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        rules = _load_rules(rules_file)
        text = Path(input_file).read_text(encoding="utf-8")

        click.echo(f"📖 Parsing listing: {input_file}")
        model = ProgramParser(rules).parse(text, program_name=program_name, function_block=function_block)
        export_programs_to_json([model], output_file, include=list(include) or None, source=input_file)

        stats = model.statistics
        click.echo(f"✅ Parsed '{model.name or '<unnamed>'}' to {output_file}")
        click.echo(f"📊 Summary:")
        click.echo(f"  - Steps: {stats.total_steps}")
        click.echo(f"  - Conditions: {stats.total_conditions}")
        click.echo(f"  - Variables: {stats.total_variables}")
        click.echo(f"  - References: {stats.external_references}")
        click.echo(f"  - Complexity: {stats.complexity_score}")

        for issue in model.errors:
            click.echo(f"[ERROR] line {issue.line_number}: {issue.message}", err=True)
        for issue in model.warnings:
            click.echo(f"[WARNING] line {issue.line_number}: {issue.message}", err=True)

    except Exception as e:
        _fail(e, verbose)


@main.command()
@click.option('--input', '-i', 'input_file', required=True, help='Input document (.html or JSON block list)')
@click.option('--output', '-o', 'output_file', required=True, help='Output JSON file')
@click.option('--rules', '-r', 'rules_file', help='YAML file with syntax rule overrides')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
def document(input_file: str, output_file: str, rules_file: Optional[str], verbose: bool):
    """Split a document into programs, parse each and write them as JSON."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        rules = _load_rules(rules_file)
        content = Path(input_file).read_text(encoding="utf-8")

        if Path(input_file).suffix.lower() == ".json":
            blocks = blocks_from_records(json.loads(content))
        else:
            blocks = blocks_from_html(content)

        click.echo(f"📖 Parsing document: {input_file} ({len(blocks)} blocks)")
        result = DocumentParser(rules).parse_blocks(blocks)
        export_programs_to_json(result.programs, output_file, source=input_file)

        click.echo(f"✅ Parsed {result.statistics.total_programs} programs to {output_file}")
        click.echo(f"📊 Summary:")
        for key, value in result.statistics.to_dict().items():
            click.echo(f"  - {key.replace('_', ' ').capitalize()}: {value}")

        for message in result.errors:
            click.echo(f"[ERROR] {message}", err=True)
        for message in result.warnings:
            click.echo(f"[WARNING] {message}", err=True)
        if verbose:
            for model in result.programs:
                for issue in model.warnings:
                    click.echo(f"[WARNING] {model.name} line {issue.line_number}: {issue.message}", err=True)

    except Exception as e:
        _fail(e, verbose)


if __name__ == '__main__':
    main()
