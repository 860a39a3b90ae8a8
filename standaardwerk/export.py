"""
Export parsed program models to structured JSON files.
"""

import json
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .models import ProgramModel

logger = logging.getLogger(__name__)


class ExportComponent(Enum):
    """Components of a program that can be exported."""
    STEPS = "steps"
    VARIABLES = "variables"
    REFERENCES = "references"
    COMMENTS = "comments"
    STATISTICS = "statistics"
    ISSUES = "issues"


ALL_COMPONENTS = [component.value for component in ExportComponent]

_COMPONENT_KEYS = {
    ExportComponent.STEPS: ("steps",),
    ExportComponent.VARIABLES: ("variables", "timers", "markers", "faults"),
    ExportComponent.REFERENCES: ("references",),
    ExportComponent.COMMENTS: ("comments",),
    ExportComponent.STATISTICS: ("statistics",),
    ExportComponent.ISSUES: ("errors", "warnings"),
}

_IDENTITY_KEYS = ("name", "function_block_id", "idb_name", "program_type", "folder_path")


def _components(include: Optional[List[str]]) -> List[ExportComponent]:
    components = []
    for component in include if include is not None else ALL_COMPONENTS:
        try:
            components.append(ExportComponent(component))
        except ValueError:
            logger.warning(f"Unknown export component: {component}")
    return components


def program_to_dict(model: ProgramModel, include: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    Convert a program model to plain JSON-safe data.

    Args:
        model: Parsed program
        include: Components to include, all of them by default

    Returns:
        Dictionary with the program identity and the selected components
    """
    full = model.to_dict()
    data = {key: full[key] for key in _IDENTITY_KEYS}
    for component in _components(include):
        for key in _COMPONENT_KEYS[component]:
            data[key] = full[key]
    return data


def export_programs_to_json(
    models: List[ProgramModel],
    output_path: Union[str, Path],
    include: Optional[List[str]] = None,
    pretty_print: bool = True,
    source: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Export program models to a JSON file.

    Args:
        models: Programs to export
        output_path: Path to the output JSON file
        include: Components to include (steps, variables, references, ...)
        pretty_print: Whether to format JSON with indentation
        source: Input file the programs were parsed from

    Returns:
        Dictionary containing the exported data
    """
    export_data = {
        "metadata": {
            "export_time": datetime.now().isoformat(),
            "source_file": source,
            "exported_components": [c.value for c in _components(include)],
            "total_programs": len(models),
            "total_steps": sum(m.statistics.total_steps for m in models),
            "total_warnings": sum(len(m.warnings) for m in models),
            "total_errors": sum(len(m.errors) for m in models),
        },
        "programs": [program_to_dict(model, include) for model in models],
    }

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        if pretty_print:
            json.dump(export_data, f, indent=2, default=str, ensure_ascii=False)
        else:
            json.dump(export_data, f, default=str, ensure_ascii=False)

    logger.info(f"Exported {len(models)} programs to {output_path}")
    return export_data
