"""
Tests for JSON export.
"""

import json
import tempfile
from pathlib import Path

from standaardwerk.export import ALL_COMPONENTS, ExportComponent, export_programs_to_json, program_to_dict
from standaardwerk.parser import ProgramParser

LISTING = """\
Band FB3
Freigabe = 1
RUHE: Warten
SCHRITT 1: Start
    Motor.Running (Einlauf SCHRITT 2)
    Zaehler >= 10
"""


class TestExport:
    """Test exporting program models."""

    def setup_method(self):
        """Set up test fixtures."""
        self.model = ProgramParser().parse(LISTING)

    def test_program_to_dict_all_components(self):
        data = program_to_dict(self.model)
        assert data["name"] == "Band"
        assert data["function_block_id"] == "FB3"
        assert data["steps"][1]["kind"] == "STEP"
        condition = data["steps"][1]["condition_groups"][0]["conditions"][1]
        assert condition["comparison"] == {"operand": "Zaehler", "operator": ">=", "value": "10"}
        assert data["variables"][0]["name"] == "Freigabe"
        assert data["statistics"]["total_steps"] == 2
        assert set(data) >= {"errors", "warnings", "references", "comments"}

    def test_program_to_dict_selected_components(self):
        """Test only the requested components are included."""
        data = program_to_dict(self.model, include=["steps", "bogus"])
        assert "steps" in data
        assert "variables" not in data
        assert "statistics" not in data
        assert data["idb_name"] is None

    def test_all_components_listed(self):
        assert ALL_COMPONENTS == [c.value for c in ExportComponent]

    def test_export_to_json(self):
        """Test the file is written, creating parent directories."""
        with tempfile.TemporaryDirectory() as tmp:
            output = Path(tmp) / "nested" / "programs.json"
            exported = export_programs_to_json([self.model], output, source="band.txt")

            assert output.exists()
            data = json.loads(output.read_text(encoding="utf-8"))

        assert data == json.loads(json.dumps(exported, default=str))
        assert data["metadata"]["total_programs"] == 1
        assert data["metadata"]["total_steps"] == 2
        assert data["metadata"]["source_file"] == "band.txt"
        assert data["metadata"]["exported_components"] == ALL_COMPONENTS
        assert data["programs"][0]["references"][0]["target_program"] == "Einlauf"

    def test_export_compact(self, tmp_path):
        output = tmp_path / "programs.json"
        export_programs_to_json([self.model], output, pretty_print=False)
        assert "\n" not in output.read_text(encoding="utf-8")
