"""
Integration tests for the batch duplicate check pipeline.
"""

import pytest
import pandas as pd
import tempfile
import sys
from pathlib import Path

# Add repository root to path
sys.path.append(str(Path(__file__).parent.parent))

from provider_match.pipeline.run_duplicate_check import DuplicateCheckPipeline, main


class TestDuplicateCheckPipeline:
    """Integration tests for the complete pipeline."""

    def setup_method(self):
        """Setup test fixtures."""
        # Create temporary directory for test outputs
        self.temp_dir = tempfile.mkdtemp()

        self.corpus_data = pd.DataFrame({
            "id": ["1", "2", "3"],
            "full_name": ["John Smith", "Mary Jones", "Peter Brown"],
            "company_name": ["Acme Realty", "Harbour Plumbing", ""],
            "phone": ["0273213749", "09 555 0101", "021 444 2200"],
            "email": ["john@acme.co.nz", "mary@harbour.co.nz", "peter@brown.co.nz"],
            "category": ["Agent", "Plumber", "Builder"],
        })
        self.corpus_file = Path(self.temp_dir) / "corpus.csv"
        self.corpus_data.to_csv(self.corpus_file, index=False)

        self.candidate_data = pd.DataFrame({
            "full_name": ["John Smith", "Jon Smyth", "Someone Else", "", "Xavier Quintero"],
            "company_name": ["Acme Realty", "", "", "", ""],
            "phone": ["027 321 3749", "", "", "021 000 0000", "09 999 9999"],
            "email": ["", "", "MARY@harbour.co.nz", "", "xq@example.com"],
        })
        self.candidates_file = Path(self.temp_dir) / "candidates.csv"
        self.candidate_data.to_csv(self.candidates_file, index=False)

        self.config_path = Path(self.temp_dir) / "test_config.yaml"
        self.create_test_config()

    def create_test_config(self):
        """Create minimal test configuration."""
        config_content = """
matching:
  thresholds:
    high: 85
    uncertain: 60

blocking:
  enabled: false

pipeline:
  output_filename: results.csv
"""
        with open(self.config_path, 'w') as f:
            f.write(config_content)

    def test_pipeline_initialization(self):
        """Test pipeline initialization."""
        pipeline = DuplicateCheckPipeline(str(self.config_path))

        assert pipeline.config is not None
        assert pipeline.matcher.high_threshold == 85.0
        assert pipeline.matcher.blocker is None

    def test_invalid_config_rejected(self):
        """Test pipeline refuses inconsistent thresholds."""
        bad_config = Path(self.temp_dir) / "bad.yaml"
        bad_config.write_text("matching:\n  thresholds:\n    high: 50\n    uncertain: 70\n")

        with pytest.raises(ValueError):
            DuplicateCheckPipeline(str(bad_config))

    def test_build_entities_keeps_text(self):
        """Test corpus rows keep leading zeros and extra columns."""
        pipeline = DuplicateCheckPipeline(str(self.config_path))
        corpus_df = pipeline.load_corpus(str(self.corpus_file))
        entities = pipeline.build_entities(corpus_df)

        assert [entity.id for entity in entities] == ["1", "2", "3"]
        assert entities[0].phone == "0273213749"
        assert entities[2].company is None
        assert entities[1].attributes["category"] == "Plumber"

    def test_screen_candidates(self):
        """Test per-candidate classification and routing."""
        pipeline = DuplicateCheckPipeline(str(self.config_path))
        corpus = pipeline.build_entities(pipeline.load_corpus(str(self.corpus_file)))
        candidates_df = pipeline.load_candidates(str(self.candidates_file))

        results_df = pipeline.screen_candidates(candidates_df, corpus)
        assert len(results_df) == 5

        exact = results_df.iloc[0]
        assert exact["match_type"] == "exact"
        assert exact["match_reason"] == "Same name and company"
        assert exact["matched_entity_id"] == "1"
        assert exact["action"] == "block"

        uncertain = results_df.iloc[1]
        assert uncertain["match_type"] == "uncertain"
        assert uncertain["similarity"] == pytest.approx(80.0)
        assert uncertain["needs_review"]
        assert uncertain["duplicate_of"] == "1"

        email = results_df.iloc[2]
        assert email["match_type"] == "exact"
        assert email["match_reason"] == "Same email address"
        assert email["matched_entity_id"] == "2"

        invalid = results_df.iloc[3]
        assert invalid["error"] == "Candidate full_name must not be empty"

        clear = results_df.iloc[4]
        assert pd.isna(clear["match_type"])
        assert clear["action"] == "create"

    def test_run_pipeline(self):
        """Test complete pipeline execution."""
        pipeline = DuplicateCheckPipeline(str(self.config_path))
        output_dir = Path(self.temp_dir) / "output"

        report = pipeline.run_pipeline(
            corpus_path=str(self.corpus_file),
            candidates_path=str(self.candidates_file),
            output_path=str(output_dir)
        )

        assert report["corpus_size"] == 3
        assert "candidate_screening" in report["pipeline_execution"]["stage_durations"]

        stats = report["match_statistics"]
        assert stats["total_candidates"] == 5
        assert stats["invalid_candidates"] == 1
        assert stats["match_counts"] == {"exact": 2, "high": 0, "uncertain": 1, "none": 1}
        assert stats["flagged_for_review"] == 1
        assert stats["blocked"] == 2
        assert stats["match_percentages"]["exact"] == pytest.approx(40.0)

        results_file = output_dir / "results.csv"
        assert results_file.exists()
        saved = pd.read_csv(results_file)
        assert len(saved) == 5

    def test_json_lines_input(self):
        """Test JSON lines corpus loading."""
        pipeline = DuplicateCheckPipeline(str(self.config_path))
        json_file = Path(self.temp_dir) / "corpus.jsonl"
        self.corpus_data.to_json(json_file, orient="records", lines=True)

        entities = pipeline.build_entities(pipeline.load_corpus(str(json_file)))
        assert entities[0].name == "John Smith"
        assert entities[0].phone == "0273213749"

    def test_json_array_input(self):
        """Test plain JSON array corpus loading."""
        pipeline = DuplicateCheckPipeline(str(self.config_path))
        json_file = Path(self.temp_dir) / "corpus.json"
        self.corpus_data.to_json(json_file, orient="records")

        entities = pipeline.build_entities(pipeline.load_corpus(str(json_file)))
        assert len(entities) == 3
        assert entities[1].name == "Mary Jones"
        assert entities[0].phone == "0273213749"

    def test_blank_id_uses_row_index(self):
        """Test rows with a blank id fall back to the row index."""
        pipeline = DuplicateCheckPipeline(str(self.config_path))
        corpus_data = self.corpus_data.copy()
        corpus_data.loc[1, "id"] = ""
        corpus_file = Path(self.temp_dir) / "blank_id.csv"
        corpus_data.to_csv(corpus_file, index=False)

        entities = pipeline.build_entities(pipeline.load_corpus(str(corpus_file)))
        assert [entity.id for entity in entities] == ["1", 1, "3"]

    def test_main_writes_results(self, monkeypatch):
        """Test the command line entry point end to end."""
        output_dir = Path(self.temp_dir) / "cli_output"
        monkeypatch.chdir(self.temp_dir)
        monkeypatch.setattr(sys, "argv", [
            "provider-match",
            "--corpus", str(self.corpus_file),
            "--candidates", str(self.candidates_file),
            "--config", str(self.config_path),
            "--output", str(output_dir),
        ])

        main()

        results_file = output_dir / "results.csv"
        assert results_file.exists()
        assert len(pd.read_csv(results_file)) == 5
        assert (Path(self.temp_dir) / "logs").is_dir()

    def test_main_exits_on_failure(self, monkeypatch):
        """Test the command line exits with status 1 when the run fails."""
        monkeypatch.chdir(self.temp_dir)
        monkeypatch.setattr(sys, "argv", [
            "provider-match",
            "--corpus", str(Path(self.temp_dir) / "missing.csv"),
            "--candidates", str(self.candidates_file),
            "--config", str(self.config_path),
        ])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1

    def test_unsupported_format(self):
        """Test unsupported input formats fail loudly."""
        pipeline = DuplicateCheckPipeline(str(self.config_path))

        with pytest.raises(ValueError):
            pipeline.load_corpus(str(Path(self.temp_dir) / "corpus.xlsx"))


if __name__ == "__main__":
    pytest.main([__file__])
