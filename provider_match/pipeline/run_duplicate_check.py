"""
Batch duplicate check pipeline for ProviderMatch.

Screens every record of a candidate file (e.g. a CSV import) against a
corpus file exported from the record store, and writes one classification
row per candidate with the advisory review routing.
"""

import argparse
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
import pandas as pd

from ..match.entity_matcher import EntityMatcher
from ..match.models import CandidateRecord, ExistingEntity, InvalidInput, MatchType
from ..match.review import route_match
from ..normalize.config import load_matching_config, validate_matching_config
from ..normalize.field_normalizer import clean_value

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    "candidate_index", "full_name", "company_name", "phone", "email",
    "match_type", "match_reason", "similarity", "matched_entity_id", "matched_name",
    "action", "needs_review", "duplicate_of", "error",
]


class DuplicateCheckPipeline:
    """
    Batch orchestrator around the EntityMatcher.

    Loads corpus and candidate tables, screens each candidate, and reports
    how many were blocked, flagged for review or cleared for creation.
    """

    def __init__(self, config_path: str = "config/provider_match.yaml"):
        """
        Initialize pipeline with configuration.

        Args:
            config_path: Path to configuration file

        Raises:
            ValueError: If the configuration fails validation
        """
        self.config_path = config_path
        self.config = load_matching_config(config_path)

        if not validate_matching_config(self.config):
            raise ValueError(f"Invalid configuration: {config_path}")

        self.matcher = EntityMatcher(self.config)

        # Pipeline state
        self.pipeline_start_time = None
        self.stage_times = {}
        self.stage_durations = {}

        logger.info("Initialized DuplicateCheck pipeline")

    def _start_stage_timer(self, stage_name: str):
        """Start timing for a pipeline stage."""
        self.stage_times[stage_name] = time.time()
        logger.info(f"Starting stage: {stage_name}")

    def _end_stage_timer(self, stage_name: str):
        """End timing for a pipeline stage."""
        if stage_name in self.stage_times:
            duration = time.time() - self.stage_times[stage_name]
            self.stage_durations[stage_name] = duration
            logger.info(f"Completed stage: {stage_name} in {duration:.2f} seconds")

    @staticmethod
    def _read_table(input_path: str) -> pd.DataFrame:
        """Read a CSV, JSON array (.json) or JSON-lines (.jsonl) file with every column kept as text."""
        if input_path.endswith(".csv"):
            return pd.read_csv(input_path, dtype=str)
        elif input_path.endswith(".json") or input_path.endswith(".jsonl"):
            return pd.read_json(input_path, lines=input_path.endswith(".jsonl"), dtype=False)
        else:
            raise ValueError(f"Unsupported file format: {input_path}")

    def load_corpus(self, corpus_path: str) -> pd.DataFrame:
        """
        Load the existing entities exported from the record store.

        Args:
            corpus_path: Path to corpus file

        Returns:
            DataFrame with one row per existing entity
        """
        self._start_stage_timer("corpus_loading")

        try:
            df = self._read_table(corpus_path)
            logger.info(f"Loaded {len(df)} existing entities from {corpus_path}")

            self._end_stage_timer("corpus_loading")
            return df

        except Exception as e:
            logger.error(f"Corpus loading failed: {e}")
            raise

    def load_candidates(self, candidates_path: str) -> pd.DataFrame:
        """
        Load the candidate records to screen.

        Args:
            candidates_path: Path to candidate file

        Returns:
            DataFrame with one row per candidate
        """
        self._start_stage_timer("candidate_loading")

        try:
            df = self._read_table(candidates_path)
            logger.info(f"Loaded {len(df)} candidates from {candidates_path}")

            self._end_stage_timer("candidate_loading")
            return df

        except Exception as e:
            logger.error(f"Candidate loading failed: {e}")
            raise

    def build_entities(self, corpus_df: pd.DataFrame) -> List[ExistingEntity]:
        """
        Convert corpus rows into entity snapshots, keeping row order.

        Rows without an id, or with a blank one, are identified by their row index.

        Args:
            corpus_df: Corpus DataFrame

        Returns:
            List of ExistingEntity
        """
        entities = []
        for idx, row in corpus_df.iterrows():
            record = row.to_dict()
            if clean_value(record.get("id")) is None:
                record["id"] = idx
            entities.append(ExistingEntity.from_record(record))

        return entities

    def screen_candidates(self, candidates_df: pd.DataFrame,
                          corpus: List[ExistingEntity]) -> pd.DataFrame:
        """
        Classify every candidate against the corpus.

        A candidate without a name is reported in the error column; the
        rest of the batch is still screened.

        Args:
            candidates_df: Candidate DataFrame
            corpus: Existing entities

        Returns:
            DataFrame with one result row per candidate
        """
        self._start_stage_timer("candidate_screening")

        results = []

        for idx, row in candidates_df.iterrows():
            candidate = CandidateRecord.from_record(row.to_dict())
            result_row: Dict[str, Any] = {
                "candidate_index": idx,
                "full_name": candidate.full_name,
                "company_name": candidate.company_name,
                "phone": candidate.phone,
                "email": candidate.email,
                "match_type": None,
                "match_reason": None,
                "similarity": None,
                "matched_entity_id": None,
                "matched_name": None,
                "error": None,
            }

            try:
                match = self.matcher.find_duplicate(candidate, corpus)
            except InvalidInput as e:
                logger.warning(f"Skipping candidate {idx}: {e}")
                result_row["error"] = str(e)
                result_row.update({"action": None, "needs_review": None, "duplicate_of": None})
                results.append(result_row)
                continue

            if match is not None:
                result_row.update(match.to_dict())
            result_row.update(route_match(match).to_dict())

            results.append(result_row)

        results_df = pd.DataFrame(results, columns=RESULT_COLUMNS)

        logger.info(f"Screened {len(results_df)} candidates against {len(corpus)} entities")

        self._end_stage_timer("candidate_screening")
        return results_df

    def get_match_statistics(self, results_df: pd.DataFrame) -> Dict[str, Any]:
        """
        Calculate match statistics for a screening run.

        Args:
            results_df: Output of screen_candidates

        Returns:
            Dictionary with counts and percentages per match type
        """
        total = len(results_df)
        invalid = int(results_df["error"].notna().sum())
        valid_df = results_df[results_df["error"].isna()]

        match_counts = {
            match_type.value: int((valid_df["match_type"] == match_type.value).sum())
            for match_type in MatchType
        }
        match_counts["none"] = int(valid_df["match_type"].isna().sum())

        percentages = {
            key: (count / total * 100 if total > 0 else 0.0)
            for key, count in match_counts.items()
        }

        return {
            "total_candidates": total,
            "invalid_candidates": invalid,
            "match_counts": match_counts,
            "match_percentages": percentages,
            "flagged_for_review": int(valid_df["needs_review"].eq(True).sum()),
            "blocked": match_counts[MatchType.EXACT.value],
        }

    def run_pipeline(self, corpus_path: str, candidates_path: str,
                     output_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Run the complete duplicate check.

        Args:
            corpus_path: Path to corpus file
            candidates_path: Path to candidate file
            output_path: Directory for the results file (optional)

        Returns:
            Pipeline execution report
        """
        self.pipeline_start_time = time.time()
        logger.info(f"Starting duplicate check of {candidates_path} against {corpus_path}")

        try:
            corpus_df = self.load_corpus(corpus_path)
            corpus = self.build_entities(corpus_df)

            candidates_df = self.load_candidates(candidates_path)

            results_df = self.screen_candidates(candidates_df, corpus)
            statistics = self.get_match_statistics(results_df)

            if output_path:
                self._save_results(results_df, output_path)

            total_duration = time.time() - self.pipeline_start_time
            logger.info(f"Duplicate check completed in {total_duration:.2f} seconds")

            return {
                "pipeline_execution": {
                    "start_time": datetime.fromtimestamp(self.pipeline_start_time),
                    "end_time": datetime.now(),
                    "stage_durations": dict(self.stage_durations),
                    "total_duration": total_duration,
                },
                "corpus_size": len(corpus),
                "match_statistics": statistics,
                "results": results_df,
            }

        except Exception as e:
            logger.error(f"Pipeline failed: {e}")
            raise

    def _save_results(self, results_df: pd.DataFrame, output_path: str):
        """Save screening results to the output directory."""
        output_dir = Path(output_path)
        output_dir.mkdir(parents=True, exist_ok=True)

        pipeline_config = self.config.get("pipeline") or {}
        filename = pipeline_config.get("output_filename") or "duplicate_check_results.csv"
        results_df.to_csv(output_dir / filename, index=False)

        logger.info(f"Results saved to {output_dir / filename}")


def main():
    """Main entry point for the duplicate check pipeline."""
    parser = argparse.ArgumentParser(description="ProviderMatch Duplicate Check")
    parser.add_argument("--corpus", required=True, help="Existing entities file (CSV, JSON or JSON lines)")
    parser.add_argument("--candidates", required=True, help="Candidate records file (CSV, JSON or JSON lines)")
    parser.add_argument("--config", default="config/provider_match.yaml", help="Configuration file path")
    parser.add_argument("--output", help="Output directory path")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    args = parser.parse_args()

    # Ensure log directory exists
    Path("logs").mkdir(exist_ok=True)

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler("logs/provider_match.log")
        ]
    )

    try:
        pipeline = DuplicateCheckPipeline(args.config)
        report = pipeline.run_pipeline(
            corpus_path=args.corpus,
            candidates_path=args.candidates,
            output_path=args.output
        )

        stats = report["match_statistics"]
        counts = stats["match_counts"]

        # Print summary
        print("\n" + "="*50)
        print("DUPLICATE CHECK SUMMARY")
        print("="*50)
        print(f"Existing Entities: {report['corpus_size']:,}")
        print(f"Candidates: {stats['total_candidates']:,}")
        print(f"Exact Duplicates: {counts['exact']:,}")
        print(f"High Confidence: {counts['high']:,}")
        print(f"Uncertain: {counts['uncertain']:,}")
        print(f"No Match: {counts['none']:,}")
        print(f"Invalid: {stats['invalid_candidates']:,}")
        print(f"Total Duration: {report['pipeline_execution']['total_duration']:.2f} seconds")
        print("="*50)

    except Exception as e:
        logger.error(f"Duplicate check failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
