"""
run_pipeline.py — Run the accuracy pipeline from the command line.

Modes
-----
  analyze    (default) Run one match through the pipeline and print the
             result JSON followed by the LLM context block.  Reads a
             PipelineInput JSON file, or uses a built-in sample match.
  evaluate   Score a JSON list of resolved predictions
             ([{"predicted": 0.62, "actual": 1}, ...]) and print the
             calibration report.

Usage
-----
  python scripts/run_pipeline.py                      # built-in sample
  python scripts/run_pipeline.py match.json           # your own match
  python scripts/run_pipeline.py match.json --sport basketball
  python scripts/run_pipeline.py --evaluate history.json
  python scripts/run_pipeline.py --verbose            # DEBUG logging
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure the project root (one level up from scripts/) is on sys.path so that
# `from accuracy_core.xxx import ...` resolves when the script is run directly.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

SAMPLE_MATCH = {
    "matchId": "sample-arsenal-chelsea",
    "sport": "soccer",
    "league": "Premier League",
    "homeTeam": "Arsenal",
    "awayTeam": "Chelsea",
    "homeStats": {"played": 15, "wins": 10, "draws": 3, "losses": 2,
                  "scored": 28, "conceded": 12},
    "awayStats": {"played": 15, "wins": 8, "draws": 4, "losses": 3,
                  "scored": 22, "conceded": 15},
    "homeForm": "WWDWW",
    "awayForm": "WLDWL",
    "h2h": {"total": 10, "homeWins": 4, "awayWins": 3, "draws": 3},
    "odds": [
        {"bookmaker": "Bet365", "homeOdds": 1.85, "awayOdds": 4.20, "drawOdds": 3.60},
        {"bookmaker": "Unibet", "homeOdds": 1.90, "awayOdds": 4.00, "drawOdds": 3.50},
        {"bookmaker": "WilliamHill", "homeOdds": 1.87, "awayOdds": 4.10, "drawOdds": 3.55},
    ],
}


def _load_json(path: str):
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def analyze(args) -> int:
    from accuracy_core.errors import ValidationError
    from accuracy_core.schemas import PipelineInput
    from accuracy_core.services.llm_format import format_for_llm
    from accuracy_core.services.pipeline import run_accuracy_pipeline
    from accuracy_core.services.pipeline_config import PipelineConfig

    payload = _load_json(args.input) if args.input else SAMPLE_MATCH
    try:
        data = PipelineInput.model_validate(payload)
        sport = args.sport or data.sport
        config = PipelineConfig.from_env(PipelineConfig.for_sport(sport))
        if args.neutral:
            config = config.neutral_site()
        result = run_accuracy_pipeline(data, config)
    except (ValidationError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    print(result.model_dump_json(by_alias=True, indent=2))
    print()
    print(format_for_llm(result, data.home_team or "Home", data.away_team or "Away"))
    return 0


def evaluate(args) -> int:
    from accuracy_core.core.calibration_metrics import evaluate_predictions, is_well_calibrated
    from accuracy_core.errors import ValidationError

    try:
        report = evaluate_predictions(_load_json(args.evaluate), n_bins=args.bins)
    except (ValidationError, ValueError, KeyError, TypeError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    print(report.model_dump_json(by_alias=True, indent=2))
    verdict = is_well_calibrated(report)
    print(f"\nWell calibrated: {'n/a' if verdict is None else verdict}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Run the accuracy-core calibration pipeline."
    )
    parser.add_argument(
        "input",
        nargs="?",
        help="PipelineInput JSON file.  Omit to run the built-in sample match.",
    )
    parser.add_argument(
        "--sport",
        help="Override the sport used to pick the configuration (soccer, basketball, nfl …).",
    )
    parser.add_argument(
        "--neutral",
        action="store_true",
        help="Neutral venue: drop the home-advantage term.",
    )
    parser.add_argument(
        "--evaluate",
        metavar="FILE",
        help="Score a JSON list of resolved predictions instead of running a match.",
    )
    parser.add_argument(
        "--bins",
        type=int,
        default=10,
        help="Reliability-table bins for --evaluate (default: 10).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable DEBUG logging.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    if args.evaluate:
        return evaluate(args)
    return analyze(args)


if __name__ == "__main__":
    sys.exit(main())
