"""Main entry point for the vehicle price model comparison.

Provides CLI interface for running the comparison, evaluation and prediction.

Usage:
    # Compare model families with a config file
    python -m vehicle_pricing.main train --config pipeline_config.yml

    # Overrides
    python -m vehicle_pricing.main train --config pipeline_config.yml --folds 5 --repeats 1 --n-jobs 4

    # Re-evaluate saved artifacts on labelled listings
    python -m vehicle_pricing.main evaluate --artifacts-dir artifacts --data listings.csv

    # Predict prices for a file of listings
    python -m vehicle_pricing.main predict --artifacts-dir artifacts --data new_listings.csv
"""

import argparse
from dataclasses import replace
import logging
from pathlib import Path
import sys

import polars as pl

from vehicle_pricing.features.dataset import load_listings, prepare_listings, read_table
from vehicle_pricing.pipelines.config import load_config, get_default_config, PipelineConfig
from vehicle_pricing.pipelines.evaluation import EvaluationPipeline
from vehicle_pricing.pipelines.prediction import create_prediction_pipeline
from vehicle_pricing.pipelines.training import ModelComparisonPipeline, plans_from_config


def _load_pipeline_config(config_path: str | None) -> PipelineConfig:
    """Load pipeline config from file or return defaults."""
    if config_path:
        return load_config(config_path)
    return get_default_config()


def train(args: argparse.Namespace) -> None:
    """Run the model comparison pipeline."""
    config = _load_pipeline_config(args.config)

    data_path = Path(args.data) if args.data else config.paths.data_path
    output_dir = Path(args.output_dir) if args.output_dir else config.paths.output_dir

    print(f"Loading listings from {data_path}")
    listings = load_listings(data_path)
    print(f"Listings: {listings.shape}")

    # Use CLI args if provided, otherwise fall back to config
    training_config = config.to_domain_training_config()
    overrides = {
        "n_folds": args.folds,
        "n_repeats": args.repeats,
        "n_jobs": args.n_jobs,
        "seed": args.seed,
        "selection_metric": args.metric,
    }
    training_config = replace(
        training_config, **{k: v for k, v in overrides.items() if v is not None}
    )

    families = config.families
    if args.families:
        unknown = set(args.families) - set(families)
        if unknown:
            print(f"Error: unknown families {sorted(unknown)}; configured: {sorted(families)}")
            sys.exit(1)
        families = {
            name: cfg.model_copy(update={"enabled": name in args.families})
            for name, cfg in families.items()
        }

    print("\nStarting model comparison...")
    print(
        f"Resampling: {training_config.n_folds} folds x {training_config.n_repeats} repeats, "
        f"metric={training_config.selection_metric}, n_jobs={training_config.n_jobs}"
    )
    print(f"Families: {[name for name, cfg in families.items() if cfg.enabled]}")

    pipeline = ModelComparisonPipeline(
        plans=plans_from_config(families, seed=training_config.seed),
        training_config=training_config,
        output_dir=output_dir,
    )
    result = pipeline.run(listings)

    print("\n" + "=" * 60)
    print("COMPARISON COMPLETE")
    print("=" * 60)
    if result.n_excluded:
        print(f"Excluded {result.n_excluded} listing(s) with zero mileage")
    print(result.summary())
    print(f"\nArtifacts saved to: {output_dir}")


def evaluate(args: argparse.Namespace) -> None:
    """Evaluate saved artifacts on labelled listings."""
    config = _load_pipeline_config(args.config)

    artifacts_dir = Path(args.artifacts_dir) if args.artifacts_dir else config.paths.output_dir
    data_path = Path(args.data) if args.data else config.paths.data_path

    print(f"Loading artifacts from {artifacts_dir}")
    pipeline = EvaluationPipeline(artifacts_dir=artifacts_dir).load()

    listings = load_listings(data_path)
    listings = listings.filter(pl.col("mileage") > 0)

    report = pipeline.generate_report(listings)
    print(report)


def predict(args: argparse.Namespace) -> None:
    """Predict prices for a file of listings."""
    config = _load_pipeline_config(args.config)

    artifacts_dir = Path(args.artifacts_dir) if args.artifacts_dir else config.paths.output_dir

    print(f"Loading model from {artifacts_dir}")
    pipeline = create_prediction_pipeline(artifacts_dir)

    listings = prepare_listings(read_table(args.data), require_target=False)
    try:
        prices = pipeline.predict_frame(listings)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    predictions = listings.with_columns(pl.Series("predicted_price", prices))

    print("\n" + "=" * 60)
    print(f"PREDICTIONS ({pipeline.model_version})")
    print("=" * 60)
    if args.output:
        predictions.write_csv(args.output)
        print(f"Wrote {predictions.height} predictions to {args.output}")
    else:
        print(predictions.select(["manufacturer", "model_name", "registration_year", "predicted_price"]))


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Used Vehicle Price Model Comparison")
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Training subcommand
    train_parser = subparsers.add_parser("train", help="Tune and compare model families")
    train_parser.add_argument("--config", type=str, help="Path to YAML config file")
    train_parser.add_argument("--data", type=str, help="Path to listings file (overrides config)")
    train_parser.add_argument("--output-dir", type=str, help="Path to save artifacts (overrides config)")
    train_parser.add_argument("--folds", type=int, help="Number of CV folds (overrides config)")
    train_parser.add_argument("--repeats", type=int, help="Number of CV repeats (overrides config)")
    train_parser.add_argument("--n-jobs", type=int, help="Parallel workers (overrides config)")
    train_parser.add_argument("--seed", type=int, help="Random seed (overrides config)")
    train_parser.add_argument("--metric", choices=["rmse", "r2"], help="Selection metric (overrides config)")
    train_parser.add_argument("--families", nargs="+", help="Only search these families")

    # Evaluation subcommand
    eval_parser = subparsers.add_parser("evaluate", help="Evaluate saved artifacts")
    eval_parser.add_argument("--config", type=str, help="Path to YAML config file")
    eval_parser.add_argument("--artifacts-dir", type=str, help="Path to artifacts (overrides config)")
    eval_parser.add_argument("--data", type=str, help="Labelled listings file (overrides config)")

    # Prediction subcommand
    predict_parser = subparsers.add_parser("predict", help="Predict listing prices")
    predict_parser.add_argument("--config", type=str, help="Path to YAML config file")
    predict_parser.add_argument("--artifacts-dir", type=str, help="Path to artifacts (overrides config)")
    predict_parser.add_argument("--data", type=str, required=True, help="Listings file to price")
    predict_parser.add_argument("--output", type=str, help="Write predictions to this CSV")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "train":
        train(args)
    elif args.command == "evaluate":
        evaluate(args)
    elif args.command == "predict":
        predict(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
