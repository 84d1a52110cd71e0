# ==============================================
# CLI: Command Line Entry Point
# ==============================================
#
# PURPOSE:
#   Run one collection-to-collection transfer from the shell.
#
# USAGE:
# ------
#   python -m collection_etl <mongo-uri> <src-db.coll> <tgt-db.coll>
#   python -m collection_etl "mongodb://localhost:27017" etl.src etl.tgt \
#       --schema member --batch-size 5000 --write-concurrency 4
#
#   The URI may be "-" to take MONGO_URI from the environment / .env.
#
# EXIT STATUS:
# ------------
#   0  transfer completed
#   2  bad arguments or configuration (nothing was touched)
#   other failures propagate with a traceback
#
# ==============================================

import argparse
import sys
from dataclasses import replace
from typing import List, Optional

from collection_etl import __version__
from collection_etl.config import Namespace, get_config
from collection_etl.errors import ConfigurationError
from collection_etl.log import configure_logging
from collection_etl.normalization.record_transformer import RecordTransformer
from collection_etl.normalization.schemas import SCHEMAS, get_schema
from collection_etl.pipeline import transfer
from collection_etl.storage.mongo_client import MongoClient
from collection_etl.streaming.reporter import ConsoleReporter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="collection-etl",
        description="Copy a MongoDB collection into another, normalizing each document.",
    )
    parser.add_argument("mongo_uri", help='connection string, or "-" to use MONGO_URI')
    parser.add_argument("source", help="source namespace (database.collection)")
    parser.add_argument("target", help="target namespace (database.collection)")
    parser.add_argument("--schema", default="group", choices=sorted(SCHEMAS),
                        help="field mapping to apply (default: group)")
    parser.add_argument("--batch-size", type=int, help="documents per bulk insert")
    parser.add_argument("--read-ahead", type=int, help="cursor batch size (default: batch size)")
    parser.add_argument("--transform-concurrency", type=int, help="transforms in flight")
    parser.add_argument("--write-concurrency", type=int, help="bulk inserts in flight")
    parser.add_argument("--keep-target", action="store_true",
                        help="do not drop the target collection first")
    parser.add_argument("--continue-on-write-error", action="store_true",
                        help="count failed batches instead of aborting the run")
    parser.add_argument("--progress-every", type=int, help="print progress every N batches")
    parser.add_argument("--log-level", help="logging level (default: ETL_LOG_LEVEL or INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_settings(args: argparse.Namespace):
    """
    Merge CLI arguments over the environment configuration.

    Returns:
        (uri, source Namespace, target Namespace, PipelineConfig, log level)

    Raises:
        ConfigurationError: On malformed namespaces or settings
    """
    config = get_config()

    uri = config.mongo.uri if args.mongo_uri == "-" else args.mongo_uri
    source = Namespace.parse(args.source)
    target = Namespace.parse(args.target)
    if source == target:
        raise ConfigurationError("source and target namespaces must differ")

    overrides = {}
    if args.batch_size is not None:
        overrides["batch_size"] = args.batch_size
        if args.read_ahead is None:
            overrides["read_ahead"] = args.batch_size
    if args.read_ahead is not None:
        overrides["read_ahead"] = args.read_ahead
    if args.transform_concurrency is not None:
        overrides["transform_concurrency"] = args.transform_concurrency
    if args.write_concurrency is not None:
        overrides["write_concurrency"] = args.write_concurrency
    if args.progress_every is not None:
        overrides["progress_every"] = args.progress_every
    if args.keep_target:
        overrides["drop_target"] = False
    if args.continue_on_write_error:
        overrides["abort_on_write_error"] = False

    pipeline_config = replace(config.pipeline, **overrides).validate()
    return uri, source, target, pipeline_config, args.log_level or config.log_level


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        uri, source, target, pipeline_config, log_level = resolve_settings(args)
        transformer = RecordTransformer(get_schema(args.schema))
    except ConfigurationError as e:
        parser.error(str(e))

    configure_logging(level=log_level)
    reporter = ConsoleReporter(progress_every=pipeline_config.progress_every)

    with MongoClient(uri) as mongo:
        transfer(mongo, source, target, transformer, config=pipeline_config, reporter=reporter)
    return 0


if __name__ == "__main__":
    sys.exit(main())
