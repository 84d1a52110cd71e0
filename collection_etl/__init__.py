# ==============================================
# Collection ETL
# ==============================================
#
# Package Structure:
#
# collection_etl/
# ├── normalization/    # Per-record transformation (rules + schemas)
# ├── storage/          # MongoDB client, cursor source, bulk writer
# ├── streaming/        # Bounded mapper, batcher, metrics, reporting
# ├── pipeline.py       # EtlPipeline orchestrator
# ├── config.py         # Configuration management
# ├── errors.py         # Exception hierarchy
# ├── log.py            # Logging helpers
# └── cli.py            # Command line entry point
#
# ==============================================

__version__ = "0.1.0"
