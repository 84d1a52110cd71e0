# ==============================================
# MongoClient
# ==============================================
#
# PURPOSE:
#   Manages the MongoDB connection and hands out collection
#   handles by namespace.
#
# WHY THIS CLASS EXISTS:
#   The pipeline only needs four things from a collection: drop
#   it, scan it with a cursor, estimate its size, and
#   insert documents unordered. Everything about connecting lives
#   here so the pipeline can be driven by plain collection handles
#   (or test doubles).
#
#   Identifiers are written as UUIDs; the client is always created
#   with the "standard" UUID representation (BSON binary subtype 4,
#   most-significant byte first).
#
# CLASS: MongoClient
# ------------------
#   Stateful, holds the connection.
#
#   Constructor:
#   ------------
#   - __init__(uri)
#
#   Methods:
#   --------
#   - connect() -> None
#   - disconnect() -> None
#   - collection(namespace: Namespace) -> pymongo Collection
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with MongoClient(uri) as db:` usage.
#
# ==============================================

from pymongo import MongoClient as PyMongoClient
from pymongo.errors import ConnectionFailure, OperationFailure

from collection_etl.config import Namespace
from collection_etl.errors import PipelineStateError
from collection_etl.log import get_logger

logger = get_logger(__name__)

UUID_REPRESENTATION = "standard"


class MongoClient:
    def __init__(self, uri: str, **client_options):
        # Store connection params. Don't connect yet.
        self.uri = uri
        self.client_options = client_options
        self.client = None

    def connect(self) -> None:
        """
        Establish the connection and verify it with a ping.

        Raises:
            ConnectionFailure: If the server cannot be reached
            OperationFailure: If authentication fails
        """
        options = dict(self.client_options)
        options["uuidRepresentation"] = UUID_REPRESENTATION
        try:
            self.client = PyMongoClient(self.uri, **options)
            self.client.admin.command("ping")
            logger.info("Connected to MongoDB.")
        except ConnectionFailure as e:
            logger.error("Could not connect to MongoDB: %s", e)
            self.disconnect()
            raise
        except OperationFailure as e:
            logger.error("Authentication failed: %s", e)
            self.disconnect()
            raise

    def disconnect(self) -> None:
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB.")
            self.client = None

    def collection(self, namespace: Namespace):
        """Return the collection handle for a namespace."""
        if not self.client:
            raise PipelineStateError("Not connected to MongoDB.")
        return self.client[namespace.database][namespace.collection]

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
