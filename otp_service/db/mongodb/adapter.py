"""MongoDB adapter for OTP records."""

import contextlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from otp_service.db.protocols import PydanticOTPProtocol
from otp_service.exceptions import PersistenceError
from otp_service.types import OTPStatus

try:
    from bson import ObjectId  # type: ignore[import-untyped]
    from motor.motor_asyncio import AsyncIOMotorDatabase  # type: ignore[import-untyped]
    from pymongo import ReturnDocument  # type: ignore[import-untyped]
    from pymongo.errors import PyMongoError  # type: ignore[import-untyped]
except ImportError as e:
    raise ImportError(
        "MongoDB support requires motor and pymongo. "
        "Install with: pip install otp-service[mongodb]"
    ) from e


class MongoDBAdapter[OTPType: PydanticOTPProtocol]:
    """
    MongoDB implementation of the OTPDatabase protocol.

    Wraps a Motor AsyncIOMotorDatabase and stores OTP records as documents in
    a single collection. Store failures are re-raised as ``PersistenceError``.

    Example:
        ```python
        from motor.motor_asyncio import AsyncIOMotorClient

        async def get_otp_db() -> MongoDBAdapter[OTP]:
            client = AsyncIOMotorClient("mongodb://localhost:27017")
            return MongoDBAdapter(
                database=client.myapp,
                otp_collection_name="otp",
                otp_model_class=OTP,
            )
        ```
    """

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        otp_collection_name: str,
        otp_model_class: type[OTPType],
    ) -> None:
        """
        Initialize the MongoDB adapter.

        Args:
            database: Motor AsyncIOMotorDatabase instance
            otp_collection_name: Name of the OTP collection
            otp_model_class: Pydantic model class for OTP documents
        """
        self.database = database
        self.otp_collection = database[otp_collection_name]
        self.otp_model_class = otp_model_class

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except PyMongoError as e:
            raise PersistenceError(
                f"Failed to {operation}", service="mongodb", details=str(e)
            ) from e

    @staticmethod
    def _object_id(otp_id: Any) -> Any:  # noqa: ANN401
        """Convert a string id to ObjectId when it is a valid one."""
        if isinstance(otp_id, str):
            with contextlib.suppress(Exception):
                return ObjectId(otp_id)
        return otp_id

    def _deserialize(self, doc: dict[str, Any] | None) -> OTPType | None:
        """
        Convert a MongoDB document to a Pydantic OTP model.

        Args:
            doc: MongoDB document dictionary

        Returns:
            OTP model instance or None if doc is None
        """
        if doc is None:
            return None

        if "_id" in doc and isinstance(doc["_id"], ObjectId):
            doc["_id"] = str(doc["_id"])

        # MongoDB returns naive datetimes unless the client is tz_aware
        created_on = doc.get("created_on")
        if isinstance(created_on, datetime) and created_on.tzinfo is None:
            doc["created_on"] = created_on.replace(tzinfo=UTC)

        try:
            return self.otp_model_class.model_validate(doc)
        except ValidationError as e:
            raise PersistenceError(
                "Malformed OTP document", service="mongodb", details=str(e)
            ) from e

    def _serialize(self, otp: OTPType) -> dict[str, Any]:
        """
        Convert a Pydantic OTP model to a MongoDB document.

        Args:
            otp: OTP model instance

        Returns:
            MongoDB document dictionary without ``_id``
        """
        doc = otp.model_dump(by_alias=True, exclude_none=False)
        doc.pop("_id", None)
        doc["status"] = OTPStatus(doc["status"]).value
        return doc

    async def find_all(self, customer_id: int | None = None) -> list[OTPType]:
        """
        Retrieve all OTPs, optionally only those of one customer.

        Args:
            customer_id: Customer to filter on, None for no filtering

        Returns:
            OTPs in insertion order
        """
        query: dict[str, Any] = {}
        if customer_id is not None:
            query["customer_id"] = customer_id
        async with self._guard("list OTPs"):
            docs = await self.otp_collection.find(query).sort("_id", 1).to_list(None)
        return [otp for otp in map(self._deserialize, docs) if otp is not None]

    async def find_by_id(self, otp_id: Any) -> OTPType | None:  # noqa: ANN401
        """
        Retrieve OTP by ID.

        Args:
            otp_id: OTP ID to search for (string or ObjectId)

        Returns:
            OTP object if found, None otherwise
        """
        async with self._guard("read OTP"):
            doc = await self.otp_collection.find_one({"_id": self._object_id(otp_id)})
        return self._deserialize(doc)

    async def find_by_id_and_status(
        self, otp_id: Any, status: OTPStatus  # noqa: ANN401
    ) -> OTPType | None:
        """Retrieve OTP by ID if it currently has the given status."""
        query = {"_id": self._object_id(otp_id), "status": status.value}
        async with self._guard("read OTP"):
            doc = await self.otp_collection.find_one(query)
        return self._deserialize(doc)

    async def find_by_id_and_pin_and_status(
        self, otp_id: Any, pin: int, status: OTPStatus  # noqa: ANN401
    ) -> OTPType | None:
        """Retrieve OTP by ID and pin if it currently has the given status."""
        query = {"_id": self._object_id(otp_id), "pin": pin, "status": status.value}
        async with self._guard("read OTP"):
            doc = await self.otp_collection.find_one(query)
        return self._deserialize(doc)

    async def create(self, **fields: object) -> OTPType:
        """
        Insert a new OTP document.

        Args:
            **fields: Document fields; the ``_id`` is assigned by MongoDB

        Returns:
            Created OTP object
        """
        otp = self.otp_model_class.model_validate(fields)
        doc = self._serialize(otp)
        async with self._guard("create OTP"):
            result = await self.otp_collection.insert_one(doc)
        otp.id = str(result.inserted_id)
        return otp

    async def save(self, otp: OTPType) -> OTPType:
        """
        Insert or update an OTP document by id.

        Args:
            otp: OTP object to persist

        Returns:
            Persisted OTP object
        """
        doc = self._serialize(otp)
        otp_id = getattr(otp, "id", None)
        async with self._guard("save OTP"):
            if otp_id is None:
                result = await self.otp_collection.insert_one(doc)
                otp.id = str(result.inserted_id)
            else:
                await self.otp_collection.replace_one(
                    {"_id": self._object_id(otp_id)}, doc, upsert=True
                )
        return otp

    async def transition(
        self,
        otp: OTPType,
        new_status: OTPStatus,
        expected_status: OTPStatus,
    ) -> bool:
        """
        Conditionally move an OTP to a new status and count the attempt.

        Args:
            otp: OTP object to update
            new_status: Status to set
            expected_status: Status the stored document must still have

        Returns:
            True if the document was updated, False if its status had changed
        """
        async with self._guard("update OTP status"):
            doc = await self.otp_collection.find_one_and_update(
                {"_id": self._object_id(otp.id), "status": expected_status.value},
                {"$set": {"status": new_status.value}, "$inc": {"attempt_count": 1}},
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            return False

        # Update the OTP object in-place
        otp.status = new_status
        otp.attempt_count = doc["attempt_count"]
        return True
