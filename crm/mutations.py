from typing import Iterable, List, Mapping, Type, Union

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from crm.errors import EmptyResultError, NotFoundError, ValidationError
from crm.models.record_store import RecordStore, strip_server_fields
from crm.utils import mask_id
from crm.validation import require_fields, require_non_empty
from crm.variants import RecordVariant

Payload = Union[Mapping, BaseModel]


def _as_dict(payload: Payload) -> dict:
    if isinstance(payload, BaseModel):
        return payload.model_dump(exclude_unset=True)
    return dict(payload or {})


def _format_pydantic_errors(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return "; ".join(parts)


def _coerce(model: Type[BaseModel], data: dict) -> dict:
    try:
        parsed = model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(_format_pydantic_errors(e))
    return parsed.model_dump(mode="json", exclude_unset=True)


class MutationGateway:
    """
    Write side of one record collection.

    Mandatory fields are checked before anything reaches the store; store
    failures propagate as BackendError with the store's own message.
    """

    def __init__(self, store: RecordStore, variant: RecordVariant):
        self.store = store
        self.variant = variant

    def prepare_create(self, payload: Payload) -> dict:
        # None means "not provided" on create so defaults still apply
        data = {k: v for k, v in strip_server_fields(_as_dict(payload)).items() if v is not None}
        require_fields(data, self.variant.required_fields)
        return {**self.variant.defaults(), **_coerce(self.variant.create_model, data)}

    async def create(self, payload: Payload) -> List[dict]:
        row = self.prepare_create(payload)
        rows = await self.store.insert(self.variant.collection, [row])
        logger.info(f"Created {self.variant.name} record {mask_id(rows[0].get('id') if rows else None)}")
        return rows

    async def update(self, record_id: str, partial: Payload) -> List[dict]:
        data = strip_server_fields(_as_dict(partial))
        require_non_empty(data, self.variant.required_fields)
        fields = _coerce(self.variant.update_model, data)

        rows = await self.store.update(self.variant.collection, record_id, fields)
        if not rows:
            raise NotFoundError(f"Record {record_id} not found")
        logger.info(f"Updated {self.variant.name} record {mask_id(record_id)} ({len(fields)} fields)")
        return rows

    async def delete(self, record_id: str) -> bool:
        deleted = await self.store.delete(self.variant.collection, record_id)
        if deleted:
            logger.info(f"Deleted {self.variant.name} record {mask_id(record_id)}")
        else:
            logger.info(f"{self.variant.name} record {mask_id(record_id)} already absent")
        return deleted > 0

    async def delete_all(self) -> int:
        deleted = await self.store.delete_all(self.variant.collection)
        logger.warning(f"Deleted all {deleted} {self.variant.name} records")
        return deleted

    async def bulk_create(self, payloads: Iterable[Payload]) -> List[dict]:
        """Insert many rows in one store call. Every row must pass validation."""
        rows = []
        errors = []
        for idx, payload in enumerate(payloads):
            try:
                rows.append(self.prepare_create(payload))
            except ValidationError as e:
                errors.append(f"row {idx + 1}: {e.message}")

        if errors:
            raise ValidationError("; ".join(errors))
        if not rows:
            raise EmptyResultError()

        inserted = await self.store.insert(self.variant.collection, rows)
        logger.info(f"Bulk created {len(inserted)} {self.variant.name} records")
        return inserted
