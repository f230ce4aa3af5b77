"""Goods orchestration: create, read, archive and update.

Every public coroutine returns an envelope ``{"status": bool, "message": ...}``
and never lets a RepositoryError escape.
"""

import asyncio
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional

from core.app_logging import get_logger
from core.errors import RepositoryError, ValidationAppException
from modules.goods.composition import resolve_components
from modules.goods.redaction import redact, redact_many
from modules.goods.repository import GoodsRepository
from modules.goods.schemas import UPDATABLE_FIELDS, variant_fields
from modules.goods.types import parse_good_type
from modules.goods.validation import parse_candidate

Envelope = Dict[str, Any]


def _direction(archive: bool) -> str:
    return "archive" if archive else "un-archive"


class GoodsService:
    def __init__(self, repository: GoodsRepository, logger=None):
        self.repository = repository
        self.logger = logger or get_logger(__name__)

    async def get_all_goods(self) -> Envelope:
        try:
            goods = await self.repository.list_all()
            return {"status": True, "message": redact_many(goods)}
        except RepositoryError as exc:
            self.logger.error("Failed to get all goods", tags=["good", "find", "good"], detail=exc.message)
            return {"status": False, "message": "Failed while getting all goods"}

    async def get_single_good(self, good_id: int) -> Envelope:
        try:
            good = await self.repository.find_by_id(good_id)
        except RepositoryError as exc:
            self.logger.error(
                f"Failed to get good by id with id: {good_id}",
                tags=["good", "find", "id"], detail=exc.message,
            )
            return {"status": False, "message": f"Failed while getting good with id {good_id}"}
        if good is None:
            return {"status": False, "message": f"Good with id: {good_id} not found"}
        return {"status": True, "message": redact(good)}

    async def get_goods_by_type(self, good_type: str, include_archived: bool = False) -> Envelope:
        try:
            parsed = parse_good_type(good_type)
        except ValueError:
            return {"status": False, "message": f"Invalid good type: {good_type}"}
        try:
            goods = await self.repository.list_by_type(parsed, include_archived)
            return {"status": True, "message": redact_many(goods)}
        except RepositoryError as exc:
            self.logger.error(
                f"Failed to get goods by type with type: {good_type}",
                tags=["good", "find", "type"], detail=exc.message,
            )
            return {"status": False, "message": f"Failed while getting goods with type {good_type}"}

    async def get_archived_goods_by_type(self, good_type: str) -> Envelope:
        try:
            parsed = parse_good_type(good_type)
        except ValueError:
            return {"status": False, "message": f"Invalid good type: {good_type}"}
        try:
            goods = await self.repository.list_archived_by_type(parsed)
            return {"status": True, "message": redact_many(goods)}
        except RepositoryError as exc:
            self.logger.error(
                f"Failed to get archived goods by type with type: {good_type}",
                tags=["good", "find", "type", "archive"], detail=exc.message,
            )
            return {"status": False, "message": f"Failed while getting archived goods with type {good_type}"}

    async def archive_good(self, good_id: int, archive: bool) -> Envelope:
        direction = _direction(archive)
        try:
            affected = await self.repository.set_archived(good_id, archive)
        except RepositoryError as exc:
            self.logger.error(
                f"Failed to {direction} good with id: {good_id}",
                tags=["good", "archive"], detail=exc.message,
            )
            return {"status": False, "message": f"Failed to {direction} good with id {good_id}"}

        if not affected:
            return {"status": False, "message": f"Failed to {direction} good with id {good_id}, good not found"}

        message = f"{direction} successful for good with id: {good_id}"
        self.logger.info(message, tags=["good", "archive"])
        return {"status": True, "message": message}

    async def _archive_entry(self, entry: Any) -> Envelope:
        if not isinstance(entry, Mapping):
            return {"status": False, "message": "Invalid archive entry", "entry": entry}
        good_id, archive = entry.get("id"), entry.get("archive")
        if not isinstance(good_id, int) or isinstance(good_id, bool) or good_id <= 0 or not isinstance(archive, bool):
            return {"status": False, "message": "Invalid archive entry", "entry": entry}
        return await self.archive_good(good_id, archive)

    async def archive_multiple_goods(self, entries: Iterable[Any]) -> List[Envelope]:
        return list(await asyncio.gather(*(self._archive_entry(entry) for entry in entries)))

    async def add_single_good(self, candidate: Any) -> Envelope:
        try:
            good = parse_candidate(candidate)
        except ValidationAppException as exc:
            self.logger.info(
                "Rejected good with invalid format",
                tags=["good", "validate", "failed"], payload=exc.errors,
            )
            return {"status": False, "message": "Failed while validating good", "good": candidate}

        if good.components:
            try:
                missing = await resolve_components(self.repository, good.components)
            except RepositoryError as exc:
                self.logger.error(
                    "Failed while checking components",
                    tags=["good", "components", "failed"], detail=exc.message,
                )
                return {"status": False, "message": "Failed while checking components", "good": candidate}
            if missing:
                return {
                    "status": False,
                    "message": f"Failed to save component: {', '.join(str(i) for i in missing)} does not exist",
                    "good": candidate,
                }

        try:
            good_id = await self.repository.insert(good)
        except RepositoryError as exc:
            self.logger.error(
                "Failed while attempting to save good",
                tags=["good", "save", "failed"], detail=exc.message,
            )
            return {"status": False, "message": "Failed while saving good", "good": candidate}

        saved = {**candidate, "id": good_id}
        self.logger.info("Successfully saved new good", tags=["good", "save", "success"], payload=saved)
        return {"status": True, "message": "Successfully saved new good", "good": saved}

    async def add_bulk_goods(self, candidates: Iterable[Any]) -> List[Envelope]:
        return list(await asyncio.gather(*(self.add_single_good(candidate) for candidate in candidates)))

    async def update_good(self, good_id: int, fields: Optional[Dict[str, Any]]) -> Envelope:
        """Overwrite fields of an existing good after revalidating the merged result."""
        if not isinstance(fields, Mapping) or not fields:
            return {"status": False, "message": "No fields to update", "fields": fields}
        rejected = sorted(set(fields) - UPDATABLE_FIELDS)
        if rejected:
            return {
                "status": False,
                "message": f"Fields cannot be updated: {', '.join(rejected)}",
                "fields": fields,
            }

        try:
            current = await self.repository.find_by_id(good_id)
        except RepositoryError as exc:
            self.logger.error(
                f"Failed to get good by id with id: {good_id}",
                tags=["good", "update"], detail=exc.message,
            )
            return {"status": False, "message": f"Failed to update good with id {good_id}", "fields": fields}
        if current is None:
            return {"status": False, "message": f"Good with id: {good_id} not found", "fields": fields}

        merged = {key: value for key, value in current.items() if value is not None}
        merged.update(fields)
        if "process_time" in fields:
            merged["processTime"] = merged.pop("process_time")
        try:
            good = parse_candidate(merged)
        except ValidationAppException:
            return {"status": False, "message": "Failed while validating good", "fields": fields}

        # Fields outside the variant are dropped, as on create
        owned = variant_fields(good)
        changes = {key: value for key, value in fields.items() if key in owned}

        if "components" in fields and good.components:
            try:
                missing = await resolve_components(self.repository, good.components)
            except RepositoryError as exc:
                self.logger.error(
                    "Failed while checking components",
                    tags=["good", "components", "failed"], detail=exc.message,
                )
                return {"status": False, "message": "Failed while checking components", "fields": fields}
            if missing:
                return {
                    "status": False,
                    "message": f"Failed to save component: {', '.join(str(i) for i in missing)} does not exist",
                    "fields": fields,
                }

        try:
            affected = await self.repository.update(good_id, changes)
        except RepositoryError as exc:
            self.logger.error(
                f"Failed to update good with id: {good_id}",
                tags=["good", "update", "failed"], detail=exc.message,
            )
            return {"status": False, "message": f"Failed to update good with id {good_id}", "fields": fields}
        if not affected:
            return {"status": False, "message": f"Good with id: {good_id} not found", "fields": fields}

        self.logger.info(f"Successfully updated good with id: {good_id}", tags=["good", "update", "success"])
        return {"status": True, "message": f"Successfully updated good with id: {good_id}"}
