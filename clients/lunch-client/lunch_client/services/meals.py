"""
Meal data access and meal image storage
"""

import asyncio
import mimetypes
import posixpath
import uuid
from typing import Any, Dict, List, Optional, Union

from shared.schemas.catalog import MealCreateSchema, MealUpdateSchema
from shared.utils.logger import get_logger

from lunch_client.exceptions import DataAccessError
from lunch_client.services.base import TableService, error_message

logger = get_logger(__name__)

MealId = Union[int, str]
MEAL_IMAGE_PREFIX = "meals"


class MealService(TableService):
    """CRUD on ``meals`` plus image upload to object storage"""

    table = "meals"

    def __init__(self, client, image_bucket: str = "meal-images"):
        super().__init__(client)
        self.image_bucket = image_bucket

    async def list_meals(self) -> List[Dict[str, Any]]:
        """All meals sorted by name"""
        return await self.fetch_all(lambda: self.query().select("*").order("name"), "List meals")

    async def list_weekly_specials(self) -> List[Dict[str, Any]]:
        return await self.fetch_all(
            lambda: self.query().select("*").eq("is_weekly_special", True).order("name"),
            "List weekly specials",
        )

    async def search_meals(self, term: str) -> List[Dict[str, Any]]:
        """Meals whose name or description contains ``term``"""
        term = (term or "").strip()
        if not term:
            return await self.list_meals()
        pattern = f"%{term}%"
        return await self.fetch_all(
            lambda: self.query().select("*")
            .or_(f"name.ilike.{pattern},description.ilike.{pattern}")
            .order("name"),
            "Search meals",
        )

    async def get_meal(self, meal_id: MealId) -> Optional[Dict[str, Any]]:
        return await self.fetch_one(
            lambda: self.query().select("*").eq("meal_id", meal_id).maybe_single(),
            "Get meal",
        )

    async def list_cook_meals(self, cook_id: MealId) -> List[Dict[str, Any]]:
        return await self.fetch_all(
            lambda: self.query().select("*").eq("cook_id", cook_id).order("name"),
            "List cook meals",
        )

    async def create_meal(self, meal: MealCreateSchema) -> Optional[Dict[str, Any]]:
        row = meal.model_dump()
        created = await self.first_row(lambda: self.query().insert(row), "Add meal")
        logger.info("Meal created: %s", row["name"])
        return created

    async def update_meal(self, meal_id: MealId, changes: MealUpdateSchema) -> Optional[Dict[str, Any]]:
        row = changes.model_dump(exclude_none=True)
        if not row:
            return await self.get_meal(meal_id)
        return await self.first_row(
            lambda: self.query().update(row).eq("meal_id", meal_id),
            "Update meal",
        )

    async def delete_meal(self, meal_id: MealId) -> None:
        await self.execute(lambda: self.query().delete().eq("meal_id", meal_id), "Delete meal")
        logger.info("Meal deleted: %s", meal_id)

    async def count_cook_meals(self, cook_id: MealId) -> int:
        return await self.count("Count cook meals", cook_id=cook_id)

    async def upload_image(self, meal_id: MealId, filename: str, content: bytes,
                           content_type: Optional[str] = None) -> str:
        """
        Upload a meal image under ``meals/<meal_id>/`` and return its public URL

        The object name is prefixed with a random id so re-uploading the same
        file name never overwrites an existing image.
        """
        name = posixpath.basename(filename.replace("\\", "/")) or "image"
        path = f"{MEAL_IMAGE_PREFIX}/{meal_id}/{uuid.uuid4().hex}-{name}"
        content_type = content_type or mimetypes.guess_type(name)[0] or "application/octet-stream"
        bucket = self.client.storage.from_(self.image_bucket)

        try:
            await asyncio.to_thread(bucket.upload, path, content, {"content-type": content_type})
            url = await asyncio.to_thread(bucket.get_public_url, path)
        except Exception as e:
            message = error_message(e)
            logger.error("Upload meal image failed: %s", message)
            raise DataAccessError(message, {"action": "Upload meal image", "path": path}) from e

        logger.info("Meal image uploaded: %s", path)
        return url

    async def add_image(self, meal_id: MealId, filename: str, content: bytes,
                        content_type: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Upload an image and append its URL to the meal's ``image_urls``"""
        meal = await self.get_meal(meal_id)
        if meal is None:
            raise DataAccessError(f"Meal {meal_id} not found", {"action": "Add meal image"})
        url = await self.upload_image(meal_id, filename, content, content_type)
        image_urls = list(meal.get("image_urls") or []) + [url]
        return await self.update_meal(meal_id, MealUpdateSchema(image_urls=image_urls))
