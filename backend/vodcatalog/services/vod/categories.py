import logging
from typing import Dict, Iterable, Tuple

from pydantic import ValidationError

from vodcatalog.schemas import XtreamCategory

logger = logging.getLogger(__name__)


def _category_pairs(rows) -> Iterable[Tuple[str, str]]:
    if not isinstance(rows, list):
        return
    for row in rows:
        try:
            category = XtreamCategory.model_validate(row)
        except ValidationError:
            continue
        if category.category_id and category.category_name:
            yield category.category_id, category.category_name


def merge_categories(vod_categories, series_categories) -> Dict[str, str]:
    """Merge both taxonomies into one id -> name map.

    VOD entries are inserted first, so a Series category sharing an id
    replaces the VOD name.
    """
    category_map: Dict[str, str] = {}
    for category_id, category_name in _category_pairs(vod_categories):
        category_map[category_id] = category_name
    for category_id, category_name in _category_pairs(series_categories):
        category_map[category_id] = category_name
    return category_map


class CategoryMerger:
    def __init__(self, client, store):
        self.client = client
        self.store = store

    def fetch(self) -> Dict[str, str]:
        vod_categories = self.client.get_vod_categories()
        series_categories = self.client.get_series_categories()
        return merge_categories(vod_categories, series_categories)

    def persist(self, category_map: Dict[str, str]) -> int:
        """Store names for ids not seen before. Existing names are never overwritten."""
        inserted = 0
        for category_id, category_name in category_map.items():
            if self.store.upsert_category_if_absent(category_id, category_name):
                inserted += 1
        logger.info(f"Stored {inserted} new categories out of {len(category_map)}")
        return inserted
