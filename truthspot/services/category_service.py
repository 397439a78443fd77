from truthspot.helpers.category_selection import CategorySelection
from truthspot.models import Category, CategoryTag, Tag

CATEGORIES_COLLECTION = "spot_categories"
TAGS_COLLECTION = "spot_tags"
CATEGORY_TAGS_COLLECTION = "spot_category_tags"


class CategoryService:
    """Read-only access to categories, tags and their links."""

    def __init__(self, pocketbase):
        self.pocketbase = pocketbase

    def get_categories(self):
        records = self.pocketbase.collection(CATEGORIES_COLLECTION).get_full_list(sort="name")
        return [Category.from_record(record) for record in records]

    def get_tags(self):
        records = self.pocketbase.collection(TAGS_COLLECTION).get_full_list(sort="name")
        return [Tag.from_record(record) for record in records]

    def get_category_tags(self):
        records = self.pocketbase.collection(CATEGORY_TAGS_COLLECTION).get_full_list()
        return [CategoryTag.from_record(record) for record in records]

    def new_selection(self):
        return CategorySelection(self.get_categories(), self.get_tags(), self.get_category_tags())
