"""
Cascading category/tag selection for the spot form.

The user picks a category path (root -> sub -> sub-sub) and then tags from the
set joined to the deepest selected category. Everything here is list filtering
over already-fetched categories, tags and category/tag links.
"""

MAX_CATEGORY_DEPTH = 3
MIN_CATEGORY_DEPTH_TO_SAVE = 2


class CategorySelectionError(ValueError):
    pass


class CategorySelection:
    def __init__(self, categories, tags, category_tags):
        self.categories = list(categories)
        self.tags = list(tags)
        self.category_tags = list(category_tags)
        self._by_id = {category.id: category for category in self.categories}
        self.path = []
        self.selected_tags = []

    def roots(self):
        return [category for category in self.categories if category.is_root]

    def children(self, parent_id):
        return [category for category in self.categories if category.parent_id == parent_id]

    def options(self, level):
        """Categories selectable at a given level of the current path."""
        if level == 0:
            return self.roots()
        if level > len(self.path) or level >= MAX_CATEGORY_DEPTH:
            return []
        return self.children(self.path[level - 1])

    def select(self, category_id, level):
        """Set the category at level, dropping deeper levels and all tag picks."""
        if level < 0 or level >= MAX_CATEGORY_DEPTH:
            raise CategorySelectionError(f"Category level must be between 0 and {MAX_CATEGORY_DEPTH - 1}")
        if level > len(self.path):
            raise CategorySelectionError("Select the parent category first")
        if category_id not in {category.id for category in self.options(level)}:
            raise CategorySelectionError(f"Category {category_id} is not available at level {level}")
        self.path = self.path[:level] + [category_id]
        self.selected_tags = []
        return list(self.path)

    def select_path(self, category_ids):
        """Select a whole path at once, validating every step."""
        self.reset()
        for level, category_id in enumerate(category_ids):
            self.select(category_id, level)
        return list(self.path)

    @property
    def deepest(self):
        return self.path[-1] if self.path else None

    def available_tags(self):
        if not self.path:
            return []
        tag_ids = {link.tag_id for link in self.category_tags if link.category_id == self.deepest}
        return [tag for tag in self.tags if tag.id in tag_ids]

    def toggle_tag(self, tag_id):
        if tag_id in self.selected_tags:
            self.selected_tags = [selected for selected in self.selected_tags if selected != tag_id]
            return False
        if tag_id not in {tag.id for tag in self.available_tags()}:
            raise CategorySelectionError(f"Tag {tag_id} is not available for the selected category")
        self.selected_tags = self.selected_tags + [tag_id]
        return True

    def select_tags(self, tag_ids):
        self.selected_tags = []
        for tag_id in tag_ids:
            if tag_id not in self.selected_tags:
                self.toggle_tag(tag_id)
        return list(self.selected_tags)

    @property
    def can_save(self):
        return len(self.path) >= MIN_CATEGORY_DEPTH_TO_SAVE

    def reset(self):
        self.path = []
        self.selected_tags = []

    def breadcrumb(self):
        return [self._by_id[category_id] for category_id in self.path]

    def get_dict(self):
        return {
            "path": [category.get_dict() for category in self.breadcrumb()],
            "category": self.deepest,
            "available_tags": [tag.get_dict() for tag in self.available_tags()],
            "selected_tags": list(self.selected_tags),
            "next_options": [category.get_dict() for category in self.options(len(self.path))],
            "can_save": self.can_save,
        }
